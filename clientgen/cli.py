"""Command-line entry point for clientgen.

Usage:
    clientgen run            # gate → fetch → generate → publish (reusable workflow step)
    clientgen check-access   # authorization gate only; exit 0 when allowed
    clientgen init-secrets   # write a .secrets template for local act-cli runs
    clientgen clean [--all]  # remove generated artifacts (and .secrets with --all)

Inputs for ``run`` come from flags first, then from INPUT_* environment
variables. Secrets (ALLOWED_REPOS, NPM_TOKEN) are read from the environment
only — never from flags, so they stay out of process listings.

Exit codes:
    0  success
    1  downstream tool or spec fetch failure (also config errors via SystemExit)
    2  invalid input or missing publish credentials
    3  malformed allowlist or unauthorized caller
"""

from __future__ import annotations

import argparse
import json
import os
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from clientgen import __version__
from clientgen.config import Config, load_config, load_inputs
from clientgen.constants import (
    ACT_WORK_DIR,
    DEFAULT_SECRETS_FILE,
    DEFAULT_SELF_REPOSITORY,
    ENV_ALLOWED_REPOS,
    ENV_GITHUB_REPOSITORY,
    ENV_NPM_TOKEN,
    EXIT_INVALID_INPUT,
    EXIT_OK,
    FAKE_NPM_TOKEN,
    SPEC_DOWNLOAD_DIR,
)
from clientgen.errors import ClientGenError, DownstreamFailure, InputError
from clientgen.gate import authorize
from clientgen.pipeline import run_pipeline
from clientgen.summary import emit_annotation, write_step_summary
from clientgen.utils.logger import configure_logging, get_logger
from clientgen.utils.ulid import generate_ulid

logger = get_logger(__name__)


# ─── Argument parsing ─────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clientgen",
        description="Generate a TypeScript client from an OpenAPI spec and publish it to npm.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to clientgen config.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Authorize, generate and publish the client")
    run.add_argument("--openapi-spec-url", help="URL of the OpenAPI document")
    run.add_argument("--package-name", help="npm package name for the generated client")
    run.add_argument("--package-version", help="Semver version to publish")
    run.add_argument("--npm-registry", help="npm registry URL")
    run.add_argument(
        "--dry-run",
        action="store_const",
        const=True,
        default=None,
        help="Generate and build, run npm publish --dry-run",
    )
    run.add_argument("--caller", help="Calling repository (defaults to GITHUB_REPOSITORY)")

    check = subparsers.add_parser("check-access", help="Run the authorization gate only")
    check.add_argument("--caller", help="Calling repository (defaults to GITHUB_REPOSITORY)")

    init = subparsers.add_parser("init-secrets", help="Write a .secrets template for act-cli")
    init.add_argument("--path", default=DEFAULT_SECRETS_FILE)
    init.add_argument(
        "--repository",
        default=None,
        help="Repository to allowlist (defaults to the configured self repository)",
    )

    clean = subparsers.add_parser("clean", help="Remove generated artifacts")
    clean.add_argument("--all", action="store_true", help="Also remove the .secrets file")

    return parser


# ─── Commands ─────────────────────────────────────────────────────────────────


def _resolve_caller(explicit: Optional[str]) -> str:
    caller = explicit or os.environ.get(ENV_GITHUB_REPOSITORY, "")
    if not caller:
        raise InputError("caller", f"{ENV_GITHUB_REPOSITORY} is not set and --caller was not given")
    return caller


def _fail(error: ClientGenError, run_id: Optional[str] = None) -> int:
    logger.error("Run failed", code=error.code, error=error.message)
    emit_annotation("error", error.message, title=error.code)
    write_step_summary(error, run_id=run_id)
    return error.exit_code


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    run_id = generate_ulid()
    try:
        # Gate verdict wins over input errors
        caller = _resolve_caller(args.caller)
        allowlist_raw = os.environ.get(ENV_ALLOWED_REPOS)
        authorize(caller, allowlist_raw, config.self_repository)

        inputs = load_inputs(
            {
                "openapi-spec-url": args.openapi_spec_url,
                "package-name": args.package_name,
                "package-version": args.package_version,
                "npm-registry": args.npm_registry,
                "dry-run": args.dry_run,
            },
            default_registry=config.npm_registry,
        )
        result = run_pipeline(
            inputs,
            caller=caller,
            allowlist_raw=allowlist_raw,
            config=config,
            npm_token=os.environ.get(ENV_NPM_TOKEN) or None,
            run_id=run_id,
        )
    except ClientGenError as exc:
        return _fail(exc, run_id=run_id)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during run", error_type=type(exc).__name__)
        failure = DownstreamFailure("run", f"Unexpected {type(exc).__name__} during the run")
        return _fail(failure, run_id=run_id)

    verb = "Dry run completed for" if result.dry_run else "Published"
    emit_annotation("notice", f"{verb} {result.package_name}@{result.package_version}")
    write_step_summary(result)
    return EXIT_OK


def cmd_check_access(args: argparse.Namespace, config: Config) -> int:
    try:
        caller = _resolve_caller(args.caller)
        authorize(caller, os.environ.get(ENV_ALLOWED_REPOS), config.self_repository)
    except ClientGenError as exc:
        return _fail(exc)
    print(f"Repository '{caller}' is authorized.")
    return EXIT_OK


def render_secrets_template(repository: str) -> str:
    return "\n".join([
        "# Secrets for local act-cli testing",
        "# WARNING: Never commit this file!",
        "",
        "# npm token (use a fake value for dry-run testing)",
        f"{ENV_NPM_TOKEN}={FAKE_NPM_TOKEN}",
        "",
        "# Allowed repositories (JSON array)",
        "# Include this repo for local testing",
        f"{ENV_ALLOWED_REPOS}={json.dumps([repository])}",
        "",
    ])


def cmd_init_secrets(args: argparse.Namespace, config: Config) -> int:
    path = Path(args.path)
    if path.exists():
        print(f"{path} already exists. Remove it first to regenerate.")
        return EXIT_INVALID_INPUT
    repository = args.repository or config.self_repository or DEFAULT_SELF_REPOSITORY
    path.write_text(render_secrets_template(repository))
    logger.info("Secrets template written", path=str(path))
    print(f"Created {path}. Edit it if you need to customize the values.")
    return EXIT_OK


def cmd_clean(args: argparse.Namespace, config: Config) -> int:
    targets = [Path(config.output_dir), Path(SPEC_DOWNLOAD_DIR), Path(ACT_WORK_DIR)]
    for target in targets:
        if target.is_dir():
            shutil.rmtree(target)
            logger.info("Removed directory", path=str(target))
    if args.all:
        secrets = Path(DEFAULT_SECRETS_FILE)
        if secrets.exists():
            secrets.unlink()
            logger.info("Removed secrets file", path=str(secrets))
    return EXIT_OK


_COMMANDS = {
    "run": cmd_run,
    "check-access": cmd_check_access,
    "init-secrets": cmd_init_secrets,
    "clean": cmd_clean,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, load config, configure logging and dispatch.

    Raises:
        SystemExit: Propagated from load_config() on config errors and from
                    argparse on usage errors.
    """
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    configure_logging(config.logging.level, json_output=config.logging.json)
    return _COMMANDS[args.command](args, config)


if __name__ == "__main__":
    raise SystemExit(main())
