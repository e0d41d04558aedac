"""npm publish step for the generated client.

Credential resolution (first match wins):
  "oidc"  — ACTIONS_ID_TOKEN_REQUEST_URL and ACTIONS_ID_TOKEN_REQUEST_TOKEN are
            set (workflow granted ``id-token: write``). npm exchanges the runner's
            OIDC token for a short-lived publish credential (trusted publishing);
            ``--provenance`` is added. If NPM_TOKEN is also set it is wired up
            as below so npm can fall back to it when trusted publishing is
            not configured for the package.
  "token" — NPM_TOKEN secret is non-empty. A project ``.npmrc`` referencing
            ``${NODE_AUTH_TOKEN}`` is written into the package directory and the
            token is passed only through the npm child's environment.
  "none"  — neither is available. Allowed for dry-run only.

Non-negotiables:
  - The token value is NEVER written to disk and NEVER logged.
  - Dry-run uses ``npm publish --dry-run``: packs and validates, no publish.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from clientgen.config import Config, PublishInputs
from clientgen.constants import (
    ENV_NODE_AUTH_TOKEN,
    ENV_OIDC_REQUEST_TOKEN,
    ENV_OIDC_REQUEST_URL,
)
from clientgen.errors import PublishCredentialsMissing
from clientgen.toolchain.runner import run_tool
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)

AUTH_MODE_OIDC = "oidc"
AUTH_MODE_TOKEN = "token"
AUTH_MODE_NONE = "none"


def resolve_auth_mode(env: Mapping[str, str], npm_token: Optional[str]) -> str:
    """Pick the publish credential mode: "oidc", "token" or "none"."""
    if env.get(ENV_OIDC_REQUEST_URL) and env.get(ENV_OIDC_REQUEST_TOKEN):
        return AUTH_MODE_OIDC
    if npm_token:
        return AUTH_MODE_TOKEN
    return AUTH_MODE_NONE


def registry_auth_key(registry: str) -> str:
    """Return the ``.npmrc`` auth key prefix for a registry URL.

    ``https://registry.npmjs.org`` → ``//registry.npmjs.org/``
    """
    parsed = urlparse(registry)
    path = parsed.path.rstrip("/")
    return f"//{parsed.netloc}{path}/"


def write_npmrc(package_dir: Path, registry: str) -> Path:
    """Write a project .npmrc that reads the token from NODE_AUTH_TOKEN."""
    npmrc = package_dir / ".npmrc"
    npmrc.write_text(
        f"registry={registry.rstrip('/')}/\n"
        f"{registry_auth_key(registry)}:_authToken=${{{ENV_NODE_AUTH_TOKEN}}}\n"
    )
    return npmrc


def build_publish_command(inputs: PublishInputs, auth_mode: str, config: Config) -> list[str]:
    """Return the ``npm publish`` argv for this run."""
    argv = [
        config.npm.executable,
        "publish",
        "--access",
        config.npm.access,
        "--registry",
        inputs.npm_registry,
    ]
    if auth_mode == AUTH_MODE_OIDC:
        argv.append("--provenance")
    if inputs.dry_run:
        argv.append("--dry-run")
    return argv


def publish_client(
    package_dir: Path,
    inputs: PublishInputs,
    config: Config,
    env: Mapping[str, str],
    npm_token: Optional[str] = None,
) -> str:
    """Publish (or dry-run publish) the built client. Returns the auth mode used.

    Raises:
        PublishCredentialsMissing: real publish with neither OIDC nor NPM_TOKEN.
        DownstreamFailure:         ``npm publish`` exited non-zero.
    """
    auth_mode = resolve_auth_mode(env, npm_token)
    if auth_mode == AUTH_MODE_NONE and not inputs.dry_run:
        logger.error("No npm credentials available for publish")
        raise PublishCredentialsMissing()

    child_env: dict[str, str] = {}
    # npm tries OIDC first, then the .npmrc token
    if npm_token:
        write_npmrc(package_dir, inputs.npm_registry)
        child_env[ENV_NODE_AUTH_TOKEN] = npm_token

    logger.info(
        "Publishing client",
        package=inputs.package_name,
        version=inputs.package_version,
        registry=inputs.npm_registry,
        auth_mode=auth_mode,
        dry_run=inputs.dry_run,
    )
    run_tool(
        "publish",
        build_publish_command(inputs, auth_mode, config),
        cwd=package_dir,
        env=child_env,
    )
    return auth_mode
