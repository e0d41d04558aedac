"""Generate-and-publish pipeline.

run_pipeline() executes the run strictly in order:

  1. authorize        — gate on caller vs ALLOWED_REPOS (blocks; raises on failure)
     ...then, unless dry-run, npm credentials must resolve (OIDC or NPM_TOKEN)
  2. fetch            — download + validate the OpenAPI document
  3. generate         — openapi-generator, npm install, npm run build
  4. publish          — npm publish (OIDC or NPM_TOKEN; --dry-run honoured)

The first failure ends the run: no step is retried and no later step runs.
Each step is timed with PerformanceLogger and every log line carries the
run's ULID via the run_id context var.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from clientgen.config import Config, PublishInputs
from clientgen.constants import SPEC_DOWNLOAD_DIR
from clientgen.errors import PublishCredentialsMissing
from clientgen.fetch import fetch_openapi_spec
from clientgen.gate import authorize
from clientgen.gate.loader import AllowlistInput
from clientgen.toolchain import generate_client, publish_client
from clientgen.toolchain.publisher import AUTH_MODE_NONE, resolve_auth_mode
from clientgen.utils.logger import PerformanceLogger, clear_run_id, get_logger, set_run_id
from clientgen.utils.ulid import generate_ulid

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a successful run."""

    run_id: str
    package_name: str
    package_version: str
    npm_registry: str
    dry_run: bool
    published: bool
    auth_mode: str
    spec_path: Path
    output_dir: Path


def run_pipeline(
    inputs: PublishInputs,
    caller: str,
    allowlist_raw: AllowlistInput,
    config: Config,
    npm_token: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    http_client: Optional[httpx.Client] = None,
    run_id: Optional[str] = None,
) -> PipelineResult:
    """Run gate → fetch → generate → publish.

    Raises:
        MalformedAllowlist / Unauthorized: gate refused the run (nothing else ran).
        SpecFetchError:                    spec could not be fetched or validated.
        DownstreamFailure:                 generator or npm failed.
        PublishCredentialsMissing:         real publish without credentials.
    """
    env = os.environ if env is None else env
    run_id = run_id or generate_ulid()
    set_run_id(run_id)
    try:
        logger.info(
            "Pipeline started",
            caller=caller,
            package=inputs.package_name,
            version=inputs.package_version,
            dry_run=inputs.dry_run,
        )

        with PerformanceLogger("authorize", logger):
            authorize(caller, allowlist_raw, config.self_repository)

        if not inputs.dry_run and resolve_auth_mode(env, npm_token) == AUTH_MODE_NONE:
            logger.error("No npm credentials available for publish")
            raise PublishCredentialsMissing()

        with PerformanceLogger("fetch", logger):
            spec_path = fetch_openapi_spec(
                inputs.openapi_spec_url, SPEC_DOWNLOAD_DIR, client=http_client
            )

        with PerformanceLogger("generate", logger):
            output_dir = generate_client(spec_path, inputs, config)

        with PerformanceLogger("publish", logger):
            auth_mode = publish_client(output_dir, inputs, config, env, npm_token=npm_token)

        result = PipelineResult(
            run_id=run_id,
            package_name=inputs.package_name,
            package_version=inputs.package_version,
            npm_registry=inputs.npm_registry,
            dry_run=inputs.dry_run,
            published=not inputs.dry_run,
            auth_mode=auth_mode,
            spec_path=spec_path,
            output_dir=output_dir,
        )
        logger.info("Pipeline finished", published=result.published, auth_mode=auth_mode)
        return result
    finally:
        clear_run_id()
