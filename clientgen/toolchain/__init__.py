"""External toolchain wrappers: openapi-generator and npm.

Public API:
    run_tool        — run one external command, DownstreamFailure on non-zero exit
    generate_client — openapi-generator + npm install + npm run build
    publish_client  — npm publish (OIDC or NPM_TOKEN, honours dry-run)
"""
from clientgen.toolchain.generator import generate_client
from clientgen.toolchain.publisher import publish_client
from clientgen.toolchain.runner import run_tool

__all__ = ["generate_client", "publish_client", "run_tool"]
