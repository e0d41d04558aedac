"""Shared constants for clientgen.

Generator parameters, default paths and environment variable names used
across modules are defined here. No magic strings in other modules —
import from here.
"""

# ─── Repository identity ─────────────────────────────────────────────────────

# Repository that hosts the reusable workflow. It is always allowed to run the
# pipeline, even with an empty allowlist. Override with self_repository in
# config.yaml or CLIENTGEN_SELF_REPOSITORY.
DEFAULT_SELF_REPOSITORY: str = "kubev2v/migration-planner-client-generator"

# ─── Registry ────────────────────────────────────────────────────────────────

DEFAULT_NPM_REGISTRY: str = "https://registry.npmjs.org"

# Scoped packages are private by default on npmjs.org; generated clients are public.
DEFAULT_NPM_ACCESS: str = "public"

# ─── Generator (openapi-generator) ───────────────────────────────────────────

GENERATOR_NAME: str = "typescript-fetch"

DEFAULT_OUTPUT_DIR: str = "generated-client"

DEFAULT_GENERATOR_EXECUTABLE: str = "openapi-generator-cli"

DEFAULT_NPM_EXECUTABLE: str = "npm"

# Fixed additional-properties passed to the typescript-fetch generator.
# Order is preserved in the rendered --additional-properties argument.
GENERATOR_ADDITIONAL_PROPERTIES: tuple[tuple[str, str], ...] = (
    ("ensureUniqueParams", "true"),
    ("supportsES6", "true"),
    ("withInterfaces", "true"),
    ("importFileExtension", ".js"),
)

# ─── Spec fetch ──────────────────────────────────────────────────────────────

SPEC_FETCH_TIMEOUT_S: float = 30.0

# Directory (relative to the working directory) holding the downloaded spec.
SPEC_DOWNLOAD_DIR: str = ".openapi-spec"

# ─── Local testing (act-cli) ─────────────────────────────────────────────────

DEFAULT_SECRETS_FILE: str = ".secrets"

ACT_WORK_DIR: str = ".act"

FAKE_NPM_TOKEN: str = "fake-token-for-testing"

# ─── Environment variable names ──────────────────────────────────────────────

ENV_ALLOWED_REPOS: str = "ALLOWED_REPOS"
ENV_NPM_TOKEN: str = "NPM_TOKEN"
ENV_NODE_AUTH_TOKEN: str = "NODE_AUTH_TOKEN"
ENV_GITHUB_REPOSITORY: str = "GITHUB_REPOSITORY"
ENV_GITHUB_STEP_SUMMARY: str = "GITHUB_STEP_SUMMARY"
ENV_OIDC_REQUEST_URL: str = "ACTIONS_ID_TOKEN_REQUEST_URL"
ENV_OIDC_REQUEST_TOKEN: str = "ACTIONS_ID_TOKEN_REQUEST_TOKEN"

# ─── Exit codes ──────────────────────────────────────────────────────────────

EXIT_OK: int = 0
EXIT_DOWNSTREAM_FAILURE: int = 1
EXIT_INVALID_INPUT: int = 2
EXIT_AUTH_FAILURE: int = 3
