"""Domain exceptions for clientgen.

Every failure that ends a run is one of these. Each carries a stable ``code``
(used in the job summary) and the CLI ``exit_code`` it maps to. None of them
is retried.

  MalformedAllowlist         — ALLOWED_REPOS is not a JSON array of non-empty strings
  Unauthorized               — caller is neither the self repository nor allowlisted
  InputError                 — a workflow input is missing or invalid
  PublishCredentialsMissing  — real publish requested with neither OIDC nor NPM_TOKEN
  DownstreamFailure          — openapi-generator / npm exited non-zero
  SpecFetchError             — the OpenAPI document could not be fetched or parsed

Messages are safe for the user-facing job summary: auth errors never carry
allowlist contents.
"""

from __future__ import annotations

from typing import Optional

from clientgen.constants import (
    EXIT_AUTH_FAILURE,
    EXIT_DOWNSTREAM_FAILURE,
    EXIT_INVALID_INPUT,
)


class ClientGenError(Exception):
    """Base class for all run-terminating clientgen errors."""

    code: str = "clientgen_error"
    exit_code: int = EXIT_DOWNSTREAM_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ─── Authorization ────────────────────────────────────────────────────────────


class AuthError(ClientGenError):
    """Raised by the authorization gate. The run must not proceed."""

    code = "auth_error"
    exit_code = EXIT_AUTH_FAILURE


class MalformedAllowlist(AuthError):
    """ALLOWED_REPOS could not be parsed as a JSON array of non-empty strings.

    The message describes the shape problem only — never the raw secret value.
    """

    code = "malformed_allowlist"

    def __init__(self, reason: str = "allowlist is not a JSON array of strings") -> None:
        super().__init__(f"Malformed allowlist: {reason}")
        self.reason = reason


class Unauthorized(AuthError):
    """Caller is not permitted to generate and publish."""

    code = "unauthorized"

    def __init__(self, caller: str) -> None:
        super().__init__(
            f"Repository '{caller}' is not authorized to use this workflow. "
            "Ask the workflow owners to add it to ALLOWED_REPOS."
        )
        self.caller = caller


# ─── Inputs / credentials ─────────────────────────────────────────────────────


class InputError(ClientGenError):
    """A workflow input is missing or fails validation."""

    code = "invalid_input"
    exit_code = EXIT_INVALID_INPUT

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid input '{name}': {reason}")
        self.name = name
        self.reason = reason


class PublishCredentialsMissing(ClientGenError):
    """Publishing requires OIDC (id-token: write) or an NPM_TOKEN secret."""

    code = "publish_credentials_missing"
    exit_code = EXIT_INVALID_INPUT

    def __init__(self) -> None:
        super().__init__(
            "No npm credentials available: grant 'id-token: write' for OIDC "
            "trusted publishing or provide the NPM_TOKEN secret."
        )


# ─── Downstream tools ─────────────────────────────────────────────────────────


class DownstreamFailure(ClientGenError):
    """An external step failed. Output is surfaced verbatim, never retried."""

    code = "downstream_failure"
    exit_code = EXIT_DOWNSTREAM_FAILURE

    def __init__(
        self,
        step: str,
        message: str,
        returncode: Optional[int] = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.step = step
        self.returncode = returncode
        self.output = output


class SpecFetchError(DownstreamFailure):
    """The OpenAPI document could not be downloaded or is not an OpenAPI document."""

    code = "spec_fetch_failed"

    def __init__(self, url: str, reason: str) -> None:
        super().__init__("fetch", f"Failed to fetch OpenAPI spec from {url}: {reason}")
        self.url = url
        self.reason = reason
