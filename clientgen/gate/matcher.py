"""Authorization decision for clientgen.

authorize() is the ONLY function the pipeline calls before any fetch,
generation or publish step. It blocks: when it raises, nothing downstream
runs.

Decision rule:
  caller == self_identifier   → authorized (self bypass, even with [] allowlist)
  caller in allowlist         → authorized (exact, case-sensitive, full string)
  otherwise                   → Unauthorized

The allowlist is parsed BEFORE the decision rule, so a malformed secret fails
closed even for the self repository. The gate is a pure predicate: no
mutation, no retries, a single O(n) pass.
"""

from __future__ import annotations

from collections.abc import Sequence

from clientgen.errors import Unauthorized
from clientgen.gate.loader import AllowlistInput, parse_allowlist
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)


def is_authorized(caller: str, allowlist: Sequence[str], self_identifier: str) -> bool:
    """Return True iff ``caller`` is the self identifier or an allowlist entry.

    No substring, prefix or case-folded matching — ``"org/repo"`` does not
    match ``"org/repository"`` and ``"Org/Repo"`` does not match ``"org/repo"``.
    """
    if caller == self_identifier:
        return True
    return any(caller == entry for entry in allowlist)


def authorize(caller: str, allowlist: AllowlistInput, self_identifier: str) -> None:
    """Gate a generate-and-publish run on the caller's identity.

    Args:
        caller:          Invoking repository (GITHUB_REPOSITORY).
        allowlist:       Raw ALLOWED_REPOS secret text or a decoded sequence.
        self_identifier: Repository hosting the reusable workflow.

    Returns:
        None when the caller is authorized.

    Raises:
        MalformedAllowlist: allowlist does not parse (see parse_allowlist).
        Unauthorized:       caller is neither self nor allowlisted. The message
                            names the caller only — never the allowlist.
    """
    entries = parse_allowlist(allowlist)

    if caller == self_identifier:
        logger.info("Caller authorized", caller=caller, reason="self")
        return

    if is_authorized(caller, entries, self_identifier):
        logger.info("Caller authorized", caller=caller, reason="allowlist")
        return

    logger.warning("Caller not authorized", caller=caller)
    raise Unauthorized(caller)
