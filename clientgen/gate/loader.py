"""Allowlist parsing for the clientgen authorization gate.

The allowlist arrives as the ALLOWED_REPOS secret: a JSON array of repository
identifiers (``owner/name``). It is parsed fresh on every run and never
mutated or persisted.

Parsing fails closed. Anything other than a JSON array of non-empty strings
raises MalformedAllowlist — a broken secret is NEVER treated as an empty
list. Error messages and log lines describe the shape problem only; the raw
secret value and the entries themselves are never echoed.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Union

from clientgen.errors import MalformedAllowlist
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)

AllowlistInput = Union[str, bytes, Sequence[str], None]


def parse_allowlist(raw: AllowlistInput) -> list[str]:
    """Parse an allowlist into an ordered list of repository identifiers.

    Accepts the raw secret text (``str``/``bytes``) or an already-decoded
    sequence (list/tuple). Order is preserved; duplicates are kept (they are
    inconsequential for membership).

    Raises:
        MalformedAllowlist: ``raw`` is None, not valid JSON, not an array,
                            or contains a non-string / empty-string item.
    """
    if raw is None:
        logger.error("Allowlist secret is not set")
        raise MalformedAllowlist("allowlist secret is not set")

    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            # exc.pos only: the message itself may quote the secret
            logger.error("Allowlist is not valid JSON", position=getattr(exc, "pos", None))
            raise MalformedAllowlist("allowlist is not valid JSON") from None
    else:
        decoded = raw

    if not isinstance(decoded, (list, tuple)):
        logger.error("Allowlist is not a JSON array", actual_type=type(decoded).__name__)
        raise MalformedAllowlist("allowlist must be a JSON array of strings")

    entries: list[str] = []
    for index, item in enumerate(decoded):
        if not isinstance(item, str):
            logger.error(
                "Allowlist entry is not a string",
                index=index,
                actual_type=type(item).__name__,
            )
            raise MalformedAllowlist(f"entry {index} is not a string")
        if not item:
            logger.error("Allowlist entry is empty", index=index)
            raise MalformedAllowlist(f"entry {index} is an empty string")
        entries.append(item)

    return entries
