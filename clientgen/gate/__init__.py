"""clientgen authorization gate.

Public API:
    parse_allowlist — decode the ALLOWED_REPOS secret (fails closed)
    is_authorized   — pure membership predicate
    authorize       — raising gate called before any generation/publish step
"""
from clientgen.gate.loader import parse_allowlist
from clientgen.gate.matcher import authorize, is_authorized

__all__ = ["authorize", "is_authorized", "parse_allowlist"]
