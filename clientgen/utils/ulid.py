"""ULID generation utility for clientgen.

Provides a single `generate_ulid()` function that returns a 26-character ULID
(Universally Unique Lexicographically Sortable Identifier) used as:
  - run_id bound into every structured log entry of a pipeline run
  - run_id reported in the GitHub job summary

Uses the `python-ulid` library (see pyproject.toml) — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Returns:
        str: A 26-character ULID string, Crockford Base32 (``[0-9A-HJKMNP-TV-Z]``).

    Example::

        run_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
        assert len(run_id) == 26
    """
    return str(ULID())
