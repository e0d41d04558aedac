"""Tests for parse_allowlist() — ALLOWED_REPOS secret decoding.

Tests:
  - JSON array of strings → ordered list (duplicates kept)
  - Already-decoded list/tuple accepted
  - Malformed JSON, non-array roots, non-string / empty items → MalformedAllowlist
  - None (secret unset) → MalformedAllowlist, never an empty list
  - Error messages never echo the secret contents
"""

from __future__ import annotations

import pytest

from clientgen.errors import AuthError, MalformedAllowlist
from clientgen.gate.loader import parse_allowlist

# ─── Well-formed input ────────────────────────────────────────────────────────


class TestParseAllowlistValid:
    def test_json_array_of_strings(self):
        assert parse_allowlist('["a/b", "c/d"]') == ["a/b", "c/d"]

    def test_empty_array_is_valid(self):
        assert parse_allowlist("[]") == []

    def test_order_preserved(self):
        assert parse_allowlist('["z/z", "a/a", "m/m"]') == ["z/z", "a/a", "m/m"]

    def test_duplicates_kept(self):
        assert parse_allowlist('["a/b", "a/b"]') == ["a/b", "a/b"]

    def test_bytes_input(self):
        assert parse_allowlist(b'["a/b"]') == ["a/b"]

    def test_surrounding_whitespace_in_json_ok(self):
        assert parse_allowlist('  [ "a/b" ]\n') == ["a/b"]

    def test_decoded_list_accepted(self):
        assert parse_allowlist(["a/b", "c/d"]) == ["a/b", "c/d"]

    def test_decoded_tuple_accepted(self):
        assert parse_allowlist(("a/b",)) == ["a/b"]

    def test_returns_copy_of_decoded_sequence(self):
        source = ["a/b"]
        result = parse_allowlist(source)
        result.append("x/y")
        assert source == ["a/b"]


# ─── Fail-closed parsing ──────────────────────────────────────────────────────


class TestParseAllowlistMalformed:
    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "not json",
            "[",
            '["a/b",]',
            "['a/b']",
            "a/b,c/d",
        ],
    )
    def test_invalid_json(self, raw):
        with pytest.raises(MalformedAllowlist):
            parse_allowlist(raw)

    @pytest.mark.parametrize(
        "raw",
        ['"a/b"', '{"repos": ["a/b"]}', "42", "null", "true"],
    )
    def test_non_array_root(self, raw):
        with pytest.raises(MalformedAllowlist):
            parse_allowlist(raw)

    @pytest.mark.parametrize(
        "raw",
        ['["a/b", 1]', '[null]', '[["a/b"]]', '[{"repo": "a/b"}]', "[true]"],
    )
    def test_non_string_item(self, raw):
        with pytest.raises(MalformedAllowlist):
            parse_allowlist(raw)

    def test_empty_string_item(self):
        with pytest.raises(MalformedAllowlist):
            parse_allowlist('["a/b", ""]')

    def test_none_is_malformed_not_empty(self):
        """An unset secret fails closed; it is never treated as []."""
        with pytest.raises(MalformedAllowlist):
            parse_allowlist(None)

    def test_decoded_dict_rejected(self):
        with pytest.raises(MalformedAllowlist):
            parse_allowlist({"a/b": True})  # type: ignore[arg-type]

    def test_is_auth_error(self):
        with pytest.raises(AuthError):
            parse_allowlist("nope")

    def test_message_does_not_echo_secret(self):
        secret = '["secret-org/hidden-repo", 7]'
        with pytest.raises(MalformedAllowlist) as exc_info:
            parse_allowlist(secret)
        assert "secret-org" not in str(exc_info.value)
        assert "hidden-repo" not in exc_info.value.message

    def test_invalid_json_message_does_not_echo_secret(self):
        with pytest.raises(MalformedAllowlist) as exc_info:
            parse_allowlist('["secret-org/hidden-repo"')
        assert "secret-org" not in str(exc_info.value)
        assert exc_info.value.code == "malformed_allowlist"
