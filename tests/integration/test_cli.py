"""Integration tests for the clientgen CLI entry point.

Covers:
  - run: exit codes for success, auth failures, invalid input, downstream failure
  - run: ::error:: annotation and job summary never leak allowlist contents
  - check-access: gate only
  - init-secrets / clean: local act-cli helpers
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from clientgen.cli import main, render_secrets_template

SELF = "kubev2v/migration-planner-client-generator"
CALLER = "kubev2v/migration-planner-ui"
SECRET_ALLOWLIST = json.dumps([CALLER, "hidden-org/private-repo"])


@pytest.fixture
def ci_env(monkeypatch, spec_file: Path, tmp_path: Path) -> Path:
    """Environment as set by the reusable workflow. Returns the summary path."""
    summary = tmp_path / "step-summary.md"
    monkeypatch.setenv("GITHUB_REPOSITORY", CALLER)
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary))
    monkeypatch.setenv("ALLOWED_REPOS", SECRET_ALLOWLIST)
    monkeypatch.setenv("NPM_TOKEN", "npm_secret_value")
    monkeypatch.setenv("INPUT_OPENAPI_SPEC_URL", spec_file.as_uri())
    monkeypatch.setenv("INPUT_PACKAGE_NAME", "@kubev2v/migration-planner-client")
    monkeypatch.setenv("INPUT_PACKAGE_VERSION", "0.3.0")
    return summary


# ─── run ─────────────────────────────────────────────────────────────────────


class TestRunCommand:
    def test_success(self, fake_tools, ci_env, capsys):
        assert main(["run"]) == 0
        out = capsys.readouterr().out
        assert "::notice::Published @kubev2v/migration-planner-client@0.3.0" in out
        assert "## Client published" in ci_env.read_text()
        assert fake_tools.call_for("publish") is not None

    def test_flags_override_env(self, fake_tools, ci_env):
        assert main(["run", "--package-version", "0.4.0-rc.1", "--dry-run"]) == 0
        generate_argv = fake_tools.call_for("generate")["argv"]
        assert "npmVersion=0.4.0-rc.1" in generate_argv[-1]
        assert fake_tools.call_for("publish")["argv"][-1] == "--dry-run"

    def test_dry_run_from_env(self, fake_tools, ci_env, monkeypatch, capsys):
        monkeypatch.setenv("INPUT_DRY_RUN", "true")
        monkeypatch.delenv("NPM_TOKEN")
        assert main(["run"]) == 0
        assert "Dry run completed for" in capsys.readouterr().out

    def test_unauthorized_exit_code_and_no_leak(self, fake_tools, ci_env, capsys):
        assert main(["run", "--caller", "intruder/repo"]) == 3
        captured = capsys.readouterr()
        assert "::error title=unauthorized::" in captured.out
        for surface in (captured.out, captured.err, ci_env.read_text()):
            assert "hidden-org" not in surface
        assert fake_tools.calls == []

    def test_malformed_allowlist(self, fake_tools, ci_env, monkeypatch, capsys):
        monkeypatch.setenv("ALLOWED_REPOS", "hidden-org/private-repo")
        assert main(["run"]) == 3
        captured = capsys.readouterr()
        assert "::error title=malformed_allowlist::" in captured.out
        assert "hidden-org" not in captured.out + captured.err
        assert fake_tools.calls == []

    def test_missing_allowlist_secret(self, fake_tools, ci_env, monkeypatch):
        monkeypatch.delenv("ALLOWED_REPOS")
        assert main(["run"]) == 3
        assert fake_tools.calls == []

    def test_missing_caller(self, fake_tools, ci_env, monkeypatch, capsys):
        monkeypatch.delenv("GITHUB_REPOSITORY")
        assert main(["run"]) == 2
        assert "::error title=invalid_input::" in capsys.readouterr().out

    def test_invalid_version(self, fake_tools, ci_env, capsys):
        assert main(["run", "--package-version", "one"]) == 2
        assert "package-version" in capsys.readouterr().out
        assert fake_tools.calls == []

    def test_gate_checked_before_inputs(self, fake_tools, ci_env, capsys):
        assert main(["run", "--caller", "intruder/repo", "--package-version", "one"]) == 3
        assert "::error title=unauthorized::" in capsys.readouterr().out

    def test_non_utf8_spec_file_reported(self, fake_tools, ci_env, tmp_path: Path, capsys):
        source = tmp_path / "binary.json"
        source.write_bytes(b'{"openapi": "3.0.0", "info": {"title": "\xff\xfe"}}')
        assert main(["run", "--openapi-spec-url", source.as_uri(), "--dry-run"]) == 1
        assert "::error title=spec_fetch_failed::" in capsys.readouterr().out
        assert "## Client generation failed" in ci_env.read_text()
        assert fake_tools.calls == []

    def test_unexpected_error_reported(self, fake_tools, ci_env, monkeypatch, capsys):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("clientgen.cli.run_pipeline", explode)
        assert main(["run"]) == 1
        assert "::error title=downstream_failure::Unexpected RuntimeError" in capsys.readouterr().out
        assert "## Client generation failed" in ci_env.read_text()

    def test_downstream_failure(self, fake_tools, ci_env, capsys):
        fake_tools.failures["publish"] = (1, "npm ERR! 403 Forbidden")
        assert main(["run"]) == 1
        captured = capsys.readouterr()
        assert "npm ERR! 403 Forbidden" in captured.err
        assert "::error title=downstream_failure::" in captured.out
        assert "Step `publish` exited with status 1." in ci_env.read_text()

    def test_token_never_logged(self, fake_tools, ci_env, capsys):
        assert main(["run"]) == 0
        captured = capsys.readouterr()
        assert "npm_secret_value" not in captured.out + captured.err
        assert "npm_secret_value" not in (Path("generated-client") / ".npmrc").read_text()

    def test_config_error_exits(self, ci_env, tmp_path: Path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("version: 9\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(bad), "run"])
        assert exc_info.value.code == 1

    def test_config_self_repository_used(self, fake_tools, ci_env, monkeypatch, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text("version: 1\nself_repository: my-org/generator\n")
        monkeypatch.setenv("ALLOWED_REPOS", "[]")
        monkeypatch.setenv("GITHUB_REPOSITORY", "my-org/generator")
        assert main(["--config", str(config), "run"]) == 0


# ─── check-access ────────────────────────────────────────────────────────────


class TestCheckAccess:
    def test_authorized(self, ci_env, capsys):
        assert main(["check-access"]) == 0
        assert f"'{CALLER}' is authorized" in capsys.readouterr().out

    def test_self_bypass(self, ci_env, monkeypatch):
        monkeypatch.setenv("ALLOWED_REPOS", "[]")
        assert main(["check-access", "--caller", SELF]) == 0

    def test_unauthorized(self, ci_env):
        assert main(["check-access", "--caller", "kubev2v/migration-planner"]) == 3

    def test_malformed(self, ci_env, monkeypatch):
        monkeypatch.setenv("ALLOWED_REPOS", "{}")
        assert main(["check-access"]) == 3


# ─── init-secrets / clean ────────────────────────────────────────────────────


class TestLocalHelpers:
    def test_init_secrets(self, capsys):
        assert main(["init-secrets"]) == 0
        body = Path(".secrets").read_text()
        assert "NPM_TOKEN=fake-token-for-testing" in body
        assert f'ALLOWED_REPOS=["{SELF}"]' in body
        assert "Never commit this file" in body

    def test_init_secrets_custom_repository(self):
        assert main(["init-secrets", "--path", "local.secrets", "--repository", "me/fork"]) == 0
        assert 'ALLOWED_REPOS=["me/fork"]' in Path("local.secrets").read_text()

    def test_init_secrets_refuses_overwrite(self, capsys):
        Path(".secrets").write_text("keep me")
        assert main(["init-secrets"]) == 2
        assert Path(".secrets").read_text() == "keep me"
        assert "already exists" in capsys.readouterr().out

    def test_template_allowlist_parses(self):
        from clientgen.gate import parse_allowlist

        line = next(
            entry
            for entry in render_secrets_template("a/b").splitlines()
            if entry.startswith("ALLOWED_REPOS=")
        )
        assert parse_allowlist(line.split("=", 1)[1]) == ["a/b"]

    def test_clean(self):
        for name in ("generated-client", ".openapi-spec", ".act"):
            Path(name).mkdir()
            (Path(name) / "file").write_text("x")
        Path(".secrets").write_text("NPM_TOKEN=x")
        assert main(["clean"]) == 0
        assert not Path("generated-client").exists()
        assert not Path(".openapi-spec").exists()
        assert not Path(".act").exists()
        assert Path(".secrets").exists()

    def test_clean_all_removes_secrets(self):
        Path(".secrets").write_text("NPM_TOKEN=x")
        assert main(["clean", "--all"]) == 0
        assert not Path(".secrets").exists()

    def test_clean_nothing_to_do(self):
        assert main(["clean"]) == 0
