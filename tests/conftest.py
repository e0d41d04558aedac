"""Root test configuration for clientgen.

Every test runs in its own temporary working directory with the GitHub and
clientgen environment variables cleared, so nothing leaks in from a CI runner
(GITHUB_STEP_SUMMARY, ACTIONS_ID_TOKEN_REQUEST_URL, ALLOWED_REPOS ...) or from
a developer's ~/.clientgen/config.yaml.

No test ever runs the real openapi-generator or npm: the ``fake_tools``
fixture replaces subprocess.run inside clientgen.toolchain.runner.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import pytest

_ISOLATED_ENV_VARS = (
    "ALLOWED_REPOS",
    "NPM_TOKEN",
    "NODE_AUTH_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_STEP_SUMMARY",
    "ACTIONS_ID_TOKEN_REQUEST_URL",
    "ACTIONS_ID_TOKEN_REQUEST_TOKEN",
    "CLIENTGEN_CONFIG",
    "CLIENTGEN_SELF_REPOSITORY",
    "CLIENTGEN_LOG_LEVEL",
    "CLIENTGEN_LOG_JSON",
    "INPUT_OPENAPI_SPEC_URL",
    "INPUT_PACKAGE_NAME",
    "INPUT_PACKAGE_VERSION",
    "INPUT_NPM_REGISTRY",
    "INPUT_DRY_RUN",
)

SELF_REPO = "kubev2v/migration-planner-client-generator"

OPENAPI_JSON = (
    '{"openapi": "3.0.3", "info": {"title": "Planner API", "version": "1.0.0"}, "paths": {}}'
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Clear CI env vars, isolate HOME and chdir into a fresh temp dir."""
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(
        "clientgen.config.DEFAULT_CONFIG_PATHS",
        [".clientgen/config.yaml", str(home / ".clientgen" / "config.yaml")],
    )
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


class FakeToolchain:
    """Records external tool invocations and returns scripted exit codes.

    ``failures`` maps a step marker (argv[1], e.g. "generate", "install",
    "publish", or "run" for ``npm run build``) to (returncode, output).
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.failures: dict[str, tuple[int, str]] = {}
        self.missing: set[str] = set()

    def __call__(self, argv: Sequence[str], **kwargs: Any) -> subprocess.CompletedProcess:
        argv = list(argv)
        self.calls.append({"argv": argv, "cwd": kwargs.get("cwd"), "env": kwargs.get("env") or {}})
        if argv[0] in self.missing:
            raise FileNotFoundError(argv[0])
        marker = argv[1] if len(argv) > 1 else ""
        if marker == "generate":
            output_dir = Path(argv[argv.index("-o") + 1])
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / "package.json").write_text("{}")
        returncode, output = self.failures.get(marker, (0, f"{marker} ok\n"))
        return subprocess.CompletedProcess(argv, returncode, stdout=output, stderr=None)

    def argvs(self) -> list[list[str]]:
        return [call["argv"] for call in self.calls]

    def call_for(self, marker: str) -> Optional[dict[str, Any]]:
        for call in self.calls:
            if len(call["argv"]) > 1 and call["argv"][1] == marker:
                return call
        return None


@pytest.fixture
def fake_tools(monkeypatch: pytest.MonkeyPatch) -> FakeToolchain:
    fake = FakeToolchain()
    monkeypatch.setattr("clientgen.toolchain.runner.subprocess.run", fake)
    return fake


@pytest.fixture
def spec_file(isolated_env: Path) -> Path:
    """A valid OpenAPI document on disk, addressable via a file:// URL."""
    path = isolated_env.parent / "openapi.json"
    path.write_text(OPENAPI_JSON)
    return path
