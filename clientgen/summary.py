"""GitHub Actions job summary and annotations.

Every run ends with a visible outcome in the job's user-facing surfaces:
  - ``$GITHUB_STEP_SUMMARY`` — Markdown appended by write_step_summary()
  - ``::error::`` / ``::notice::`` workflow commands printed to stdout

Failure output carries only the error code and its message. ClientGenError
messages never include allowlist contents, so nothing here re-reads the
secret or echoes it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from clientgen.constants import ENV_GITHUB_STEP_SUMMARY
from clientgen.errors import ClientGenError, DownstreamFailure
from clientgen.utils.logger import get_logger

if TYPE_CHECKING:
    from clientgen.pipeline import PipelineResult

logger = get_logger(__name__)

_VALID_LEVELS = frozenset({"error", "warning", "notice"})


def _escape_command_data(message: str) -> str:
    # Workflow command data must escape %, CR and LF
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_command_property(value: str) -> str:
    # Property values additionally escape the ":" and "," delimiters
    return _escape_command_data(value).replace(":", "%3A").replace(",", "%2C")


def emit_annotation(level: str, message: str, title: Optional[str] = None) -> None:
    """Print a workflow command annotation (``::error title=...::message``)."""
    if level not in _VALID_LEVELS:
        raise ValueError(f"unknown annotation level: {level}")
    props = f" title={_escape_command_property(title)}" if title else ""
    sys.stdout.write(f"::{level}{props}::{_escape_command_data(message)}\n")
    sys.stdout.flush()


def render_success(result: "PipelineResult") -> str:
    heading = "Dry run completed" if result.dry_run else "Client published"
    lines = [
        f"## {heading}",
        "",
        "| Field | Value |",
        "|---|---|",
        f"| Package | `{result.package_name}` |",
        f"| Version | `{result.package_version}` |",
        f"| Registry | {result.npm_registry} |",
        f"| Auth | {result.auth_mode} |",
        f"| Published | {'yes' if result.published else 'no'} |",
        f"| Run ID | `{result.run_id}` |",
        "",
    ]
    return "\n".join(lines)


def render_failure(error: ClientGenError, run_id: Optional[str] = None) -> str:
    lines = [
        "## Client generation failed",
        "",
        f"**Error:** `{error.code}`",
        "",
        error.message,
        "",
    ]
    if isinstance(error, DownstreamFailure) and error.returncode is not None:
        lines.extend([f"Step `{error.step}` exited with status {error.returncode}.", ""])
    if run_id:
        lines.extend([f"Run ID: `{run_id}`", ""])
    return "\n".join(lines)


def write_step_summary(
    outcome: Union["PipelineResult", ClientGenError],
    path: Optional[Union[str, Path]] = None,
    run_id: Optional[str] = None,
) -> Optional[Path]:
    """Append a Markdown summary for the run. Returns the path written, if any.

    ``path`` defaults to ``$GITHUB_STEP_SUMMARY``; outside Actions (unset) this
    is a no-op.
    """
    target = path or os.environ.get(ENV_GITHUB_STEP_SUMMARY)
    if not target:
        logger.debug("GITHUB_STEP_SUMMARY not set — skipping job summary")
        return None

    if isinstance(outcome, ClientGenError):
        body = render_failure(outcome, run_id=run_id)
    else:
        body = render_success(outcome)

    summary_path = Path(target)
    with summary_path.open("a") as fh:
        fh.write(body)
        fh.write("\n")
    return summary_path
