"""Subprocess runner for external tools (openapi-generator, npm).

run_tool() is the single place clientgen shells out. It:
  - runs one command to completion (no shell, argv list only)
  - forwards the tool's combined output to stderr so it lands in the job log
  - raises DownstreamFailure on a non-zero exit or a missing executable,
    carrying the step name, exit code and the tool's output verbatim

Never retries. Environment overrides are merged onto os.environ for the child
process only; they are never logged (NODE_AUTH_TOKEN travels this way).
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Optional, Union

from clientgen.errors import DownstreamFailure
from clientgen.utils.logger import get_logger

logger = get_logger(__name__)


def run_tool(
    step: str,
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Run an external tool and return its combined stdout/stderr.

    Args:
        step: Pipeline step name used in logs and errors ("generate", "build", "publish").
        argv: Command and arguments.
        cwd:  Working directory for the child process.
        env:  Extra environment variables for the child (merged onto os.environ).

    Raises:
        DownstreamFailure: executable not found, or the tool exited non-zero.
    """
    child_env = dict(os.environ)
    if env:
        child_env.update(env)

    logger.info("Running tool", step=step, argv=list(argv), cwd=str(cwd) if cwd else None)

    try:
        completed = subprocess.run(
            list(argv),
            cwd=cwd,
            env=child_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        logger.error("Tool executable not found", step=step, executable=argv[0])
        raise DownstreamFailure(
            step,
            f"{step} failed: executable '{argv[0]}' not found on PATH",
        ) from None

    output = completed.stdout or ""
    if output:
        sys.stderr.write(output)
        if not output.endswith("\n"):
            sys.stderr.write("\n")

    if completed.returncode != 0:
        logger.error("Tool exited non-zero", step=step, returncode=completed.returncode)
        raise DownstreamFailure(
            step,
            f"{step} failed: '{argv[0]}' exited with status {completed.returncode}",
            returncode=completed.returncode,
            output=output,
        )

    return output
