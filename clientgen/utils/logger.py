"""structlog setup for clientgen.

Everything is written to stderr: stdout is reserved for the ``::error::`` /
``::notice::`` workflow commands printed by clientgen.summary, and the Actions
log shows both streams interleaved anyway.

The run's ULID is bound with structlog.contextvars for the lifetime of a
pipeline run, so every line logged by gate, fetch, toolchain and publisher
carries ``run_id`` without threading it through call signatures.
"""

import logging
import sys
import time
from typing import Any, Optional

import structlog
from structlog.types import Processor

RUN_ID_KEY = "run_id"


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """(Re)configure structlog.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names fall back to INFO.
        json_output: One JSON object per line instead of the console renderer.
    """
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        # Runner logs are not a TTY; colours only add escape noise there
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        # Resolve sys.stderr per logger so redirected streams are honoured
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "clientgen") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_run_id(run_id: str) -> None:
    """Bind the run's ULID to every subsequent log line in this context."""
    structlog.contextvars.bind_contextvars(**{RUN_ID_KEY: run_id})


def clear_run_id() -> None:
    structlog.contextvars.unbind_contextvars(RUN_ID_KEY)


def current_run_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get(RUN_ID_KEY)


class PerformanceLogger:
    """Time one pipeline step and log "<step> completed" or "<step> failed".

    Exceptions are never swallowed; the failure line records only the
    exception type, since messages from downstream tools can be long.
    """

    def __init__(self, operation: str, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self.operation = operation
        self.logger = logger or get_logger()
        self._started = 0.0

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        elapsed_ms = round((time.perf_counter() - self._started) * 1000, 2)
        if exc_type is None:
            self.logger.info(
                f"{self.operation} completed", operation=self.operation, duration_ms=elapsed_ms
            )
            return
        self.logger.error(
            f"{self.operation} failed",
            operation=self.operation,
            duration_ms=elapsed_ms,
            error_type=exc_type.__name__,
        )


# Defaults until clientgen.cli applies the loaded config
configure_logging()
