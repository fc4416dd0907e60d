"""Logging configuration using loguru.

Intercepts stdlib logging so that anyio, asyncio, etc. all flow through
loguru with a unified format.  Also provides the two CI workflow helpers
the controller needs: collapsible log groups and step outputs.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger


class _InterceptHandler(logging.Handler):
    """Bridge stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Map stdlib level name -> loguru level
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk the call stack so loguru reports the real call-site
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru as the sole logging sink.

    Call this once at process startup.
    """
    level = level.upper()

    # Remove default loguru handler and add ours
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
    )

    # Intercept all stdlib logging
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.debug("Logging initialised (level={})", level)


# ---------------------------------------------------------------------------
# CI workflow helpers
# ---------------------------------------------------------------------------


def _in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


@contextmanager
def log_group(title: str) -> Iterator[None]:
    """Bracket a phase of work.

    Under GitHub Actions the output between the markers is folded into a
    collapsible group; elsewhere the title is just logged.
    """
    if _in_github_actions():
        sys.stdout.write(f"::group::{title}\n")
        sys.stdout.flush()
    else:
        logger.info(title)
    try:
        yield
    finally:
        if _in_github_actions():
            sys.stdout.write("::endgroup::\n")
            sys.stdout.flush()


def set_output(name: str, value: str) -> None:
    """Publish a step output (appended to ``$GITHUB_OUTPUT`` when set)."""
    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        with open(output_file, "a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")
    logger.info("Output {}={}", name, value)
