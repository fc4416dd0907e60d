"""Checkout directory helpers.

Uses ``anyio.to_thread.run_sync`` so directory removal on large workspaces
does not block the event loop.
"""

from __future__ import annotations

import shutil
from functools import partial
from pathlib import Path

from anyio import to_thread
from loguru import logger


async def prepare_root(path: Path) -> None:
    """Ensure ``path`` is a directory, removing a file that occupies it."""
    await to_thread.run_sync(partial(_prepare_root, path))


async def recreate_root(path: Path) -> None:
    """Delete ``path`` and everything under it, then create it empty."""
    await to_thread.run_sync(partial(_recreate_root, path))


# -- Sync helpers (run in thread pool) -----------------------------------------


def _prepare_root(path: Path) -> None:
    if path.exists() and not path.is_dir():
        logger.warning("Removing file occupying checkout path '{}'", path)
        path.unlink()
    path.mkdir(parents=True, exist_ok=True)


def _recreate_root(path: Path) -> None:
    _rmrf(path)
    path.mkdir(parents=True, exist_ok=True)


def _rmrf(path: Path) -> None:
    """Remove a file or directory tree.  No-op if path doesn't exist."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)
