"""Shared test fixtures: settings factory and cache reset.

Tests never need a p4 binary or server; see ``tests/fakes.py`` for the
scripted command runner.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from p4checkout.workspace.settings import CheckoutSettings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _no_ci_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host CI's variables from leaking into settings and outputs."""
    for name in ("GITHUB_ACTIONS", "GITHUB_OUTPUT", "GITHUB_WORKSPACE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., CheckoutSettings]:
    """Factory for settings rooted under ``tmp_path``."""

    def _make(**overrides: object) -> CheckoutSettings:
        values: dict[str, object] = {
            "client_template": "T",
            "user": "ci",
            "port": "ssl:perforce:1666",
            "hostname": "runner-1",
            "workspace_root": str(tmp_path),
            "path": "checkout",
            "ref": "@42",
        }
        values.update(overrides)
        return CheckoutSettings(**values)

    return _make
