"""Unit tests for CheckoutSettings (env loading and path resolution)."""

from __future__ import annotations

from pathlib import Path

import pytest

from p4checkout.workspace.settings import CheckoutSettings, RepositoryPathError, get_settings


def test_reads_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("P4_CLIENT_TEMPLATE", "build_tmpl")
    monkeypatch.setenv("P4_USE_TEMPLATE_CLIENT", "true")
    monkeypatch.setenv("P4_USER", "ci")
    monkeypatch.setenv("P4_PORT", "ssl:perforce:1666")
    monkeypatch.setenv("P4_REF", "@100")
    monkeypatch.setenv("P4_HOSTNAME", "runner-9")

    settings = CheckoutSettings()

    assert settings.client_template == "build_tmpl"
    assert settings.use_template_client is True
    assert settings.user == "ci"
    assert settings.port == "ssl:perforce:1666"
    assert settings.ref == "@100"
    assert settings.hostname == "runner-9"
    assert settings.executable == "p4"


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("P4_CLIENT_TEMPLATE", "t")
    monkeypatch.setenv("P4_USER", "ci")

    settings = CheckoutSettings()

    assert settings.use_template_client is False
    assert settings.port is None
    assert settings.ref == ""
    assert settings.path == "."
    assert settings.hostname


def test_github_workspace_alias(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GITHUB_WORKSPACE", str(tmp_path))

    settings = CheckoutSettings(client_template="t", user="ci", path="src")

    assert settings.workspace_root == str(tmp_path)
    assert settings.resolve_repository_path() == (tmp_path / "src").resolve()


def test_path_defaults_to_workspace_root(tmp_path: Path) -> None:
    settings = CheckoutSettings(client_template="t", user="ci", workspace_root=str(tmp_path))

    assert settings.resolve_repository_path() == tmp_path.resolve()


def test_path_escaping_workspace_rejected(tmp_path: Path) -> None:
    settings = CheckoutSettings(client_template="t", user="ci", workspace_root=str(tmp_path), path="../sibling")

    with pytest.raises(RepositoryPathError, match="is not under"):
        settings.resolve_repository_path()


def test_absolute_path_without_workspace(tmp_path: Path) -> None:
    settings = CheckoutSettings(client_template="t", user="ci", path=str(tmp_path / "abs"))

    assert settings.resolve_repository_path() == (tmp_path / "abs").resolve()


def test_get_settings_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("P4_CLIENT_TEMPLATE", "first")
    monkeypatch.setenv("P4_USER", "ci")

    assert get_settings() is get_settings()
    assert get_settings().client_template == "first"

    monkeypatch.setenv("P4_CLIENT_TEMPLATE", "second")
    assert get_settings().client_template == "first"

    get_settings.cache_clear()
    assert get_settings().client_template == "second"
