"""Unit tests for the CI workflow helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from p4checkout.workspace.log import log_group, set_output


def test_log_group_markers_under_github_actions(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setenv("GITHUB_ACTIONS", "true")

    with log_group("Login to server"):
        print("inside")

    assert capsys.readouterr().out == "::group::Login to server\ninside\n::endgroup::\n"


def test_log_group_closes_on_error(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.setenv("GITHUB_ACTIONS", "true")

    with pytest.raises(RuntimeError), log_group("Sync"):
        raise RuntimeError

    assert capsys.readouterr().out.endswith("::endgroup::\n")


def test_log_group_plain(capsys: pytest.CaptureFixture) -> None:
    with log_group("Sync"):
        pass

    assert "::group::" not in capsys.readouterr().out


def test_set_output_appends(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    output_file = tmp_path / "out"
    output_file.write_text("existing=1\n")
    monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))

    set_output("commit", "@42")

    assert output_file.read_text() == "existing=1\ncommit=@42\n"


def test_set_output_without_file(tmp_path: Path) -> None:
    # No GITHUB_OUTPUT: only logged, nothing written.
    set_output("commit", "@42")

    assert list(tmp_path.iterdir()) == []
