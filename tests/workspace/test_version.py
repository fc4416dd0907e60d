"""Unit tests for PerforceVersion parsing and minimum checks."""

from __future__ import annotations

import pytest

from p4checkout.workspace.models.version import (
    MINIMUM_P4_VERSION,
    InvalidVersionError,
    PerforceVersion,
)

# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


def test_parse_valid() -> None:
    version = PerforceVersion.parse("2023.2")

    assert version.is_valid is True
    assert version.major == 2023
    assert version.minor == 2


@pytest.mark.parametrize("raw", [None, "", "2023", "2023.", "v2023.2", "2023.2.1", "2023.x", " 2023.2"])
def test_parse_invalid(raw: str | None) -> None:
    version = PerforceVersion.parse(raw)

    assert version.is_valid is False
    assert str(version) == ""


def test_str() -> None:
    assert str(PerforceVersion.parse("2021.10")) == "2021.10"


def test_from_banner() -> None:
    banner = "Perforce - The Fast Software Configuration Management System.\nRev. P4/NTX64/2022.1/2305383 (2022/06/08).\n"

    assert PerforceVersion.from_banner(banner) == PerforceVersion(major=2022, minor=1)


def test_from_banner_garbage() -> None:
    assert PerforceVersion.from_banner("p4: command not found").is_valid is False


# ---------------------------------------------------------------------------
# check_minimum
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("version", "minimum", "expected"),
    [
        ("2023.2", "2023.2", True),
        ("2023.3", "2023.2", True),
        ("2023.1", "2023.2", False),
        ("2024.0", "2023.9", True),
        ("2024.1", "2023.1", True),
        ("2022.9", "2023.1", False),
        ("2022.1", "2023.4", False),
    ],
)
def test_check_minimum(version: str, minimum: str, expected: bool) -> None:
    assert PerforceVersion.parse(version).check_minimum(PerforceVersion.parse(minimum)) is expected


def test_check_minimum_invalid_minimum_raises() -> None:
    with pytest.raises(InvalidVersionError):
        PerforceVersion.parse("2023.2").check_minimum(PerforceVersion.parse("2023"))


def test_check_minimum_invalid_self_fails_closed() -> None:
    assert PerforceVersion.parse("garbage").check_minimum(MINIMUM_P4_VERSION) is False


def test_invalid_self_with_invalid_minimum_still_raises() -> None:
    with pytest.raises(InvalidVersionError):
        PerforceVersion().check_minimum(PerforceVersion())
