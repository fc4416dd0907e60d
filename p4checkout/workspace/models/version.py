"""Perforce version parsing and minimum-version checks.

Versions are the ``<year>.<release>`` pairs reported by ``p4 -V``, for
example ``2023.2``.  Parsing never raises: anything that is not a complete
``<digits>.<digits>`` pair yields an invalid (unset) version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)?$")
_BANNER_RE = re.compile(r"Rev\. P4/\w+/(\d+\.\d+)/\d+ ")


class InvalidVersionError(ValueError):
    """A minimum version argument was itself invalid."""


@dataclass(frozen=True)
class PerforceVersion:
    """Immutable ``major.minor`` pair.  ``None`` fields mean "unset"."""

    major: int | None = None
    minor: int | None = None

    @classmethod
    def parse(cls, raw: str | None) -> PerforceVersion:
        if not raw:
            return cls()
        match = _VERSION_RE.match(raw)
        if match is None or match.group(2) is None:
            return cls()
        return cls(major=int(match.group(1)), minor=int(match.group(2)))

    @classmethod
    def from_banner(cls, banner: str) -> PerforceVersion:
        """Extract the version from ``p4 -V`` output."""
        match = _BANNER_RE.search(banner)
        return cls.parse(match.group(1) if match else None)

    @property
    def is_valid(self) -> bool:
        return self.major is not None and self.minor is not None

    def check_minimum(self, minimum: PerforceVersion) -> bool:
        """Return whether this version is at least ``minimum``.

        Raises ``InvalidVersionError`` if ``minimum`` is invalid.  An invalid
        ``self`` always fails the check: an unknown version is never assumed
        to be new enough.
        """
        if not minimum.is_valid:
            msg = "Arg minimum is not a valid version"
            raise InvalidVersionError(msg)

        if not self.is_valid:
            return False

        # Major is insufficient
        if self.major < minimum.major:
            return False

        # Major is equal, minor is insufficient
        return not (self.major == minimum.major and self.minor < minimum.minor)

    def __str__(self) -> str:
        if not self.is_valid:
            return ""
        return f"{self.major}.{self.minor}"


MINIMUM_P4_VERSION = PerforceVersion(major=2019, minor=1)
"""Oldest p4 release supporting every command the controller issues."""
