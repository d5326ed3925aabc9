# src/core/semver.py — v1
"""Semantic version (MAJOR.MINOR.PATCH) parsing and ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class Version:
    """Semantic version compared field by field: major, then minor, then patch.

    Breaking changes: increment MAJOR
    New features (backwards compatible): increment MINOR
    Bug fixes: increment PATCH
    """

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @classmethod
    def from_string(cls, version_str: str) -> Version:
        """Parse version from string (e.g., '1.2.3' or 'v1.2.3')."""
        match = _VERSION_RE.match(version_str.strip())
        if not match:
            raise ValueError(f"Invalid version format: {version_str!r}")
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3)),
        )

    def same_lineage(self, other: Version) -> bool:
        """True when both versions share the MAJOR component."""
        return self.major == other.major


def parse_version(value: str | None) -> Version | None:
    """Parse an optional version string; None stays None."""
    if value is None:
        return None
    return Version.from_string(value)
