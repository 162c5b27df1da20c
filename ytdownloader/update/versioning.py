"""
Parsing and comparison of dotted ``major.minor.patch`` version strings.
"""

import re
from dataclasses import dataclass

_LEADING_DIGITS = re.compile(r"\s*(\d+)")


def _coerce_component(raw: str) -> int:
    """Returns the leading integer of a version segment, or 0 if there is none."""
    match = _LEADING_DIGITS.match(raw)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True, order=True)
class VersionTriple:
    """A (major, minor, patch) version; ordering is lexicographic."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "VersionTriple":
        """
        Parses a dot-separated version string.

        Missing or non-numeric segments become 0 and anything past the third
        segment is ignored, so parsing never fails.
        """
        parts = (text or "").split(".")
        parts += [""] * (3 - len(parts))
        return cls(*(_coerce_component(part) for part in parts[:3]))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def is_newer(candidate: str, baseline: str) -> bool:
    """Returns True if ``candidate`` is strictly newer than ``baseline``."""
    return VersionTriple.parse(candidate) > VersionTriple.parse(baseline)


class VersionGate:
    """Decides whether a published release should replace the running build."""

    def __init__(self, current_version: str):
        self.current_version = current_version
        self._current = VersionTriple.parse(current_version)

    def update_available(self, candidate: str) -> bool:
        return VersionTriple.parse(candidate) > self._current
