# SPDX-License-Identifier: MIT
"""Version helpers: natural ordering and framework version parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

from findwdk.core.errors import InvalidFrameworkVersionError

_DIGITS = re.compile(r"(\d+)")
_FRAMEWORK_VERSION = re.compile(r"^(\d+)\.(\d+)$")
_NUMERIC_VERSION = re.compile(r"^[0-9][0-9.]*$")


def natural_key(text: str) -> tuple[str | int, ...]:
    """Sort key that orders digit runs numerically.

    Examples:
        >>> sorted(["10.0.9200.0", "10.0.17763.0"], key=natural_key)
        ['10.0.9200.0', '10.0.17763.0']
    """
    # re.split with a capture group alternates text, digits, text, ...
    # so equal positions always hold the same type.
    parts = _DIGITS.split(text)
    return tuple(int(p) if i % 2 else p for i, p in enumerate(parts))


def is_numeric_version(name: str) -> bool:
    """True for directory names like "10.0.22000.0"."""
    return bool(_NUMERIC_VERSION.match(name))


@dataclass(frozen=True)
class FrameworkVersion:
    """A KMDF or UMDF version such as "1.15".

    The text is kept exactly as given so that it can be used as a path
    segment (``wdf/kmdf/1.15``) without reformatting.
    """

    major: str
    minor: str

    @classmethod
    def parse(cls, text: str) -> FrameworkVersion:
        """Parse "<major>.<minor>" (two non-negative integers).

        Raises:
            InvalidFrameworkVersionError: For any other form.
        """
        match = _FRAMEWORK_VERSION.match(text.strip())
        if match is None:
            raise InvalidFrameworkVersionError(text)
        return cls(match.group(1), match.group(2))

    def defines(self, prefix: str) -> list[str]:
        """Preprocessor definitions, e.g. KMDF_VERSION_MAJOR=1."""
        return [
            f"{prefix}_VERSION_MAJOR={self.major}",
            f"{prefix}_VERSION_MINOR={self.minor}",
        ]

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"
