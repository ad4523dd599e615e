# SPDX-License-Identifier: MIT
"""Host platform detection."""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass
from functools import lru_cache

# Normalize platform.machine() spellings
_ARCH_ALIASES: dict[str, str] = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "x86_64": "x86_64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "aarch64": "arm64",
    "arm64": "arm64",
}


@dataclass(frozen=True)
class Platform:
    """Description of the host the build description runs on.

    Attributes:
        os: Operating system name ("windows", "linux", "darwin", ...).
        arch: Normalized CPU architecture ("x86_64", "x86", "arm64", ...).
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"


@lru_cache(maxsize=1)
def get_platform() -> Platform:
    """Detect the host platform (cached)."""
    if sys.platform == "win32":
        os_name = "windows"
    elif sys.platform == "darwin":
        os_name = "darwin"
    else:
        os_name = sys.platform.rstrip("0123456789")
    machine = _platform.machine().lower()
    return Platform(os=os_name, arch=_ARCH_ALIASES.get(machine, machine))
