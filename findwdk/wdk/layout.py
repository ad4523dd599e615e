# SPDX-License-Identifier: MIT
"""WDK directory layouts.

Two generations of kits are in use:

- Legacy (WDK 8.0, 8.1): ``<root>/Include/km/ntddk.h``, libraries under
  ``<root>/Lib/<codename>/`` where codename is winv6.3, win8 or win7.
- Modern (WDK 10 and later): ``<root>/Include/<version>/km/ntddk.h``,
  libraries under ``<root>/Lib/<version>/``.

The layout is decided once from the marker header that was selected,
and every other path is derived from the resulting SdkInstallation by
derive_paths().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from findwdk.core.errors import SdkNotFoundError
from findwdk.wdk.version import is_numeric_version

logger = logging.getLogger(__name__)

# Library codenames of legacy kits, newest first
LEGACY_CODENAMES: tuple[str, ...] = ("winv6.3", "win8", "win7")


class LayoutKind(Enum):
    LEGACY = "legacy"
    MODERN = "modern"


@dataclass(frozen=True)
class SdkInstallation:
    """A selected WDK installation.

    Attributes:
        root: Kit root directory (contains Include/, Lib/, bin/).
        version: Kit version ("10.0.22000.0") or legacy codename ("winv6.3").
        lib_version: Directory name under Lib/.
        include_version: Directory name under Include/ ("" for legacy kits).
        layout: Which layout the kit uses.
        marker: The ntddk.h the installation was found by.
    """

    root: Path
    version: str
    lib_version: str
    include_version: str
    layout: LayoutKind
    marker: Path


def classify_layout(marker: Path) -> LayoutKind:
    """Tell the layout of a kit from its marker header path.

    The directory holding ``km/`` is a numeric version in modern kits
    and ``Include`` itself in legacy ones.
    """
    if is_numeric_version(marker.parent.parent.name):
        return LayoutKind.MODERN
    return LayoutKind.LEGACY


def normalize(marker: Path) -> SdkInstallation:
    """Derive the installation description from a marker header.

    Raises:
        SdkNotFoundError: If a legacy kit has none of the known
            library codename directories.
    """
    layout = classify_layout(marker)
    version_dir = marker.parent.parent

    if layout is LayoutKind.MODERN:
        version = version_dir.name
        root = version_dir.parent.parent
        return SdkInstallation(
            root=root,
            version=version,
            lib_version=version,
            include_version=version,
            layout=layout,
            marker=marker,
        )

    root = version_dir.parent
    for codename in LEGACY_CODENAMES:
        if (root / "Lib" / codename).is_dir():
            logger.debug("Legacy WDK at %s, library codename %s", root, codename)
            return SdkInstallation(
                root=root,
                version=codename,
                lib_version=codename,
                include_version="",
                layout=layout,
                marker=marker,
            )
    raise SdkNotFoundError(
        f"legacy WDK at {root} has no library directory "
        f"({', '.join(LEGACY_CODENAMES)})",
        [root / "Lib"],
    )


def _join(base: Path, *parts: str) -> Path:
    # Legacy kits have an empty include version; skip empty segments
    return base.joinpath(*(p for p in parts if p))


@dataclass(frozen=True)
class SdkPaths:
    """Directories derived from an installation."""

    include: Path
    shared: Path
    km: Path
    km_crt: Path
    um: Path
    ucrt: Path
    winrt: Path
    lib: Path
    bin: Path
    wpp_config: Path
    warning_h: Path

    def kernel_lib_dir(self, dir_name: str) -> Path:
        """Directory of the kernel-mode .lib files for a platform."""
        return self.lib / "km" / dir_name

    def user_lib_dir(self, dir_name: str) -> Path:
        """Directory of the user-mode .lib files for a platform."""
        return self.lib / "um" / dir_name


def derive_paths(installation: SdkInstallation) -> SdkPaths:
    """Compute every directory the target configurators need."""
    root = installation.root
    include = _join(root, "Include", installation.include_version)
    return SdkPaths(
        include=include,
        shared=include / "shared",
        km=include / "km",
        km_crt=include / "km" / "crt",
        um=include / "um",
        ucrt=include / "ucrt",
        winrt=include / "winrt",
        lib=_join(root, "Lib", installation.lib_version),
        bin=root / "bin",
        wpp_config=_join(root, "bin", installation.include_version, "WppConfig", "Rev1"),
        warning_h=include / "shared" / "warning.h",
    )


def framework_include_dir(root: Path, framework: str, version: str) -> Path:
    """Include directory of a KMDF/UMDF version, e.g. Include/wdf/kmdf/1.15."""
    return root / "Include" / "wdf" / framework / version


def framework_lib_dir(root: Path, framework: str, dir_name: str, version: str) -> Path:
    """Library directory of a KMDF/UMDF version for a platform."""
    return root / "Lib" / "wdf" / framework / dir_name / version
