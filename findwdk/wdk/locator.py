# SPDX-License-Identifier: MIT
"""Locate installed WDKs.

A WDK is recognized by its kernel header, ``km/ntddk.h``. Candidates are
collected either under the directory named by the ``WDKContentRoot``
environment variable (set by the Enterprise WDK build environment) or
under the kits root recorded in the registry, and the newest one wins.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from findwdk.core.errors import SdkNotFoundError
from findwdk.wdk.version import is_numeric_version, natural_key

logger = logging.getLogger(__name__)

CONTENT_ROOT_ENV = "WDKContentRoot"
KITS_ROOT_KEY = r"SOFTWARE\Microsoft\Windows Kits\Installed Roots"
KITS_ROOT_VALUE = "KitsRoot10"

# Marker header, relative to an include version directory
MARKER = Path("km") / "ntddk.h"


def registry_kits_root() -> Path | None:
    """Read the Windows 10 kits root from the registry.

    Returns:
        The kits root, or None when not on Windows or not installed.
    """
    if sys.platform != "win32":
        logger.debug("Not on Windows, skipping registry lookup")
        return None

    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, KITS_ROOT_KEY) as key:
            value, _ = winreg.QueryValueEx(key, KITS_ROOT_VALUE)
    except FileNotFoundError:
        logger.debug("Registry value %s\\%s not found", KITS_ROOT_KEY, KITS_ROOT_VALUE)
        return None
    return Path(value)


def _glob(root: Path, pattern: str) -> list[Path]:
    # Path.glob yields in directory enumeration order
    return list(root.glob(pattern))


def find_candidates(content_root: Path | str | None = None) -> tuple[list[Path], list[Path]]:
    """Collect candidate marker headers.

    Args:
        content_root: WDK content root to search. Defaults to the
            WDKContentRoot environment variable, then the registry.

    Returns:
        (candidates, searched roots). Candidates are in filesystem
        enumeration order.
    """
    if content_root is None:
        content_root = os.environ.get(CONTENT_ROOT_ENV) or None

    if content_root is not None:
        root = Path(content_root)
        logger.debug("Searching WDK content root %s", root)
        # WDK 10 nests includes per version; WDK 8.0/8.1 do not
        candidates = _glob(root, "Include/*/km/ntddk.h")
        candidates += _glob(root, "Include/km/ntddk.h")
        return candidates, [root]

    kits_root = registry_kits_root()
    if kits_root is None:
        return [], []
    logger.debug("Searching registry kits root %s", kits_root)
    return _glob(kits_root, "Include/*/km/ntddk.h"), [kits_root]


def version_segment(marker: Path) -> str:
    """The path segment that encodes the version of a marker header."""
    return marker.parent.parent.name


def _version_order(marker: Path) -> tuple[bool, tuple[str | int, ...], tuple[str | int, ...]]:
    # Versioned segments sort above legacy ones
    segment = version_segment(marker)
    return (is_numeric_version(segment), natural_key(segment), natural_key(str(marker)))


def select_latest(candidates: list[Path], *, natural_sort: bool = True) -> Path:
    """Pick the newest WDK among the candidate marker headers.

    With natural_sort, candidates are ordered by the natural order of
    their version segment (so 10.0.22000.0 beats 10.0.9200.0) and the
    greatest is returned; a legacy kit (segment ``Include``) sorts below
    any versioned one. Without it, the last candidate in enumeration
    order is returned: which one that is depends on the filesystem, so
    the result is not deterministic when several WDKs are installed.

    Raises:
        SdkNotFoundError: If there are no candidates.
    """
    if not candidates:
        raise SdkNotFoundError("no WDK found")
    if natural_sort:
        ordered = sorted(candidates, key=_version_order)
    else:
        ordered = list(candidates)
        if len(ordered) > 1:
            logger.warning(
                "Natural version sorting disabled: using filesystem order, "
                "selected WDK may not be the latest of %d found",
                len(ordered),
            )
    return ordered[-1]


def locate(
    content_root: Path | str | None = None, *, natural_sort: bool = True
) -> Path:
    """Find the marker header of the newest installed WDK.

    Raises:
        SdkNotFoundError: If no WDK is installed.
    """
    candidates, searched = find_candidates(content_root)
    if not candidates:
        raise SdkNotFoundError("no WDK found", searched)
    for candidate in candidates:
        logger.debug("WDK candidate: %s", candidate)
    return select_latest(candidates, natural_sort=natural_sort)
