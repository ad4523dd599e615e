# SPDX-License-Identifier: MIT
"""
findwdk: Windows Driver Kit discovery and driver target configuration.

findwdk locates an installed WDK, derives its version and architecture
dependent paths, and configures build targets (kernel drivers, kernel
libraries, user-mode drivers) with the include paths, flags and post-build
steps the WDK requires.
"""

from __future__ import annotations

import json
import os

__version__ = "0.1.0"

# Internal storage for CLI variables
_cli_vars: dict[str, str] | None = None


def get_var(name: str, default: str | None = None) -> str | None:
    """Get a build variable set on the command line or from environment.

    Variables can be set when invoking findwdk:
        findwdk generate WDK_ARCH=arm64 WDK_WINVER=0x0A00

    In your build.py, access them with:
        arch = get_var('WDK_ARCH', default='x64')

    Precedence (highest to lowest):
        1. Command line: findwdk generate VAR=value
        2. Environment variable: VAR=value findwdk generate

    Args:
        name: Variable name.
        default: Default value if not set.

    Returns:
        The variable value, or default if not set.
    """
    global _cli_vars

    # Lazy-load CLI vars from environment on first access
    if _cli_vars is None:
        findwdk_vars = os.environ.get("FINDWDK_VARS")
        if findwdk_vars:
            try:
                _cli_vars = json.loads(findwdk_vars)
            except json.JSONDecodeError:
                _cli_vars = {}
        else:
            _cli_vars = {}

    if name in _cli_vars:
        return _cli_vars[name]

    return os.environ.get(name, default)


def get_variant(default: str = "release") -> str:
    """Get the build variant (debug, release).

    Precedence (highest to lowest):
        1. FINDWDK_VARIANT (set by the findwdk CLI)
        2. VARIANT environment variable
        3. default parameter

    Args:
        default: Default variant if not set.

    Returns:
        The variant name.
    """
    return os.environ.get("FINDWDK_VARIANT") or os.environ.get("VARIANT") or default


def _reset_vars() -> None:
    """Forget cached CLI variables (used by tests and the CLI)."""
    global _cli_vars
    _cli_vars = None


# These imports come after get_var() since the wdk package reads build
# variables through it.
from findwdk.core.project import Project  # noqa: E402
from findwdk.wdk.config import WdkConfig, find_wdk  # noqa: E402
from findwdk.wdk.preprocess import (  # noqa: E402
    etw_preproc,
    kmd_wpp_preproc,
    umd_wpp_preproc,
)
from findwdk.wdk.targets import (  # noqa: E402
    add_kmd_driver,
    add_kmd_library,
    add_umd_library,
    add_usermode_driver,
)

__all__ = [
    "__version__",
    "get_var",
    "get_variant",
    "Project",
    "WdkConfig",
    "find_wdk",
    "add_kmd_driver",
    "add_kmd_library",
    "add_umd_library",
    "add_usermode_driver",
    "kmd_wpp_preproc",
    "umd_wpp_preproc",
    "etw_preproc",
]
