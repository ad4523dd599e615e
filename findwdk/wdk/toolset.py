# SPDX-License-Identifier: MIT
"""Resolve the WDK's command-line tools.

tracewpp, inf2cat, stampinf and signtool are required: a kit missing any
of them cannot produce a signed driver, so resolution fails immediately
instead of deferring the error to build time. The message compiler (mc)
is only needed by etw_preproc() and is resolved on a best-effort basis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from findwdk.configure.config import Configure
from findwdk.core.errors import ToolNotFoundError
from findwdk.wdk.layout import SdkInstallation

logger = logging.getLogger(__name__)

REQUIRED_TOOLS: tuple[str, ...] = ("tracewpp", "inf2cat", "stampinf", "signtool")

# Host tool directories under bin/, searched in this order
HOST_DIRS: tuple[str, ...] = ("x64", "x86")


@dataclass(frozen=True)
class ToolchainPaths:
    """Absolute paths of the WDK tools."""

    tracewpp: Path
    inf2cat: Path
    stampinf: Path
    signtool: Path
    mc: Path | None = None


def tool_search_suffixes(installation: SdkInstallation) -> list[str]:
    """Subdirectories of bin/ to search, in precedence order."""
    suffixes = [f"{installation.version}/{d}" for d in HOST_DIRS]
    suffixes.extend(HOST_DIRS)
    return suffixes


def resolve_toolset(
    installation: SdkInstallation,
    configure: Configure | None = None,
) -> ToolchainPaths:
    """Find every WDK tool under the installation's bin directory.

    Args:
        installation: The selected WDK.
        configure: Configure context to search with (and cache into).
            Without one, nothing is read from or written to a cache.

    Returns:
        The resolved tool paths.

    Raises:
        ToolNotFoundError: If any required tool is missing.
    """
    if configure is None:
        configure = Configure(cache_file=None)
    hints = [installation.root / "bin"]
    suffixes = tool_search_suffixes(installation)

    found: dict[str, Path] = {}
    for tool in REQUIRED_TOOLS:
        info = configure.find_program(tool, hints=hints, path_suffixes=suffixes)
        if info is None:
            raise ToolNotFoundError(tool)
        found[tool] = info.path
        logger.info("WDK_%s: %s", tool.upper(), info.path)

    mc = configure.find_program("mc", hints=hints, path_suffixes=suffixes)
    if mc is None:
        logger.debug("Message compiler (mc) not found, etw_preproc unavailable")
    else:
        logger.info("WDK_MC: %s", mc.path)

    return ToolchainPaths(
        tracewpp=found["tracewpp"],
        inf2cat=found["inf2cat"],
        stampinf=found["stampinf"],
        signtool=found["signtool"],
        mc=mc.path if mc is not None else None,
    )
