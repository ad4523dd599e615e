# SPDX-License-Identifier: MIT
"""Resolved WDK configuration.

find_wdk() runs the whole discovery pass once: it picks the target
platform, locates the newest WDK, classifies its layout, resolves the
WDK tools and checks the signing key. The result is an immutable
WdkConfig that every target configurator reads; nothing mutates it
afterwards.

Example:
    from findwdk import Project, find_wdk, add_kmd_driver

    project = Project("mydriver")
    wdk = find_wdk(arch="x64")
    add_kmd_driver(project, wdk, "MyDriver", "main.c", kmdf="1.15")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from findwdk import get_var
from findwdk.configure.config import Configure
from findwdk.configure.platform import get_platform
from findwdk.core.errors import ConfigureError, SigningKeyNotFoundError
from findwdk.wdk.layout import SdkInstallation, SdkPaths, derive_paths, normalize
from findwdk.wdk.locator import locate
from findwdk.wdk.platform import PlatformInfo, WdkPlatform, platform_info
from findwdk.wdk.profile import DEFAULT_NTDDI_VERSION, DEFAULT_WINVER
from findwdk.wdk.toolset import ToolchainPaths, resolve_toolset

logger = logging.getLogger(__name__)

DEFAULT_SIGNING_KEY = "TestSigning.pfx"


@dataclass(frozen=True)
class WdkConfig:
    """Everything the target configurators need to know about the WDK.

    Attributes:
        installation: The selected kit.
        paths: Directories derived from the installation.
        platform: Target platform row.
        toolset: Resolved tool paths.
        signing_key: PFX file drivers are signed with.
        winver: Default WINVER/_WIN32_WINNT value.
        ntddi_version: Default NTDDI_VERSION value (None to omit it).
        pointer_size: Pointer size of the target in bytes.
        libraries: Kernel libraries by imported target name (WDK::NAME).
    """

    installation: SdkInstallation
    paths: SdkPaths
    platform: PlatformInfo
    toolset: ToolchainPaths
    signing_key: Path
    winver: str = DEFAULT_WINVER
    ntddi_version: str | None = DEFAULT_NTDDI_VERSION
    pointer_size: int = 8
    libraries: Mapping[str, Path] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def root(self) -> Path:
        return self.installation.root

    @property
    def version(self) -> str:
        return self.installation.version

    def library(self, name: str) -> Path:
        """Path of a kernel library by its imported target name.

        Raises:
            ConfigureError: If the kit has no such library for the platform.
        """
        try:
            return self.libraries[name]
        except KeyError:
            raise ConfigureError(
                f"{name} not found in "
                f"{self.paths.kernel_lib_dir(self.platform.dir_name)}"
            ) from None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly summary, as stored in the configure cache."""
        return {
            "root": str(self.root),
            "version": self.version,
            "lib_version": self.installation.lib_version,
            "include_version": self.installation.include_version,
            "layout": self.installation.layout.value,
            "platform": self.platform.platform.value,
            "pointer_size": self.pointer_size,
            "winver": self.winver,
            "ntddi_version": self.ntddi_version,
            "signing_key": str(self.signing_key),
            "tools": {
                "tracewpp": str(self.toolset.tracewpp),
                "inf2cat": str(self.toolset.inf2cat),
                "stampinf": str(self.toolset.stampinf),
                "signtool": str(self.toolset.signtool),
                "mc": str(self.toolset.mc) if self.toolset.mc else None,
            },
            "libraries": {name: str(path) for name, path in self.libraries.items()},
        }


def resolve_platform(arch: str | WdkPlatform | None = None) -> PlatformInfo:
    """Pick the target platform.

    Precedence: the arch argument, the WDK_ARCH build variable, the host
    architecture.

    Raises:
        UnsupportedArchitectureError: If the architecture is not supported.
    """
    if arch is None:
        arch = get_var("WDK_ARCH") or get_platform().arch
    return platform_info(arch)


def discover_libraries(paths: SdkPaths, platform: PlatformInfo) -> dict[str, Path]:
    """Map WDK::<UPPER STEM> to each kernel .lib of the platform."""
    lib_dir = paths.kernel_lib_dir(platform.dir_name)
    libraries: dict[str, Path] = {}
    for lib in sorted(lib_dir.glob("*.lib")):
        libraries[f"WDK::{lib.stem.upper()}"] = lib
    logger.debug("Found %d kernel libraries in %s", len(libraries), lib_dir)
    return libraries


def resolve_signing_key(
    signing_key: Path | str | None = None, source_dir: Path | str | None = None
) -> Path:
    """Find the PFX used to sign drivers.

    Precedence: the signing_key argument, the WDK_PFX build variable,
    TestSigning.pfx in the source directory.

    Raises:
        SigningKeyNotFoundError: If the file does not exist.
    """
    if signing_key is None:
        signing_key = get_var("WDK_PFX")
    if signing_key is None:
        if source_dir is None:
            source_dir = os.environ.get("FINDWDK_SOURCE_DIR") or Path.cwd()
        signing_key = Path(source_dir) / DEFAULT_SIGNING_KEY
    key = Path(signing_key)
    if not key.is_file():
        raise SigningKeyNotFoundError(key)
    logger.info("PFX: %s", key)
    return key


def find_wdk(
    *,
    arch: str | WdkPlatform | None = None,
    content_root: Path | str | None = None,
    signing_key: Path | str | None = None,
    source_dir: Path | str | None = None,
    winver: str | None = None,
    ntddi_version: str | None = None,
    pointer_size: int | None = None,
    natural_sort: bool = True,
    configure: Configure | None = None,
) -> WdkConfig:
    """Locate the WDK and resolve everything targets need.

    Args:
        arch: Target architecture (x86, x64, arm64 or an alias).
        content_root: WDK content root to search instead of the
            WDKContentRoot environment variable and the registry.
        signing_key: PFX file to sign drivers with.
        source_dir: Where to look for TestSigning.pfx by default.
        winver: Default WINVER (build variable WDK_WINVER, else 0x0A00).
        ntddi_version: Default NTDDI_VERSION (build variable
            WDK_NTDDI_VERSION, else 0x0A000004); "" omits the definition.
        pointer_size: Target pointer size; inferred from the platform.
        natural_sort: Order candidate kits by version. When False the
            filesystem enumeration order is used.
        configure: Configure context used to find tools; the resolved
            configuration is stored in it under "wdk".

    Returns:
        The resolved, immutable configuration.

    Raises:
        ConfigureError: If anything cannot be resolved. No partial
            configuration is returned.
    """
    platform = resolve_platform(arch)
    logger.info("WDK_PLATFORM: %s", platform.platform.value)

    marker = locate(content_root, natural_sort=natural_sort)
    installation = normalize(marker)
    logger.info("WDK_ROOT: %s", installation.root)
    logger.info("WDK_VERSION: %s", installation.version)
    logger.debug("WDK layout: %s", installation.layout.value)

    paths = derive_paths(installation)
    toolset = resolve_toolset(installation, configure)
    key = resolve_signing_key(signing_key, source_dir)

    if winver is None:
        winver = get_var("WDK_WINVER") or DEFAULT_WINVER
    if ntddi_version is None:
        ntddi_version = get_var("WDK_NTDDI_VERSION", DEFAULT_NTDDI_VERSION)
    logger.info("WDK_WINVER: %s", winver)
    logger.info("WDK_NTDDI_VERSION: %s", ntddi_version or "(not set)")

    if pointer_size is None:
        pointer_size = platform.pointer_size
        logger.debug(
            "Pointer size inferred from platform %s: %d",
            platform.platform.value,
            pointer_size,
        )

    config = WdkConfig(
        installation=installation,
        paths=paths,
        platform=platform,
        toolset=toolset,
        signing_key=key,
        winver=winver,
        ntddi_version=ntddi_version or None,
        pointer_size=pointer_size,
        libraries=MappingProxyType(discover_libraries(paths, platform)),
    )

    if configure is not None:
        configure.set("wdk", config.to_dict())
    return config
