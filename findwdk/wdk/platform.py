# SPDX-License-Identifier: MIT
"""Target platforms supported by the WDK integration.

Each platform maps to one fixed row of values: the preprocessor
definitions every kernel target gets, the linker /machine value, the
inf2cat OS identifier, the stampinf architecture, the directory name
used inside the kit, and the pointer size. Adding an architecture means
adding a row, not another conditional.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from findwdk.core.errors import UnsupportedArchitectureError


class WdkPlatform(Enum):
    """Target architectures a driver can be built for."""

    X86 = "x86"
    X64 = "x64"
    ARM64 = "arm64"


@dataclass(frozen=True)
class PlatformInfo:
    """Fixed per-architecture values.

    Attributes:
        platform: The platform this row describes.
        defines: Preprocessor definitions for kernel-mode code.
        machine: Value of the linker /machine option.
        inf2cat_os: Value of the inf2cat /os option.
        stampinf_arch: Value of the stampinf -a option.
        dir_name: Directory name of the platform in Lib/ and bin/.
        pointer_size: Size of a pointer in bytes.
        runtime_libs: Extra runtime libraries, relative to Lib/<version>/um/<dir>.
    """

    platform: WdkPlatform
    defines: tuple[str, ...]
    machine: str
    inf2cat_os: str
    stampinf_arch: str
    dir_name: str
    pointer_size: int
    runtime_libs: tuple[str, ...] = ()


PLATFORMS: dict[WdkPlatform, PlatformInfo] = {
    WdkPlatform.X86: PlatformInfo(
        platform=WdkPlatform.X86,
        defines=("_X86_=1", "i386=1", "STD_CALL"),
        machine="x86",
        inf2cat_os="10_X86",
        stampinf_arch="x86",
        dir_name="x86",
        pointer_size=4,
    ),
    WdkPlatform.X64: PlatformInfo(
        platform=WdkPlatform.X64,
        defines=("_WIN64", "_AMD64_", "AMD64"),
        machine="X64",
        inf2cat_os="10_X64",
        stampinf_arch="AMD64",
        dir_name="x64",
        pointer_size=8,
    ),
    WdkPlatform.ARM64: PlatformInfo(
        platform=WdkPlatform.ARM64,
        defines=("_WIN64", "_ARM64_", "ARM64"),
        machine="arm64",
        inf2cat_os="server10_arm64",
        stampinf_arch="ARM64",
        dir_name="arm64",
        pointer_size=8,
        runtime_libs=("arm64rt.lib",),
    ),
}

# Accepted spellings of each architecture
ARCH_ALIASES: dict[str, WdkPlatform] = {
    "x86": WdkPlatform.X86,
    "i386": WdkPlatform.X86,
    "i686": WdkPlatform.X86,
    "win32": WdkPlatform.X86,
    "x64": WdkPlatform.X64,
    "amd64": WdkPlatform.X64,
    "x86_64": WdkPlatform.X64,
    "arm64": WdkPlatform.ARM64,
    "aarch64": WdkPlatform.ARM64,
}


def platform_info(arch: str | WdkPlatform) -> PlatformInfo:
    """Look up the platform row for an architecture name.

    Args:
        arch: Architecture name (any alias, case-insensitive) or WdkPlatform.

    Returns:
        The PlatformInfo for that architecture.

    Raises:
        UnsupportedArchitectureError: If the name is not recognized.
    """
    if isinstance(arch, WdkPlatform):
        return PLATFORMS[arch]
    platform = ARCH_ALIASES.get(arch.strip().lower())
    if platform is None:
        raise UnsupportedArchitectureError(arch)
    return PLATFORMS[platform]
