# SPDX-License-Identifier: MIT
"""Compiler and linker settings shared by all WDK targets."""

from __future__ import annotations

from pathlib import Path

from findwdk.wdk.platform import PlatformInfo

DEFAULT_WINVER = "0x0A00"  # Windows 10
DEFAULT_NTDDI_VERSION = "0x0A000004"  # Windows 10 1709

COMPILE_FLAGS: tuple[str, ...] = (
    "/Zi",
    "/W4",
    "/WX",
    "/diagnostics:classic",
    "/Oy-",
    "/GF",
    "/Gm-",
    "/Zp8",
    "/GS",
    "/Gy",
    "/analyze-",
    "/fp:precise",
    "/Zc:wchar_t-",
    "/Zc:forScope",
    "/Zc:inline",
    "/GR-",
    "/wd4603",
    "/wd4627",
    "/wd4986",
    "/wd4987",
    "/wd4996",
    "/wd4064",
    "/wd4366",
    "/wd4748",
    "/wd4047",
    "/wd4053",
    "/Wv:18",
    "/FC",
    "/errorReport:prompt",
    "-cbstring",
    "/d1nodatetime",
    "/d1import_no_registry",
    "/d2AllowCompatibleILVersions",
    "/d2Zi+",
)

KERNEL_COMPILE_FLAG = "/kernel"
KERNEL_LINK_FLAG = "/kernel"

# Optimization flags per variant
VARIANT_COMPILE_FLAGS: dict[str, tuple[str, ...]] = {
    "debug": ("/Od",),
    "release": ("/O2",),
}

BASE_DEFINES: tuple[str, ...] = ("WINNT=1",)
DEBUG_DEFINES: tuple[str, ...] = ("MSC_NOOPT", "DEPRECATE_DDK_FUNCTIONS=1", "DBG=1")

IGNORED_LINK_WARNINGS: tuple[int, ...] = (
    4198,
    4010,
    4037,
    4039,
    4065,
    4070,
    4078,
    4087,
    4089,
    4221,
    4108,
    4088,
    4218,
    4235,
    4257,
)

# Kernel libraries every driver links against
KERNEL_DRIVER_LIBS: tuple[str, ...] = (
    "WDK::NTOSKRNL",
    "WDK::HAL",
    "WDK::BUFFEROVERFLOWFASTFAILK",
    "WDK::WMILIB",
    "WDK::WPPRECORDER",
)

# Needed when pointers are 4 bytes
NARROW_POINTER_LIBS: tuple[str, ...] = ("WDK::MEMCMP",)

# Platform libraries user-mode drivers link against
USERMODE_DRIVER_LIBS: tuple[str, ...] = ("OneCoreUAP", "avrt")

KMDF_LINK_LIBS: tuple[str, ...] = ("WdfDriverEntry.lib", "WdfLdr.lib")
UMDF_LINK_LIBS: tuple[str, ...] = ("WdfDriverStubUm.lib",)

# stampinf -k value
STAMPINF_KMDF_VERSION = "1.15"


def compile_flags(warning_h: Path, *, kernel: bool) -> list[str]:
    """The fixed compile flags, with the forced include of warning.h."""
    flags = list(COMPILE_FLAGS)
    flags.append(f"/FI{warning_h}")
    if kernel:
        flags.append(KERNEL_COMPILE_FLAG)
    return flags


def version_defines(winver: str, ntddi_version: str | None, *, winver_macro: bool) -> list[str]:
    """_WIN32_WINNT (and WINVER, NTDDI_VERSION) definitions."""
    defines = [f"_WIN32_WINNT={winver}"]
    if winver_macro:
        defines.append(f"WINVER={winver}")
    if ntddi_version:
        defines.append(f"NTDDI_VERSION={ntddi_version}")
    return defines


def kernel_link_flags(platform: PlatformInfo) -> list[str]:
    """Link flags for a kernel-mode driver image, without the entry point."""
    ignored = ",".join(str(w) for w in IGNORED_LINK_WARNINGS)
    return [
        f"/machine:{platform.machine}",
        "/MANIFEST:NO",
        "/PROFILE",
        "/WX",
        "/Driver",
        "/OPT:REF",
        "/OPT:ICF",
        "/INCREMENTAL:NO",
        '/SUBSYSTEM:NATIVE,"10.00"',
        '/MERGE:"_TEXT=.text;_PAGE=PAGE"',
        "/NODEFAULTLIB",
        "/SECTION:INIT,d",
        f"/IGNORE:{ignored}",
        '/osversion:"10.0"',
        '/version:"10.0"',
        "/pdbcompress",
        "/debugtype:pdata",
        "/nologo",
        KERNEL_LINK_FLAG,
    ]


def entry_point(pointer_size: int, *, framework: bool) -> str:
    """Name of the driver entry symbol.

    KMDF drivers enter through the framework's FxDriverEntry, others
    through GsDriverEntry (which sets up the stack cookie). With 4-byte
    pointers the symbol is __stdcall decorated with its 8 bytes of
    arguments.
    """
    symbol = "FxDriverEntry" if framework else "GsDriverEntry"
    if pointer_size == 4:
        symbol += "@8"
    return symbol
