# SPDX-License-Identifier: MIT
"""Windows Driver Kit support.

Discovery and target configuration are split into small modules:
- locator: find ntddk.h candidates and pick the newest kit
- layout: classify legacy/modern kits and derive their directories
- toolset: resolve tracewpp, inf2cat, stampinf, signtool (and mc)
- platform: the x86/x64/arm64 table
- config: find_wdk() and the immutable WdkConfig it returns
- targets: kernel driver, kernel library and user-mode driver targets
- preprocess: WPP and ETW pre-build steps

Usage:
    from findwdk import Project
    from findwdk.wdk import add_kmd_driver, find_wdk, kmd_wpp_preproc

    project = Project("sample")
    wdk = find_wdk(arch="x64")
    driver = add_kmd_driver(project, wdk, "Sample", "driver.c", kmdf="1.15")
    kmd_wpp_preproc(project, wdk, driver, ["driver.c"], "build", "trace.h")
"""

from __future__ import annotations

from findwdk.wdk.config import WdkConfig, find_wdk
from findwdk.wdk.preprocess import etw_preproc, kmd_wpp_preproc, umd_wpp_preproc
from findwdk.wdk.targets import (
    TargetOptions,
    add_kmd_driver,
    add_kmd_library,
    add_umd_library,
    add_usermode_driver,
)

__all__ = [
    "TargetOptions",
    "WdkConfig",
    "add_kmd_driver",
    "add_kmd_library",
    "add_umd_library",
    "add_usermode_driver",
    "etw_preproc",
    "find_wdk",
    "kmd_wpp_preproc",
    "umd_wpp_preproc",
]
