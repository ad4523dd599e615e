# SPDX-License-Identifier: MIT
"""Shared fixtures: fake WDK installations on disk."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pytest

import findwdk

KERNEL_LIBS = ("ntoskrnl", "hal", "BufferOverflowFastFailK", "wmilib", "wpprecorder", "memcmp")
TOOLS = ("tracewpp", "inf2cat", "stampinf", "signtool", "mc")
PLATFORM_DIRS = ("x86", "x64", "arm64")

BUILD_VARIABLES = (
    "WDKContentRoot",
    "FINDWDK_VARS",
    "FINDWDK_VARIANT",
    "FINDWDK_SOURCE_DIR",
    "FINDWDK_BUILD_DIR",
    "FINDWDK_RECONFIGURE",
    "VARIANT",
    "WDK_ARCH",
    "WDK_WINVER",
    "WDK_NTDDI_VERSION",
    "WDK_PFX",
)


def touch(path: Path, executable: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    if executable:
        path.chmod(0o755)
    return path


def make_modern_wdk(
    root: Path,
    version: str = "10.0.22000.0",
    *,
    tools: Iterable[str] = TOOLS,
    host_dir: str = "x64",
) -> Path:
    """Create a WDK 10 style tree under root; returns the marker header."""
    marker = touch(root / "Include" / version / "km" / "ntddk.h")
    touch(root / "Include" / version / "shared" / "warning.h")
    for platform_dir in PLATFORM_DIRS:
        for lib in KERNEL_LIBS:
            touch(root / "Lib" / version / "km" / platform_dir / f"{lib}.lib")
    touch(root / "Lib" / version / "um" / "arm64" / "arm64rt.lib")
    for tool in tools:
        touch(root / "bin" / version / host_dir / f"{tool}.exe", executable=True)
    return marker


def make_legacy_wdk(root: Path, codename: str | None = "winv6.3") -> Path:
    """Create a WDK 8.x style tree under root; returns the marker header."""
    marker = touch(root / "Include" / "km" / "ntddk.h")
    if codename is not None:
        for lib in KERNEL_LIBS:
            touch(root / "Lib" / codename / "km" / "x64" / f"{lib}.lib")
    for tool in TOOLS:
        touch(root / "bin" / "x64" / f"{tool}.exe", executable=True)
    return marker


@pytest.fixture(autouse=True)
def clean_build_variables(monkeypatch):
    """Isolate every test from the caller's WDK environment."""
    for name in BUILD_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    findwdk._reset_vars()
    yield
    findwdk._reset_vars()


@pytest.fixture
def wdk_root(tmp_path) -> Path:
    """A modern WDK with version 10.0.22000.0 and every tool."""
    root = tmp_path / "Windows Kits" / "10"
    make_modern_wdk(root)
    return root


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """A driver source directory holding the default signing key."""
    src = tmp_path / "src"
    touch(src / "TestSigning.pfx")
    touch(src / "Driver.c")
    touch(src / "MyDriver.inx")
    return src


@pytest.fixture
def wdk_config(wdk_root, source_dir):
    """A resolved x64 configuration for the wdk_root fixture."""
    return findwdk.find_wdk(arch="x64", content_root=wdk_root, source_dir=source_dir)


@pytest.fixture
def project(source_dir, tmp_path):
    return findwdk.Project(
        "test", root_dir=source_dir, build_dir=tmp_path / "build", variant="release"
    )


class FakeWdk:
    """Tree builders handed to tests through the fake_wdk fixture."""

    modern = staticmethod(make_modern_wdk)
    legacy = staticmethod(make_legacy_wdk)
    touch = staticmethod(touch)


@pytest.fixture
def fake_wdk() -> FakeWdk:
    return FakeWdk()
