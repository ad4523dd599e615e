# SPDX-License-Identifier: MIT
"""Tests for findwdk.wdk.targets."""

import sys
from pathlib import Path

import pytest

import findwdk
from findwdk.core.errors import ConfigureError, InvalidFrameworkVersionError
from findwdk.core.target import ImportedTarget, TargetType
from findwdk.wdk.targets import (
    TargetOptions,
    add_kmd_driver,
    add_kmd_library,
    add_umd_library,
    add_usermode_driver,
)

VERSION = "10.0.22000.0"


@pytest.fixture
def x86_config(wdk_root, source_dir):
    return findwdk.find_wdk(arch="x86", content_root=wdk_root, source_dir=source_dir)


@pytest.fixture
def arm64_config(wdk_root, source_dir):
    return findwdk.find_wdk(arch="arm64", content_root=wdk_root, source_dir=source_dir)


def link_flag(target, prefix):
    return [f for f in target.private.link_flags if f.startswith(prefix)]


def step_commands(steps):
    return [list(step.command) for step in steps]


class TestTargetOptions:
    def test_defaults_from_config(self, wdk_config):
        options = TargetOptions.create(wdk_config)
        assert options.framework is None
        assert options.winver == "0x0A00"
        assert options.ntddi_version == "0x0A000004"

    def test_overrides(self, wdk_config):
        options = TargetOptions.create(wdk_config, "1.15", "0x0603", "")
        assert str(options.framework) == "1.15"
        assert options.winver == "0x0603"
        assert options.ntddi_version is None

    def test_invalid_framework(self, wdk_config):
        with pytest.raises(InvalidFrameworkVersionError):
            TargetOptions.create(wdk_config, "1.15.2")


class TestKmdDriver:
    def test_target_shape(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")

        assert project.get_target("MyDriver") is driver
        assert driver.target_type is TargetType.PROGRAM
        assert driver.output_suffix == ".sys"
        assert driver.output_path("release") == project.build_dir / "release" / "MyDriver.sys"
        assert [s.path.name for s in driver.sources] == ["Driver.c"]

    def test_compile_flags(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        flags = driver.private.compile_flags

        assert flags[:3] == ["/Zi", "/W4", "/WX"]
        assert f"/FI{wdk_config.paths.warning_h}" in flags
        assert "/kernel" in flags
        assert driver.for_variant("debug").compile_flags == ["/Od"]
        assert driver.for_variant("release").compile_flags == ["/O2"]

    def test_defines(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        defines = driver.private.defines

        for define in ("WINNT=1", "_WIN64", "_AMD64_", "AMD64"):
            assert define in defines
        assert "_WIN32_WINNT=0x0A00" in defines
        assert "WINVER=0x0A00" in defines
        assert "NTDDI_VERSION=0x0A000004" in defines
        assert "DBG=1" not in defines
        assert "DBG=1" in driver.collect_usage_requirements("debug").defines
        assert "DBG=1" not in driver.collect_usage_requirements("release").defines

    def test_ntddi_can_be_omitted(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", ntddi_version="")
        assert not [d for d in driver.private.defines if d.startswith("NTDDI_VERSION")]

    def test_includes(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        paths = wdk_config.paths
        assert driver.private.include_dirs == [paths.shared, paths.km, paths.km_crt]

    def test_kernel_libraries(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")

        names = [d.name for d in driver.dependencies]
        assert names == [
            "WDK::NTOSKRNL",
            "WDK::HAL",
            "WDK::BUFFEROVERFLOWFASTFAILK",
            "WDK::WMILIB",
            "WDK::WPPRECORDER",
        ]
        assert all(isinstance(d, ImportedTarget) for d in driver.dependencies)
        libs = driver.collect_usage_requirements("release").link_libs
        assert str(wdk_config.library("WDK::NTOSKRNL")) in libs

    def test_imported_libraries_shared_between_drivers(self, project, wdk_config):
        first = add_kmd_driver(project, wdk_config, "First", "Driver.c")
        second = add_kmd_driver(project, wdk_config, "Second", "Driver.c")
        assert first.dependencies[0] is second.dependencies[0]

    def test_link_flags(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        flags = driver.private.link_flags

        assert flags[0] == "/machine:X64"
        assert "/Driver" in flags
        assert "/NODEFAULTLIB" in flags
        assert link_flag(driver, "/IGNORE:") == [
            "/IGNORE:4198,4010,4037,4039,4065,4070,4078,4087,4089,4221,4108,4088,4218,4235,4257"
        ]
        assert link_flag(driver, "/ENTRY:") == ["/ENTRY:GsDriverEntry"]
        assert flags[-2:] == ["/kernel", "/ENTRY:GsDriverEntry"]

    def test_entry_point_kmdf(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", kmdf="1.15")
        assert link_flag(driver, "/ENTRY:") == ["/ENTRY:FxDriverEntry"]

    def test_entry_point_x86(self, project, x86_config):
        driver = add_kmd_driver(project, x86_config, "MyDriver", "Driver.c")
        assert link_flag(driver, "/ENTRY:") == ["/ENTRY:GsDriverEntry@8"]
        assert link_flag(driver, "/machine:") == ["/machine:x86"]

    def test_entry_point_x86_kmdf(self, project, x86_config):
        driver = add_kmd_driver(project, x86_config, "MyDriver", "Driver.c", kmdf="1.15")
        assert link_flag(driver, "/ENTRY:") == ["/ENTRY:FxDriverEntry@8"]

    def test_memcmp_for_narrow_pointers(self, project, x86_config):
        driver = add_kmd_driver(project, x86_config, "MyDriver", "Driver.c")
        assert "WDK::MEMCMP" in [d.name for d in driver.dependencies]
        assert "STD_CALL" in driver.private.defines

    def test_no_memcmp_for_wide_pointers(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        assert "WDK::MEMCMP" not in [d.name for d in driver.dependencies]

    def test_arm64_runtime(self, project, arm64_config, wdk_root):
        driver = add_kmd_driver(project, arm64_config, "MyDriver", "Driver.c")
        expected = wdk_root / "Lib" / VERSION / "um" / "arm64" / "arm64rt.lib"
        assert str(expected) in driver.private.link_libs
        assert link_flag(driver, "/machine:") == ["/machine:arm64"]

    def test_kmdf(self, project, wdk_config, wdk_root):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", kmdf="1.15")

        assert "KMDF_VERSION_MAJOR=1" in driver.private.defines
        assert "KMDF_VERSION_MINOR=15" in driver.private.defines
        assert wdk_root / "Include" / "wdf" / "kmdf" / "1.15" in driver.private.include_dirs
        lib_dir = wdk_root / "Lib" / "wdf" / "kmdf" / "x64" / "1.15"
        assert str(lib_dir / "WdfDriverEntry.lib") in driver.private.link_libs
        assert str(lib_dir / "WdfLdr.lib") in driver.private.link_libs

    def test_invalid_kmdf(self, project, wdk_config):
        with pytest.raises(InvalidFrameworkVersionError):
            add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", kmdf="one")
        assert project.get_target("MyDriver") is None

    def test_post_build_steps(self, project, wdk_config, source_dir):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        tools = wdk_config.toolset

        assert step_commands(driver.post_build) == [
            [
                sys.executable,
                "-m",
                "findwdk.util.commands",
                "copy",
                str(source_dir / "MyDriver.inx"),
                "$output_dir/MyDriver.inf",
            ],
            [
                str(tools.stampinf),
                "-a",
                "AMD64",
                "-v",
                "*",
                "-k",
                "1.15",
                "-d",
                "*",
                "-x",
                "-f",
                "$output_dir/MyDriver.inf",
            ],
            [
                str(tools.signtool),
                "sign",
                "/fd",
                "SHA256",
                "/f",
                str(wdk_config.signing_key),
                "$target_file",
            ],
        ]

    def test_rendered_signing_step(self, project, wdk_config):
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")

        rendered = driver.post_build[-1].render(driver, "debug")
        assert rendered[-1] == str(project.build_dir / "debug" / "MyDriver.sys")

    def test_catalog_is_opt_in(self, project, wdk_config):
        driver = add_kmd_driver(
            project, wdk_config, "MyDriver", "Driver.c", generate_catalog=True
        )

        catalog = driver.post_build[2]
        assert list(catalog.command) == [
            str(wdk_config.toolset.inf2cat),
            "/os:10_X64",
            "/driver:$output_dir",
        ]
        assert len(driver.post_build) == 4

    def test_custom_inf_template(self, project, wdk_config, tmp_path):
        template = tmp_path / "custom.inx"
        driver = add_kmd_driver(
            project, wdk_config, "MyDriver", "Driver.c", inf_template=template
        )
        assert driver.post_build[0].command[4] == str(template)

    def test_relative_inf_template(self, project, wdk_config, source_dir):
        driver = add_kmd_driver(
            project, wdk_config, "MyDriver", "Driver.c", inf_template="inf/Custom.inx"
        )
        assert driver.post_build[0].command[4] == str(source_dir / "inf" / "Custom.inx")

    def test_missing_kernel_library(self, project, wdk_config, wdk_root):
        (wdk_root / "Lib" / VERSION / "km" / "x64" / "wmilib.lib").unlink()
        config = findwdk.find_wdk(
            arch="x64", content_root=wdk_root, source_dir=project.root_dir
        )
        with pytest.raises(ConfigureError, match="WDK::WMILIB"):
            add_kmd_driver(project, config, "MyDriver", "Driver.c")

    def test_logs_options(self, project, wdk_config, caplog):
        with caplog.at_level("INFO", logger="findwdk"):
            add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", kmdf="1.15")
        assert "Target: MyDriver" in caplog.text
        assert "KMDF: 1.15" in caplog.text


class TestKmdLibrary:
    def test_static_library(self, project, wdk_config):
        lib = add_kmd_library(project, wdk_config, "KmdfLib", "Lib.c", kmdf="1.15")

        assert lib.target_type is TargetType.STATIC_LIBRARY
        assert lib.output_suffix == ".lib"
        assert "/kernel" in lib.private.compile_flags
        assert "KMDF_VERSION_MINOR=15" in lib.private.defines
        assert lib.private.link_flags == []
        assert lib.dependencies == []
        assert lib.post_build == []

    def test_same_compile_settings_as_driver(self, project, wdk_config):
        lib = add_kmd_library(project, wdk_config, "KmdfLib", "Lib.c", kmdf="1.15")
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", kmdf="1.15")

        assert lib.private.compile_flags == driver.private.compile_flags
        assert lib.private.defines == driver.private.defines
        assert lib.private.include_dirs == driver.private.include_dirs

    def test_object_library(self, project, wdk_config):
        lib = add_kmd_library(
            project, wdk_config, "Objs", "Lib.c", library_type=TargetType.OBJECT
        )
        assert lib.target_type is TargetType.OBJECT
        assert lib.output_suffix is None

    def test_object_library_by_name(self, project, wdk_config):
        lib = add_kmd_library(project, wdk_config, "Objs", "Lib.c", library_type="object")
        assert lib.target_type is TargetType.OBJECT

    def test_rejects_program(self, project, wdk_config):
        with pytest.raises(ValueError):
            add_kmd_library(
                project, wdk_config, "Bad", "Lib.c", library_type=TargetType.PROGRAM
            )

    def test_public_requirements_reach_driver(self, project, wdk_config, source_dir):
        lib = add_kmd_library(project, wdk_config, "KmdfLib", "Lib.c", kmdf="1.15")
        lib.public_includes([source_dir / "include"])
        driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", kmdf="1.15")
        driver.link(lib)

        effective = driver.collect_usage_requirements("release")
        assert source_dir / "include" in effective.include_dirs


class TestUmdLibrary:
    def test_user_mode_settings(self, project, wdk_config, wdk_root):
        lib = add_umd_library(project, wdk_config, "UmdfLib", "Lib.cpp", umdf="2.31")
        paths = wdk_config.paths

        assert lib.target_type is TargetType.STATIC_LIBRARY
        assert "/kernel" not in lib.private.compile_flags
        assert "UMDF_VERSION_MAJOR=2" in lib.private.defines
        assert "WINVER=0x0A00" not in lib.private.defines
        assert lib.private.include_dirs == [
            paths.shared,
            paths.winrt,
            paths.ucrt,
            paths.um,
            wdk_root / "Include" / "wdf" / "umdf" / "2.31",
        ]


class TestUsermodeDriver:
    def test_target_shape(self, project, wdk_config):
        driver = add_usermode_driver(project, wdk_config, "UmDriver", "Driver.c")

        assert driver.target_type is TargetType.SHARED_LIBRARY
        assert driver.output_suffix == ".dll"
        assert driver.private.compile_flags == ["/Gz"]
        assert driver.private.link_flags == ["/SUBSYSTEM:WINDOWS"]
        assert driver.private.link_libs == ["OneCoreUAP", "avrt"]
        assert driver.post_build == []

    def test_umdf(self, project, wdk_config, wdk_root):
        driver = add_usermode_driver(project, wdk_config, "UmDriver", "Driver.c", umdf="1.15")
        paths = wdk_config.paths

        assert "UMDF_VERSION_MAJOR=1" in driver.private.defines
        assert "UMDF_VERSION_MINOR=15" in driver.private.defines
        assert driver.private.include_dirs == [
            wdk_root / "Include" / "wdf" / "umdf" / "1.15",
            paths.winrt,
            paths.ucrt,
            paths.shared,
            paths.um,
        ]
        stub = wdk_root / "Lib" / "wdf" / "umdf" / "x64" / "1.15" / "WdfDriverStubUm.lib"
        assert driver.private.link_libs[-1] == str(stub)

    def test_iddcx(self, project, wdk_config):
        driver = add_usermode_driver(
            project, wdk_config, "IddDriver", "Driver.c", umdf="2.25", iddcx="1.4"
        )
        assert driver.private.include_dirs[-1] == wdk_config.paths.um / "iddcx" / "1.4"

    def test_defines(self, project, wdk_config):
        driver = add_usermode_driver(project, wdk_config, "UmDriver", "Driver.c")
        assert driver.private.defines == [
            "WINNT=1",
            "_WIN64",
            "_AMD64_",
            "AMD64",
            "_WIN32_WINNT=0x0A00",
            "NTDDI_VERSION=0x0A000004",
        ]


class TestDuplicateTargets:
    def test_duplicate_name(self, project, wdk_config):
        add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")
        with pytest.raises(ValueError, match="already exists"):
            add_kmd_library(project, wdk_config, "MyDriver", "Lib.c")


def test_sources_resolved_against_project_root(project, wdk_config, source_dir):
    driver = add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c", Path("sub/Other.c"))
    assert [s.path for s in driver.sources] == [
        source_dir / "Driver.c",
        source_dir / "sub" / "Other.c",
    ]


@pytest.mark.parametrize(
    "add_target",
    [add_kmd_driver, add_kmd_library, add_umd_library, add_usermode_driver],
)
def test_resource_compiler_finds_user_mode_headers(project, wdk_config, add_target):
    target = add_target(project, wdk_config, "Target", "Driver.c")
    assert target.private.resource_flags == [f"/I{wdk_config.paths.um}"]
