# SPDX-License-Identifier: MIT
"""Tests for findwdk.wdk.preprocess."""

import dataclasses

import pytest

from findwdk.core.errors import ConfigureError, ToolNotFoundError
from findwdk.wdk.preprocess import etw_preproc, kmd_wpp_preproc, umd_wpp_preproc
from findwdk.wdk.targets import add_kmd_driver, add_usermode_driver


@pytest.fixture
def driver(project, wdk_config):
    return add_kmd_driver(project, wdk_config, "MyDriver", "Driver.c")


class TestWpp:
    def test_kernel_mode(self, project, wdk_config, driver, source_dir):
        step = kmd_wpp_preproc(
            project,
            wdk_config,
            driver,
            ["Driver.c", "Queue.c"],
            source_dir,
            "trace.h",
        )

        assert driver.pre_build == [step]
        assert list(step.command) == [
            str(wdk_config.toolset.tracewpp),
            f"-cfgdir:{wdk_config.paths.wpp_config}",
            f"-odir:{source_dir}",
            "-scan:trace.h",
            "-km",
            "Driver.c",
            "Queue.c",
        ]

    def test_user_mode(self, project, wdk_config, source_dir):
        driver = add_usermode_driver(project, wdk_config, "UmDriver", "Driver.c")

        step = umd_wpp_preproc(project, wdk_config, "UmDriver", ["Driver.c"], source_dir, "trace.h")

        assert step.command[4] == "-dll"
        assert driver.pre_build == [step]

    def test_target_by_name(self, project, wdk_config, driver, source_dir):
        kmd_wpp_preproc(project, wdk_config, "MyDriver", ["Driver.c"], source_dir, "trace.h")
        assert len(driver.pre_build) == 1

    def test_unknown_target(self, project, wdk_config, source_dir):
        with pytest.raises(ConfigureError, match="no target named 'Missing'"):
            kmd_wpp_preproc(project, wdk_config, "Missing", ["a.c"], source_dir, "trace.h")

    def test_steps_keep_registration_order(self, project, wdk_config, driver, source_dir):
        first = kmd_wpp_preproc(project, wdk_config, driver, ["a.c"], source_dir, "t.h")
        second = etw_preproc(project, wdk_config, driver, "Events", source_dir)
        assert driver.pre_build == [first, second]


class TestEtw:
    def test_command(self, project, wdk_config, driver, source_dir):
        step = etw_preproc(project, wdk_config, driver, "Events", source_dir)

        assert list(step.command) == [
            str(wdk_config.toolset.mc),
            "-h",
            str(source_dir),
            "-km",
            "-r",
            str(source_dir),
            "-z",
            "Events",
            str(source_dir / "Events.xml"),
        ]

    def test_requires_mc(self, project, wdk_config, driver, source_dir):
        toolset = dataclasses.replace(wdk_config.toolset, mc=None)
        config = dataclasses.replace(wdk_config, toolset=toolset)

        with pytest.raises(ToolNotFoundError) as exc_info:
            etw_preproc(project, config, driver, "Events", source_dir)
        assert exc_info.value.tool == "mc"

    def test_adds_generated_resource_script(self, project, wdk_config, driver, source_dir):
        etw_preproc(project, wdk_config, driver, "Events", source_dir)
        etw_preproc(project, wdk_config, driver, "Events", source_dir)

        resources = [s for s in driver.sources if s.language == "resource"]
        assert [r.path for r in resources] == [source_dir / "Events.rc"]
        assert resources[0].generated
        assert project.validate() == []
