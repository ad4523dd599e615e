# SPDX-License-Identifier: MIT
"""WPP trace and ETW manifest preprocessing.

These attach pre-build steps to an existing target. The steps run, in the
order they were added, before any of the target's sources compile.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from findwdk.core.errors import ToolNotFoundError

if TYPE_CHECKING:
    from findwdk.core.project import Project
    from findwdk.core.target import BuildStep, Target
    from findwdk.wdk.config import WdkConfig

logger = logging.getLogger(__name__)


def _wpp_preproc(
    project: Project,
    wdk: WdkConfig,
    target: Target | str,
    sources: Iterable[Path | str],
    output_dir: Path | str,
    scan_config: Path | str,
    mode: str,
) -> BuildStep:
    resolved = project.require_target(target)
    files = [str(s) for s in sources]
    command = [
        str(wdk.toolset.tracewpp),
        f"-cfgdir:{wdk.paths.wpp_config}",
        f"-odir:{output_dir}",
        f"-scan:{scan_config}",
        mode,
        *files,
    ]
    logger.debug("WPP preprocessing for %s: %s", resolved.name, " ".join(files))
    return resolved.add_pre_build(
        command, f"Generating WPP trace headers for {resolved.name}"
    )


def kmd_wpp_preproc(
    project: Project,
    wdk: WdkConfig,
    target: Target | str,
    sources: Iterable[Path | str],
    output_dir: Path | str,
    scan_config: Path | str,
) -> BuildStep:
    """Run tracewpp in kernel mode over sources before target compiles.

    Args:
        project: Project the target belongs to.
        wdk: Resolved WDK configuration.
        target: Target (or its name) to attach the step to.
        sources: Files to scan for trace macros.
        output_dir: Where the generated .tmh headers go.
        scan_config: Header holding the WPP_CONTROL_GUIDS definition.

    Returns:
        The added step.

    Raises:
        ConfigureError: If target names an unknown target.
    """
    return _wpp_preproc(project, wdk, target, sources, output_dir, scan_config, "-km")


def umd_wpp_preproc(
    project: Project,
    wdk: WdkConfig,
    target: Target | str,
    sources: Iterable[Path | str],
    output_dir: Path | str,
    scan_config: Path | str,
) -> BuildStep:
    """User-mode counterpart of kmd_wpp_preproc() (tracewpp -dll)."""
    return _wpp_preproc(project, wdk, target, sources, output_dir, scan_config, "-dll")


def etw_preproc(
    project: Project,
    wdk: WdkConfig,
    target: Target | str,
    manifest_name: str,
    source_dir: Path | str,
) -> BuildStep:
    """Compile <source_dir>/<manifest_name>.xml with the message compiler.

    The generated header and resources are written next to the manifest;
    the resource script <manifest_name>.rc is added to the target's
    sources as a generated file.

    Raises:
        ConfigureError: If target names an unknown target.
        ToolNotFoundError: If the kit has no message compiler.
    """
    resolved = project.require_target(target)
    if wdk.toolset.mc is None:
        raise ToolNotFoundError("mc")
    source_dir = Path(source_dir)
    command = [
        str(wdk.toolset.mc),
        "-h",
        str(source_dir),
        "-km",
        "-r",
        str(source_dir),
        "-z",
        manifest_name,
        str(source_dir / f"{manifest_name}.xml"),
    ]
    resource = project.node(source_dir / f"{manifest_name}.rc")
    resource.generated = True
    if resource not in resolved.sources:
        resolved.add_source(resource)
    return resolved.add_pre_build(command, f"Compiling ETW manifest {manifest_name}.xml")
