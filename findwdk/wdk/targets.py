# SPDX-License-Identifier: MIT
"""Declare WDK build targets.

Each function creates a target in the project and applies what the WDK
needs for that kind of binary: include directories, definitions,
compile and link flags, libraries and, for kernel drivers, the
post-build steps that turn the image into an installable package
(INF stamping and signing).

Example:
    wdk = find_wdk()
    lib = add_kmd_library(project, wdk, "KmdfCppLib", "KmdfCppLib.cpp", kmdf="1.15")
    lib.public_includes(["."])

    drv = add_kmd_driver(project, wdk, "KmdfCppDriver", "Main.cpp", kmdf="1.15")
    drv.link(lib)
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from findwdk.core.target import Target, TargetType
from findwdk.wdk import profile
from findwdk.wdk.layout import framework_include_dir, framework_lib_dir
from findwdk.wdk.version import FrameworkVersion

if TYPE_CHECKING:
    from findwdk.core.node import Node
    from findwdk.core.project import Project
    from findwdk.wdk.config import WdkConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetOptions:
    """Validated per-target options.

    Attributes:
        framework: KMDF/UMDF version, or None for a framework-less target.
        winver: WINVER/_WIN32_WINNT value.
        ntddi_version: NTDDI_VERSION value, or None to omit it.
    """

    framework: FrameworkVersion | None
    winver: str
    ntddi_version: str | None

    @classmethod
    def create(
        cls,
        wdk: WdkConfig,
        framework: str | None = None,
        winver: str | None = None,
        ntddi_version: str | None = None,
    ) -> TargetOptions:
        """Fill in defaults from the WDK configuration and validate.

        Raises:
            InvalidFrameworkVersionError: If framework is not "<major>.<minor>".
        """
        return cls(
            framework=FrameworkVersion.parse(framework) if framework is not None else None,
            winver=winver or wdk.winver,
            ntddi_version=(wdk.ntddi_version if ntddi_version is None else ntddi_version)
            or None,
        )


def _log_options(name: str, framework_kind: str, options: TargetOptions) -> None:
    logger.info("Target: %s", name)
    logger.info("  %s: %s", framework_kind, options.framework or "(none)")
    logger.info("  WINVER: %s", options.winver)
    logger.info("  NTDDI_VERSION: %s", options.ntddi_version or "(not set)")


def _link_wdk_library(project: Project, wdk: WdkConfig, target: Target, name: str) -> None:
    """Link a target against one of the kit's imported kernel libraries."""
    imported = project.imported(
        name, wdk.library(name), package_name="WDK", version=wdk.version
    )
    target.link(imported)


def _apply_resource_flags(target: Target, wdk: WdkConfig) -> None:
    """Let rc.exe find the user-mode headers (winver.h, ntverp.h)."""
    target.private.resource_flags.append(f"/I{wdk.paths.um}")


def _apply_kernel_compile(
    target: Target, wdk: WdkConfig, options: TargetOptions
) -> None:
    """Compile settings shared by kernel drivers and kernel libraries."""
    target.private.compile_flags.extend(
        profile.compile_flags(wdk.paths.warning_h, kernel=True)
    )
    for variant, flags in profile.VARIANT_COMPILE_FLAGS.items():
        target.for_variant(variant).compile_flags.extend(flags)

    target.private.defines.extend(profile.BASE_DEFINES)
    target.private.defines.extend(wdk.platform.defines)
    if options.framework is not None:
        target.private.defines.extend(options.framework.defines("KMDF"))
    target.for_variant("debug").defines.extend(profile.DEBUG_DEFINES)
    target.private.defines.extend(
        profile.version_defines(options.winver, options.ntddi_version, winver_macro=True)
    )

    target.private.include_dirs.extend([wdk.paths.shared, wdk.paths.km, wdk.paths.km_crt])
    if options.framework is not None:
        target.private.include_dirs.append(
            framework_include_dir(wdk.root, "kmdf", str(options.framework))
        )
    _apply_resource_flags(target, wdk)


def add_kmd_driver(
    project: Project,
    wdk: WdkConfig,
    name: str,
    *sources: str | Path | Node,
    kmdf: str | None = None,
    winver: str | None = None,
    ntddi_version: str | None = None,
    inf_template: Path | str | None = None,
    generate_catalog: bool = False,
) -> Target:
    """Declare a kernel-mode driver (.sys).

    Args:
        project: Project to add the target to.
        wdk: Resolved WDK configuration.
        name: Target name; also the stem of the .sys and .inf files.
        *sources: Source and object files.
        kmdf: KMDF version ("1.15") for KMDF drivers.
        winver: WINVER override for this target.
        ntddi_version: NTDDI_VERSION override for this target.
        inf_template: The .inx file copied to <name>.inf next to the
            driver, relative to the project root (default: <name>.inx).
        generate_catalog: Also run inf2cat after stamping. Off by
            default; turning it on adds a catalog file to the outputs.

    Returns:
        The configured target.
    """
    options = TargetOptions.create(wdk, kmdf, winver, ntddi_version)
    _log_options(name, "KMDF", options)

    target = project.Program(name, sources)
    target.output_suffix = ".sys"
    _apply_kernel_compile(target, wdk, options)

    target.private.link_flags.extend(profile.kernel_link_flags(wdk.platform))
    entry = profile.entry_point(wdk.pointer_size, framework=options.framework is not None)
    target.private.link_flags.append(f"/ENTRY:{entry}")

    for lib in profile.KERNEL_DRIVER_LIBS:
        _link_wdk_library(project, wdk, target, lib)
    if wdk.pointer_size == 4:
        for lib in profile.NARROW_POINTER_LIBS:
            _link_wdk_library(project, wdk, target, lib)
    for runtime_lib in wdk.platform.runtime_libs:
        target.private.link_libs.append(
            str(wdk.paths.user_lib_dir(wdk.platform.dir_name) / runtime_lib)
        )

    if options.framework is not None:
        lib_dir = framework_lib_dir(
            wdk.root, "kmdf", wdk.platform.dir_name, str(options.framework)
        )
        target.private.link_libs.extend(str(lib_dir / lib) for lib in profile.KMDF_LINK_LIBS)

    _add_package_steps(project, wdk, target, inf_template, generate_catalog)
    return target


def _add_package_steps(
    project: Project,
    wdk: WdkConfig,
    target: Target,
    inf_template: Path | str | None,
    generate_catalog: bool,
) -> None:
    """Post-build: INF from template, stamp it, optionally catalog, sign."""
    template = project.root_dir / (inf_template or f"{target.name}.inx")
    if not template.exists():
        logger.warning("INF template %s does not exist yet", template)
    inf = f"$output_dir/{target.name}.inf"

    target.add_post_build(
        [sys.executable, "-m", "findwdk.util.commands", "copy", str(template), inf],
        f"Copying {template.name} to {target.name}.inf",
    )
    target.add_post_build(
        [
            str(wdk.toolset.stampinf),
            "-a",
            wdk.platform.stampinf_arch,
            "-v",
            "*",
            "-k",
            profile.STAMPINF_KMDF_VERSION,
            "-d",
            "*",
            "-x",
            "-f",
            inf,
        ],
        f"Stamping {target.name}.inf",
    )
    if generate_catalog:
        target.add_post_build(
            [
                str(wdk.toolset.inf2cat),
                f"/os:{wdk.platform.inf2cat_os}",
                "/driver:$output_dir",
            ],
            f"Generating catalog for {target.name}",
        )
    target.add_post_build(
        [
            str(wdk.toolset.signtool),
            "sign",
            "/fd",
            "SHA256",
            "/f",
            str(wdk.signing_key),
            "$target_file",
        ],
        f"Signing {target.name}",
    )


def add_kmd_library(
    project: Project,
    wdk: WdkConfig,
    name: str,
    *sources: str | Path | Node,
    kmdf: str | None = None,
    winver: str | None = None,
    ntddi_version: str | None = None,
    library_type: TargetType | str = TargetType.STATIC_LIBRARY,
) -> Target:
    """Declare a kernel-mode library to be linked into drivers.

    Compiles exactly like add_kmd_driver() but produces a static (or
    object) library: no link step, no entry point, no signing.

    Args:
        project: Project to add the target to.
        wdk: Resolved WDK configuration.
        name: Target name.
        *sources: Source files.
        kmdf: KMDF version ("1.15") for KMDF code.
        winver: WINVER override for this target.
        ntddi_version: NTDDI_VERSION override for this target.
        library_type: STATIC_LIBRARY (default) or OBJECT.

    Returns:
        The configured target.
    """
    library_type = TargetType(library_type)
    if library_type not in (TargetType.STATIC_LIBRARY, TargetType.OBJECT):
        raise ValueError(f"kernel libraries cannot be {library_type}")
    options = TargetOptions.create(wdk, kmdf, winver, ntddi_version)
    _log_options(name, "KMDF", options)

    if library_type is TargetType.OBJECT:
        target = project.ObjectLibrary(name, sources)
    else:
        target = project.StaticLibrary(name, sources)
    _apply_kernel_compile(target, wdk, options)
    return target


def add_umd_library(
    project: Project,
    wdk: WdkConfig,
    name: str,
    *sources: str | Path | Node,
    umdf: str | None = None,
    winver: str | None = None,
    ntddi_version: str | None = None,
) -> Target:
    """Declare a user-mode static library for UMDF drivers."""
    options = TargetOptions.create(wdk, umdf, winver, ntddi_version)
    _log_options(name, "UMDF", options)

    target = project.StaticLibrary(name, sources)
    target.private.compile_flags.extend(
        profile.compile_flags(wdk.paths.warning_h, kernel=False)
    )
    for variant, flags in profile.VARIANT_COMPILE_FLAGS.items():
        target.for_variant(variant).compile_flags.extend(flags)

    target.private.defines.extend(profile.BASE_DEFINES)
    target.private.defines.extend(wdk.platform.defines)
    if options.framework is not None:
        target.private.defines.extend(options.framework.defines("UMDF"))
    target.for_variant("debug").defines.extend(profile.DEBUG_DEFINES)
    target.private.defines.extend(
        profile.version_defines(options.winver, options.ntddi_version, winver_macro=False)
    )

    paths = wdk.paths
    target.private.include_dirs.extend([paths.shared, paths.winrt, paths.ucrt, paths.um])
    if options.framework is not None:
        target.private.include_dirs.append(
            framework_include_dir(wdk.root, "umdf", str(options.framework))
        )
    _apply_resource_flags(target, wdk)
    return target


def add_usermode_driver(
    project: Project,
    wdk: WdkConfig,
    name: str,
    *sources: str | Path | Node,
    umdf: str | None = None,
    iddcx: str | None = None,
    winver: str | None = None,
    ntddi_version: str | None = None,
) -> Target:
    """Declare a user-mode (UMDF) driver DLL.

    User-mode drivers use the user-mode header set and link against the
    OneCoreUAP umbrella library and avrt. Packaging and signing of
    user-mode drivers is left to the caller.

    Args:
        project: Project to add the target to.
        wdk: Resolved WDK configuration.
        name: Target name.
        *sources: Source and object files.
        umdf: UMDF version ("2.31").
        iddcx: IddCx version ("1.4") for indirect display drivers.
        winver: _WIN32_WINNT override for this target.
        ntddi_version: NTDDI_VERSION override for this target.

    Returns:
        The configured target.
    """
    options = TargetOptions.create(wdk, umdf, winver, ntddi_version)
    iddcx_version = FrameworkVersion.parse(iddcx) if iddcx is not None else None
    _log_options(name, "UMDF", options)

    target = project.SharedLibrary(name, sources)
    target.output_suffix = ".dll"
    target.private.compile_flags.append("/Gz")

    target.private.defines.extend(profile.BASE_DEFINES)
    target.private.defines.extend(wdk.platform.defines)
    if options.framework is not None:
        target.private.defines.extend(options.framework.defines("UMDF"))
    target.private.defines.extend(
        profile.version_defines(options.winver, options.ntddi_version, winver_macro=False)
    )
    target.private.link_flags.append("/SUBSYSTEM:WINDOWS")

    paths = wdk.paths
    if options.framework is not None:
        target.private.include_dirs.append(
            framework_include_dir(wdk.root, "umdf", str(options.framework))
        )
    target.private.include_dirs.extend([paths.winrt, paths.ucrt, paths.shared, paths.um])
    if iddcx_version is not None:
        target.private.include_dirs.append(paths.um / "iddcx" / str(iddcx_version))
    _apply_resource_flags(target, wdk)

    target.private.link_libs.extend(profile.USERMODE_DRIVER_LIBS)
    if options.framework is not None:
        lib_dir = framework_lib_dir(
            wdk.root, "umdf", wdk.platform.dir_name, str(options.framework)
        )
        target.private.link_libs.extend(str(lib_dir / lib) for lib in profile.UMDF_LINK_LIBS)

    for include_dir in target.private.include_dirs:
        logger.debug("  include: %s", include_dir)
    return target
