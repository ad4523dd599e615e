# SPDX-License-Identifier: MIT
"""Target abstraction with usage requirements.

A Target represents something that can be built (a driver, a library, ...)
and carries "usage requirements" that propagate to consumers (CMake-style).
Targets also carry the custom commands that run before compilation
(pre-build) and after linking (post-build).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from string import Template
from typing import TYPE_CHECKING, Any

from findwdk.util.source_location import SourceLocation, get_caller_location

if TYPE_CHECKING:
    from findwdk.core.node import FileNode, Node


class TargetType(StrEnum):
    """Kinds of build targets."""

    PROGRAM = "program"
    STATIC_LIBRARY = "static_library"
    SHARED_LIBRARY = "shared_library"
    OBJECT = "object"  # Object files only (no linking)
    INTERFACE = "interface"  # Usage requirements only


# Default output suffixes (Windows naming)
DEFAULT_SUFFIXES: dict[TargetType, str] = {
    TargetType.PROGRAM: ".exe",
    TargetType.STATIC_LIBRARY: ".lib",
    TargetType.SHARED_LIBRARY: ".dll",
}


@dataclass
class UsageRequirements:
    """Requirements that propagate from a target to its consumers.

    When target A depends on target B, B's public usage requirements
    are added to A's build. This enables CMake-style transitive
    dependency management.
    """

    include_dirs: list[Path] = field(default_factory=list)
    link_libs: list[str] = field(default_factory=list)
    defines: list[str] = field(default_factory=list)
    compile_flags: list[str] = field(default_factory=list)
    link_flags: list[str] = field(default_factory=list)
    resource_flags: list[str] = field(default_factory=list)

    def merge(self, other: UsageRequirements) -> None:
        """Merge another UsageRequirements into this one.

        Avoids duplicates while preserving order.
        """
        for inc_dir in other.include_dirs:
            if inc_dir not in self.include_dirs:
                self.include_dirs.append(inc_dir)
        for lib in other.link_libs:
            if lib not in self.link_libs:
                self.link_libs.append(lib)
        for define in other.defines:
            if define not in self.defines:
                self.defines.append(define)
        for cflag in other.compile_flags:
            if cflag not in self.compile_flags:
                self.compile_flags.append(cflag)
        for lflag in other.link_flags:
            if lflag not in self.link_flags:
                self.link_flags.append(lflag)
        for rflag in other.resource_flags:
            if rflag not in self.resource_flags:
                self.resource_flags.append(rflag)

    def clone(self) -> UsageRequirements:
        """Create a copy of this UsageRequirements."""
        return UsageRequirements(
            include_dirs=list(self.include_dirs),
            link_libs=list(self.link_libs),
            defines=list(self.defines),
            compile_flags=list(self.compile_flags),
            link_flags=list(self.link_flags),
            resource_flags=list(self.resource_flags),
        )


@dataclass(frozen=True)
class BuildStep:
    """A custom command attached to a target.

    The command may reference ``$output_dir`` (the variant output
    directory), ``$target_file`` (the target's output file) and
    ``$variant``; they are filled in by render().

    Attributes:
        command: Command line, one argument per item.
        description: Short text shown when the step runs.
    """

    command: tuple[str, ...]
    description: str = ""

    def render(self, target: Target, variant: str) -> list[str]:
        """Return the command with target placeholders substituted."""
        values: dict[str, Any] = {"variant": variant}
        output_dir = target.output_dir(variant)
        if output_dir is not None:
            values["output_dir"] = str(output_dir)
        output = target.output_path(variant)
        if output is not None:
            values["target_file"] = str(output)
        return [Template(arg).safe_substitute(values) for arg in self.command]


class Target:
    """A named build target with usage requirements.

    Usage requirements have two scopes:
    - PUBLIC: Apply to this target AND propagate to dependents
    - PRIVATE: Apply only to this target

    Requirements that only apply to one build variant (for example the
    debug-only definitions of kernel targets) live in variant_requirements
    and are folded in by collect_usage_requirements(variant).

    Example:
        lib = project.StaticLibrary("mylib", sources=["lib.c"])
        lib.public.include_dirs.append(Path("include"))

        drv = project.Program("mydrv", sources=["main.c"])
        drv.link(lib)  # Gets mylib's public include_dirs

    Attributes:
        name: Target name.
        target_type: Type of target.
        sources: Source nodes for this target.
        dependencies: Other targets this depends on.
        public: Usage requirements that propagate to dependents.
        private: Usage requirements for this target only.
        variant_requirements: Private requirements keyed by variant name.
        pre_build: Steps run before compiling this target's sources.
        post_build: Steps run after this target's output is produced.
        output_name: Output file stem (defaults to the target name).
        output_suffix: Output file suffix (e.g. ".sys").
        defined_at: Where this target was created in user code.
    """

    __slots__ = (
        "name",
        "target_type",
        "sources",
        "dependencies",
        "public",
        "private",
        "variant_requirements",
        "pre_build",
        "post_build",
        "output_name",
        "output_suffix",
        "defined_at",
        "_project",
    )

    def __init__(
        self,
        name: str,
        *,
        target_type: TargetType = TargetType.INTERFACE,
        defined_at: SourceLocation | None = None,
    ) -> None:
        self.name = name
        self.target_type = target_type
        self.sources: list[Node] = []
        self.dependencies: list[Target] = []
        self.public = UsageRequirements()
        self.private = UsageRequirements()
        self.variant_requirements: dict[str, UsageRequirements] = {}
        self.pre_build: list[BuildStep] = []
        self.post_build: list[BuildStep] = []
        self.output_name: str | None = None
        self.output_suffix: str | None = DEFAULT_SUFFIXES.get(target_type)
        self.defined_at = defined_at or get_caller_location()
        self._project: Any = None  # Set by Project when target is created

    def link(self, *targets: Target) -> Target:
        """Add targets as dependencies (fluent API).

        Args:
            *targets: Targets to depend on.

        Returns:
            self for method chaining.
        """
        for target in targets:
            if target not in self.dependencies:
                self.dependencies.append(target)
        return self

    def add_source(self, source: Node | Path | str) -> Target:
        """Add a source to this target (fluent API)."""
        self.sources.append(self._to_node(source))
        return self

    def add_sources(
        self,
        sources: list[Node | Path | str],
        *,
        base: Path | str | None = None,
    ) -> Target:
        """Add multiple sources to this target (fluent API).

        Args:
            sources: Source files (Nodes, Paths, or string paths).
            base: Optional base directory for relative paths.

        Returns:
            self for method chaining.
        """
        base_path = Path(base) if base else None
        for source in sources:
            if base_path and isinstance(source, (str, Path)):
                path = Path(source)
                if not path.is_absolute():
                    source = base_path / path
            self.sources.append(self._to_node(source))
        return self

    def _to_node(self, source: Node | Path | str) -> Node:
        """Convert a source path or node to a Node."""
        from findwdk.core.node import FileNode, Node as NodeClass

        if isinstance(source, NodeClass):
            return source
        if self._project is not None:
            return self._project.node(source)
        return FileNode(source)

    # Fluent API for usage requirements

    def public_includes(self, dirs: list[Path | str]) -> Target:
        """Add public include directories (fluent API)."""
        for d in dirs:
            self.public.include_dirs.append(Path(d))
        return self

    def public_defines(self, defines: list[str]) -> Target:
        """Add public preprocessor defines (fluent API)."""
        self.public.defines.extend(defines)
        return self

    def private_includes(self, dirs: list[Path | str]) -> Target:
        """Add private include directories (fluent API)."""
        for d in dirs:
            self.private.include_dirs.append(Path(d))
        return self

    def private_defines(self, defines: list[str]) -> Target:
        """Add private preprocessor defines (fluent API)."""
        self.private.defines.extend(defines)
        return self

    def private_flags(self, flags: list[str]) -> Target:
        """Add private compiler flags (fluent API)."""
        self.private.compile_flags.extend(flags)
        return self

    def for_variant(self, variant: str) -> UsageRequirements:
        """Get (creating if needed) the private requirements of one variant."""
        key = variant.lower()
        if key not in self.variant_requirements:
            self.variant_requirements[key] = UsageRequirements()
        return self.variant_requirements[key]

    # Build steps

    def add_pre_build(self, command: list[str], description: str = "") -> BuildStep:
        """Schedule a command to run before this target's sources compile."""
        step = BuildStep(tuple(command), description)
        self.pre_build.append(step)
        return step

    def add_post_build(self, command: list[str], description: str = "") -> BuildStep:
        """Schedule a command to run after this target's output is built."""
        step = BuildStep(tuple(command), description)
        self.post_build.append(step)
        return step

    # Outputs

    @property
    def is_imported(self) -> bool:
        return False

    def output_dir(self, variant: str) -> Path | None:
        """Directory the target's output goes to for a variant."""
        if self._project is None:
            return None
        return Path(self._project.build_dir) / variant

    def output_path(self, variant: str) -> Path | None:
        """Full path of the target's output file, if it produces one."""
        out_dir = self.output_dir(variant)
        if out_dir is None or self.output_suffix is None:
            return None
        return out_dir / f"{self.output_name or self.name}{self.output_suffix}"

    def object_path(self, source: FileNode, variant: str) -> Path | None:
        """Path of the object file compiled from one of this target's sources."""
        out_dir = self.output_dir(variant)
        if out_dir is None:
            return None
        return out_dir / f"{self.name}.dir" / f"{source.path.stem}.obj"

    # Requirement collection

    def collect_usage_requirements(self, variant: str | None = None) -> UsageRequirements:
        """Collect transitive public requirements from all dependencies.

        Returns a UsageRequirements containing this target's private
        requirements, the requirements of the given variant, plus all
        public requirements from the dependency tree.

        Args:
            variant: Build variant whose extra requirements to include.

        Returns:
            Combined usage requirements.
        """
        result = self.private.clone()
        if variant is not None:
            extra = self.variant_requirements.get(variant.lower())
            if extra is not None:
                result.merge(extra)

        visited: set[str] = set()
        self._collect_from_deps(result, visited)
        return result

    def _collect_from_deps(self, result: UsageRequirements, visited: set[str]) -> None:
        """Recursively collect public requirements from dependencies."""
        for dep in self.dependencies:
            if dep.name in visited:
                continue
            visited.add(dep.name)
            result.merge(dep.public)
            dep._collect_from_deps(result, visited)

    def __repr__(self) -> str:
        deps = ", ".join(d.name for d in self.dependencies)
        return f"Target({self.name!r}, {self.target_type}, deps=[{deps}])"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Target):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)


class ImportedTarget(Target):
    """A target representing a prebuilt library.

    ImportedTargets are not built; they only carry usage requirements.
    The WDK's kernel libraries are exposed this way, one per .lib file,
    named ``WDK::<UPPER STEM>``.

    Example:
        ntoskrnl = ImportedTarget("WDK::NTOSKRNL", library=lib_dir / "ntoskrnl.lib")
        driver.link(ntoskrnl)  # Links against ntoskrnl.lib
    """

    __slots__ = ("library", "package_name", "version")

    def __init__(
        self,
        name: str,
        *,
        library: Path | str | None = None,
        package_name: str | None = None,
        version: str | None = None,
        defined_at: SourceLocation | None = None,
    ) -> None:
        super().__init__(name, target_type=TargetType.INTERFACE, defined_at=defined_at)
        self.library = Path(library) if library is not None else None
        self.package_name = package_name or name
        self.version = version
        if self.library is not None:
            self.public.link_libs.append(str(self.library))

    @property
    def is_imported(self) -> bool:
        return True

    def __repr__(self) -> str:
        version = f" v{self.version}" if self.version else ""
        return f"ImportedTarget({self.name!r}{version})"
