# SPDX-License-Identifier: MIT
"""Project container for findwdk builds.

The Project is the top-level container that holds all targets and nodes
for a build. It provides node deduplication and serves as the context
that the WDK target configurators register their targets with.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from findwdk.core.errors import ConfigureError, FindWdkError
from findwdk.core.node import FileNode, Node
from findwdk.core.target import ImportedTarget, Target, TargetType
from findwdk.util.source_location import SourceLocation, get_caller_location

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class Project:
    """Top-level container for a findwdk build.

    The Project manages:
    - Targets (drivers, libraries) and imported library targets
    - Node deduplication (same path -> same node)
    - Build validation (cycle detection, missing sources)

    Example:
        project = Project("mydriver")
        wdk = find_wdk()
        add_kmd_driver(project, wdk, "MyDriver", "main.c", kmdf="1.15")

    Attributes:
        name: Project name.
        root_dir: Project root directory (where sources and .inx files live).
        build_dir: Directory for build outputs.
        variant: Build variant ("debug" or "release").
    """

    __slots__ = (
        "name",
        "root_dir",
        "build_dir",
        "variant",
        "_targets",
        "_nodes",
        "defined_at",
    )

    def __init__(
        self,
        name: str,
        *,
        root_dir: Path | str | None = None,
        build_dir: Path | str = "build",
        variant: str | None = None,
        defined_at: SourceLocation | None = None,
    ) -> None:
        """Create a project.

        Args:
            name: Project name.
            root_dir: Project root directory (default: current dir).
            build_dir: Directory for build outputs (default: "build").
            variant: Build variant (default: from get_variant()).
            defined_at: Source location where project was created.
        """
        from findwdk import get_variant

        self.name = name
        self.root_dir = Path(root_dir) if root_dir else Path.cwd()
        self.build_dir = Path(build_dir)
        self.variant = (variant or get_variant()).lower()
        self._targets: dict[str, Target] = {}
        self._nodes: dict[Path, Node] = {}
        self.defined_at = defined_at or get_caller_location()

    def node(self, path: Path | str) -> FileNode:
        """Get or create a file node for a path.

        The same path always returns the same node instance. Relative
        paths are taken relative to the project root.
        """
        path = Path(path)
        if not path.is_absolute():
            path = self.root_dir / path
        if path not in self._nodes:
            self._nodes[path] = FileNode(path, defined_at=get_caller_location())
        node = self._nodes[path]
        if not isinstance(node, FileNode):
            raise TypeError(
                f"Path {path} is registered as {type(node).__name__}, not FileNode"
            )
        return node

    def add_target(self, target: Target) -> None:
        """Register a target with the project.

        Raises:
            ValueError: If a target with the same name already exists.
        """
        if target.name in self._targets:
            existing = self._targets[target.name]
            raise ValueError(
                f"Target '{target.name}' already exists "
                f"(defined at {existing.defined_at})"
            )
        target._project = self
        self._targets[target.name] = target

    def get_target(self, name: str) -> Target | None:
        """Get a target by name, or None if not found."""
        return self._targets.get(name)

    def require_target(self, target: Target | str) -> Target:
        """Look up a target by name, failing if it was never declared."""
        if isinstance(target, Target):
            return target
        found = self._targets.get(target)
        if found is None:
            raise ConfigureError(f"no target named '{target}'")
        return found

    @property
    def targets(self) -> list[Target]:
        """Get all registered targets."""
        return list(self._targets.values())

    def imported(self, name: str, library: Path | str, **kwargs: str) -> ImportedTarget:
        """Get or create an imported library target.

        Args:
            name: Target name (e.g. "WDK::NTOSKRNL").
            library: The library file the target links against.
            **kwargs: Passed to ImportedTarget (package_name, version).

        Returns:
            The imported target registered under name.
        """
        existing = self._targets.get(name)
        if existing is not None:
            if not isinstance(existing, ImportedTarget):
                raise ValueError(f"Target '{name}' exists and is not imported")
            return existing
        target = ImportedTarget(
            name, library=library, defined_at=get_caller_location(), **kwargs
        )
        self.add_target(target)
        return target

    def _new_target(
        self,
        name: str,
        target_type: TargetType,
        sources: Iterable[str | Path | Node] | None,
    ) -> Target:
        target = Target(name, target_type=target_type, defined_at=get_caller_location())
        self.add_target(target)
        if sources:
            target.add_sources(list(sources))
        return target

    def Program(
        self, name: str, sources: Iterable[str | Path | Node] | None = None
    ) -> Target:
        """Create a program (linked executable image) target."""
        return self._new_target(name, TargetType.PROGRAM, sources)

    def StaticLibrary(
        self, name: str, sources: Iterable[str | Path | Node] | None = None
    ) -> Target:
        """Create a static library target."""
        return self._new_target(name, TargetType.STATIC_LIBRARY, sources)

    def SharedLibrary(
        self, name: str, sources: Iterable[str | Path | Node] | None = None
    ) -> Target:
        """Create a shared library (DLL) target."""
        return self._new_target(name, TargetType.SHARED_LIBRARY, sources)

    def ObjectLibrary(
        self, name: str, sources: Iterable[str | Path | Node] | None = None
    ) -> Target:
        """Create an object library target (compiles but doesn't link)."""
        return self._new_target(name, TargetType.OBJECT, sources)

    def validate(self) -> list[Exception]:
        """Validate the project configuration.

        Checks for:
        - Dependency cycles
        - Missing source files (generated files are exempt)

        Returns:
            List of validation errors (empty if valid).
        """
        errors: list[Exception] = []

        for cycle in _find_cycles(self.targets):
            errors.append(FindWdkError(f"dependency cycle: {' -> '.join(cycle)}"))

        for target in self._targets.values():
            for source in target.sources:
                if isinstance(source, FileNode):
                    if not source.generated and not source.exists():
                        errors.append(
                            FindWdkError(
                                f"source file not found: {source.path}",
                                target.defined_at,
                            )
                        )

        return errors

    def print_targets(self) -> None:
        """Print a human-readable summary of all targets.

        Useful for debugging. Shows target names, types, and dependencies.
        """
        print(f"Project: {self.name}")
        print(f"Build dir: {self.build_dir}")
        print(f"Variant: {self.variant}")
        built = [t for t in self._targets.values() if not t.is_imported]
        print(f"Targets ({len(built)}):")

        for target in sorted(built, key=lambda t: t.name):
            print(f"  {target.name} ({target.target_type})")
            if target.sources:
                print(f"    sources: {len(target.sources)} files")
            output = target.output_path(self.variant)
            if output is not None:
                print(f"    output: {output}")
            if target.dependencies:
                deps = [d.name for d in target.dependencies]
                print(f"    links: {', '.join(deps)}")
            if target.pre_build:
                print(f"    pre-build steps: {len(target.pre_build)}")
            if target.post_build:
                print(f"    post-build steps: {len(target.post_build)}")

    def __repr__(self) -> str:
        return f"Project({self.name!r}, targets={len(self._targets)})"


def _find_cycles(targets: list[Target]) -> list[list[str]]:
    """Find dependency cycles among targets (each reported once)."""
    cycles: list[list[str]] = []
    done: set[str] = set()

    def _visit(target: Target, stack: list[str]) -> None:
        if target.name in stack:
            cycles.append(stack[stack.index(target.name) :] + [target.name])
            return
        if target.name in done:
            return
        stack.append(target.name)
        for dep in target.dependencies:
            _visit(dep, stack)
        stack.pop()
        done.add(target.name)

    for target in targets:
        _visit(target, [])
    return cycles
