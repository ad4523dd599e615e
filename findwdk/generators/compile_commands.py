# SPDX-License-Identifier: MIT
"""compile_commands.json generator for IDE integration.

Driver sources are compiled by cl.exe with a long list of WDK-specific
flags, include directories and definitions. Writing them to a JSON
compilation database lets editors and language servers parse driver
code with the same settings the real build uses.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any

from findwdk.core.node import FileNode
from findwdk.generators.generator import BaseGenerator

if TYPE_CHECKING:
    from findwdk.core.project import Project
    from findwdk.core.target import Target

logger = logging.getLogger(__name__)


class CompileCommandsGenerator(BaseGenerator):
    """Generator for compile_commands.json.

    Format:
        [
            {
                "directory": "C:/src/driver",
                "file": "C:/src/driver/Driver.c",
                "command": "cl.exe /nologo /c ... /FoC:/src/driver/build/...",
                "output": "C:/src/driver/build/release/Driver.dir/Driver.obj"
            },
            ...
        ]

    Example:
        generator = CompileCommandsGenerator()
        generator.generate(project)
        # Creates <build_dir>/compile_commands.json
    """

    # Languages that should be included in compile_commands.json
    COMPILE_LANGUAGES = {"c", "cxx"}

    def __init__(self, *, compiler: str = "cl.exe", link_to_root: bool = False) -> None:
        """Create the generator.

        Args:
            compiler: Compiler executable named in each command.
            link_to_root: Also symlink the database into the project root.
        """
        super().__init__("compile_commands")
        self.compiler = compiler
        self.link_to_root = link_to_root

    def _generate_impl(self, project: Project, output_dir: Path) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / "compile_commands.json"

        commands: list[dict[str, Any]] = []
        for target in project.targets:
            if target.is_imported:
                continue
            commands.extend(self._collect_compile_commands(target, project))

        with open(output_file, "w") as f:
            json.dump(commands, f, indent=2)
            f.write("\n")
        logger.info("Wrote %d compile commands to %s", len(commands), output_file)

        if self.link_to_root:
            self._create_root_symlink(output_file, project)

    def _create_root_symlink(self, output_file: Path, project: Project) -> None:
        """Symlink compile_commands.json into the project root.

        A regular file already at the root is left alone; failures (for
        example missing symlink privileges on Windows) are logged.
        """
        root_dir = project.root_dir
        link_path = root_dir / "compile_commands.json"

        if output_file.resolve() == link_path.resolve():
            return

        try:
            target_path = os.path.relpath(output_file, root_dir)
        except ValueError:
            # relpath fails across drive letters
            return

        if link_path.is_symlink():
            if Path(os.readlink(link_path)) == Path(target_path):
                return
            link_path.unlink()
        elif link_path.exists():
            logger.warning(
                "compile_commands.json exists at project root as a "
                "regular file; not replacing with symlink"
            )
            return

        try:
            link_path.symlink_to(target_path)
        except OSError as e:
            logger.warning(
                "Could not create compile_commands.json symlink at project root: %s",
                e,
            )

    def _collect_compile_commands(
        self, target: Target, project: Project
    ) -> list[dict[str, Any]]:
        """One entry per C/C++ source of a target."""
        requirements = target.collect_usage_requirements(project.variant)
        commands: list[dict[str, Any]] = []

        for source in target.sources:
            if not isinstance(source, FileNode):
                continue
            if source.language not in self.COMPILE_LANGUAGES:
                continue
            obj = target.object_path(source, project.variant)
            if obj is None:
                continue

            parts: list[str] = [self.compiler, "/nologo", "/c"]
            parts.extend(requirements.compile_flags)
            parts.extend(f"/I{inc}" for inc in requirements.include_dirs)
            parts.extend(f"/D{define}" for define in requirements.defines)
            parts.append(f"/Fo{obj}")
            parts.append(str(source.path))

            commands.append(
                {
                    "directory": str(project.root_dir.absolute()),
                    "file": str(source.path),
                    "command": subprocess.list2cmdline(parts),
                    "output": str(obj),
                }
            )
        return commands
