# SPDX-License-Identifier: MIT
"""Generator protocol for build file generation.

Generators take a configured Project and write files describing it
(compilation databases, build scripts) to an output directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from findwdk.core.project import Project

logger = logging.getLogger(__name__)


@runtime_checkable
class Generator(Protocol):
    """Protocol for build file generators."""

    @property
    def name(self) -> str:
        """Generator name (e.g. 'compile_commands')."""
        ...

    def generate(self, project: Project, output_dir: Path) -> None:
        """Generate files for a project.

        Args:
            project: The configured project to generate for.
            output_dir: Directory to write output files to.
        """
        ...


class BaseGenerator:
    """Base class for generators with common functionality.

    Subclasses implement _generate_impl(); generate() validates the
    project first and logs what it finds.
    """

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def generate(self, project: Project, output_dir: Path | None = None) -> None:
        """Validate the project, then write the generator's output.

        Args:
            project: The configured project.
            output_dir: Output directory (default: the project build dir).
        """
        for problem in project.validate():
            logger.warning("%s", problem)
        out = Path(output_dir) if output_dir is not None else project.build_dir
        logger.info("Running %s generator into %s", self.name, out)
        self._generate_impl(project, out)

    def _generate_impl(self, project: Project, output_dir: Path) -> None:
        """Generate files. Subclasses must implement."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
