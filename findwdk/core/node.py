# SPDX-License-Identifier: MIT
"""Nodes of the build graph: source files and generated files."""

from __future__ import annotations

from pathlib import Path

from findwdk.util.source_location import SourceLocation, get_caller_location

# Source suffixes compiled by cl.exe, by language
SOURCE_LANGUAGES: dict[str, str] = {
    ".c": "c",
    ".cpp": "cxx",
    ".cxx": "cxx",
    ".cc": "cxx",
    ".asm": "asm",
    ".rc": "resource",
}


class Node:
    """Base class for a Node, an entry in the project dependency graph."""

    def __init__(self, *, defined_at: SourceLocation | None = None) -> None:
        self.defined_at = defined_at


class FileNode(Node):
    """A file system node, representing a possible file in the file system.

    The file may or may not exist at the time the node is created, for
    example if it is generated by a pre-build step.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        defined_at: SourceLocation | None = None,
    ) -> None:
        super().__init__(defined_at=defined_at or get_caller_location())
        self.path = Path(path)
        # Set when a pre-build step produces this file
        self.generated = False

    @property
    def language(self) -> str | None:
        """Language of this file if it is a compilable source, else None."""
        return SOURCE_LANGUAGES.get(self.path.suffix.lower())

    def exists(self) -> bool:
        return self.path.exists()

    def __repr__(self) -> str:
        return f"FileNode({str(self.path)!r})"
