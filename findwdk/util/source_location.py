# SPDX-License-Identifier: MIT
"""Source locations for build description objects.

Targets and projects remember where in the user's build.py they were
created so that error messages can point back at the declaration.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourceLocation:
    """A file/line/function triple in user code."""

    filename: str
    lineno: int
    function: str = ""

    def __str__(self) -> str:
        where = f"{self.filename}:{self.lineno}"
        if self.function:
            return f"{where} in {self.function}()"
        return where


_PACKAGE_DIR = Path(__file__).resolve().parent.parent


def get_caller_location() -> SourceLocation | None:
    """Return the first stack frame outside the findwdk package.

    Returns:
        Location of the user code that called into findwdk, or None
        if the whole stack is inside findwdk.
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            filename = frame.f_code.co_filename
            try:
                inside = Path(filename).resolve().is_relative_to(_PACKAGE_DIR)
            except (OSError, ValueError):
                inside = False
            if not inside:
                return SourceLocation(
                    filename, frame.f_lineno, frame.f_code.co_name
                )
            frame = frame.f_back
        return None
    finally:
        del frame
