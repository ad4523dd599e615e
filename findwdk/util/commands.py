# SPDX-License-Identifier: MIT
"""Helper commands used inside generated build steps.

Build steps run outside Python, so file operations that would otherwise
need a shell (and differ between cmd.exe and POSIX shells) are done by
invoking this module:

    python -m findwdk.util.commands copy <src> <dest>
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path


def copy(src: str, dest: str) -> None:
    """Copy a file, creating parent directories as needed."""
    dest_path = Path(dest)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest_path)


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: python -m findwdk.util.commands copy <src> <dest>", file=sys.stderr)
        return 1

    cmd = args[0]
    if cmd == "copy":
        if len(args) != 3:
            print(
                "Usage: python -m findwdk.util.commands copy <src> <dest>",
                file=sys.stderr,
            )
            return 1
        copy(args[1], args[2])
        return 0

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
