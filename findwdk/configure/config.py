# SPDX-License-Identifier: MIT
"""Configure context for findwdk.

The Configure class provides the context for the configure phase:
program discovery under SDK directories and a JSON cache of the
results, so a build description can record what it resolved.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from findwdk.configure.platform import get_platform

logger = logging.getLogger(__name__)


@dataclass
class ProgramInfo:
    """Information about a found program.

    Attributes:
        path: Path to the program executable.
        version: Version string if known.
    """

    path: Path
    version: str | None = None


class Configure:
    """Context for the configure phase.

    The Configure class manages:
    - Platform detection
    - Program/tool discovery
    - Configuration caching

    Example:
        config = Configure(build_dir=Path("build"))

        # Find a program under an SDK bin directory
        signtool = config.find_program(
            "signtool", hints=[wdk_bin], path_suffixes=["x64", "x86"]
        )

        # Save configuration for later
        config.save()

    Attributes:
        platform: The detected platform.
        build_dir: Directory for build outputs and cache.
    """

    def __init__(
        self,
        *,
        build_dir: Path | str = "build",
        cache_file: str | None = "findwdk_config.json",
    ) -> None:
        """Create a configure context.

        Args:
            build_dir: Directory for build outputs.
            cache_file: Name of the cache file within build_dir, or None
                for a context that neither loads nor saves a cache.
        """
        self.platform = get_platform()
        self.build_dir = Path(build_dir)
        self._cache_file = cache_file
        self._cache: dict[str, Any] = {}

        self._load_cache()

    def _cache_path(self) -> Path | None:
        """Get the path to the cache file."""
        if self._cache_file is None:
            return None
        return self.build_dir / self._cache_file

    def _load_cache(self) -> None:
        """Load configuration from cache file if it exists."""
        cache_path = self._cache_path()
        if cache_path is not None and cache_path.exists():
            try:
                with open(cache_path) as f:
                    self._cache = json.load(f)
            except (json.JSONDecodeError, OSError):
                logger.warning("Ignoring unreadable config cache %s", cache_path)
                self._cache = {}

    def save(self, path: Path | None = None) -> None:
        """Save configuration to cache file.

        Args:
            path: Optional path override for cache file.

        Raises:
            ValueError: If there is neither a path nor a cache file.
        """
        cache_path = path or self._cache_path()
        if cache_path is None:
            raise ValueError("Configure has no cache file; pass a path")
        cache_path.parent.mkdir(parents=True, exist_ok=True)

        with open(cache_path, "w") as f:
            json.dump(self._cache, f, indent=2, default=str)
            f.write("\n")

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        self._cache[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, or default if not found."""
        return self._cache.get(key, default)

    def clear(self) -> None:
        """Forget everything loaded from or recorded into the cache."""
        self._cache.clear()

    def _candidate_names(self, name: str) -> list[str]:
        """File names a program may have on disk, preferred first."""
        if Path(name).suffix:
            return [name]
        if self.platform.is_windows:
            return [f"{name}.exe", name]
        return [name, f"{name}.exe"]

    def find_program(
        self,
        name: str,
        *,
        hints: list[Path | str] | None = None,
        path_suffixes: list[str] | None = None,
        required: bool = False,
    ) -> ProgramInfo | None:
        """Find a program under the given hint directories.

        Each hint directory is searched with each path suffix appended,
        in order (hint/suffix for every suffix, then the bare hint).
        Only the hint directories are searched: there is no PATH
        fallback, so a program is never picked up from an unrelated
        installation. The search always runs: a cached path only records
        the previous result, so a tool installed into an earlier search
        directory since then takes precedence.

        Args:
            name: Program name (e.g., 'signtool'); '.exe' is tried too.
            hints: Directories to search.
            path_suffixes: Subdirectories of each hint to search first.
            required: If True, raise error if not found.

        Returns:
            ProgramInfo if found, None otherwise.

        Raises:
            FileNotFoundError: If required and not found.
        """
        search_dirs = self._search_dirs(hints or [], path_suffixes or [])

        found_path: Path | None = None
        for directory in search_dirs:
            for candidate_name in self._candidate_names(name):
                candidate = directory / candidate_name
                if candidate.is_file() and os.access(candidate, os.X_OK):
                    found_path = candidate
                    break
            if found_path is not None:
                break

        if found_path is None:
            logger.debug("%s not found in %s", name, [str(d) for d in search_dirs])
            if required:
                raise FileNotFoundError(f"Required program not found: {name}")
            return None

        cache_key = f"program:{name}"
        cached = self._cache.get(cache_key)
        version = None
        if cached is not None:
            if Path(cached["path"]) == found_path:
                version = cached.get("version")
            else:
                logger.info("%s moved: %s -> %s", name, cached["path"], found_path)
        self._cache[cache_key] = {"path": str(found_path), "version": version}

        return ProgramInfo(path=found_path, version=version)

    @staticmethod
    def _search_dirs(hints: list[Path | str], path_suffixes: list[str]) -> list[Path]:
        dirs: list[Path] = []
        for hint in hints:
            hint_path = Path(hint)
            for suffix in path_suffixes:
                dirs.append(hint_path / suffix)
            dirs.append(hint_path)
        return dirs

    def __repr__(self) -> str:
        return (
            f"Configure(platform={self.platform.os}/{self.platform.arch}, "
            f"build_dir={self.build_dir})"
        )


def load_config(path: Path | str = "build/findwdk_config.json") -> dict[str, Any]:
    """Load a saved configuration.

    Args:
        path: Path to the config file.

    Returns:
        Configuration dict.

    Raises:
        FileNotFoundError: If config file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data: dict[str, Any] = json.load(f)
        return data
