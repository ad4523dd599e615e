# SPDX-License-Identifier: MIT
"""Custom exceptions for findwdk.

All findwdk exceptions inherit from FindWdkError, which includes
optional source location information for better error messages.

Every error raised while locating the WDK or configuring a target is a
ConfigureError: there is no recoverable error class, a failure aborts the
whole configuration pass.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from findwdk.util.source_location import SourceLocation


class FindWdkError(Exception):
    """Base class for all findwdk exceptions.

    Attributes:
        message: The error message.
        location: Optional source location where the error occurred.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ConfigureError(FindWdkError):
    """Error during the configure phase.

    Raised when WDK discovery fails, a tool is missing, or a target
    configuration is invalid.
    """


class SdkNotFoundError(ConfigureError):
    """No usable WDK installation was found.

    Attributes:
        searched: The locations that were searched.
    """

    def __init__(
        self,
        message: str,
        searched: list[Path] | None = None,
        location: SourceLocation | None = None,
    ) -> None:
        self.searched = searched or []
        if self.searched:
            dirs = ", ".join(str(p) for p in self.searched)
            message = f"{message} (searched: {dirs})"
        super().__init__(message, location)


class ToolNotFoundError(ConfigureError):
    """Required tool was not found.

    Attributes:
        tool: The name of the tool that was not found.
    """

    def __init__(
        self,
        tool: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.tool = tool
        super().__init__(f"tool not found: {tool}", location)


class SigningKeyNotFoundError(ConfigureError):
    """The private key used to sign drivers does not exist.

    Attributes:
        path: The path that was checked.
    """

    def __init__(
        self,
        path: Path | str,
        location: SourceLocation | None = None,
    ) -> None:
        self.path = Path(path)
        super().__init__(f"PFX not found: {path}", location)


class UnsupportedArchitectureError(ConfigureError):
    """The requested build architecture has no WDK platform.

    Attributes:
        arch: The architecture name that was not recognized.
    """

    def __init__(
        self,
        arch: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.arch = arch
        super().__init__(f"unsupported architecture: {arch}", location)


class InvalidFrameworkVersionError(ConfigureError):
    """A KMDF/UMDF version is not of the form ``<major>.<minor>``.

    Attributes:
        version: The rejected version text.
    """

    def __init__(
        self,
        version: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.version = version
        super().__init__(
            f"invalid framework version {version!r}: expected <major>.<minor>",
            location,
        )
