"""
Error taxonomy for the build daemon.

Every failure the daemon can hit while scanning, reading, compiling or
writing is one of these. None of them is fatal at the process level: they are
logged where they happen and the daemon keeps watching.
"""

from pathlib import Path
from typing import Optional


class LesswatchError(Exception):
    """Base class for all lesswatch errors."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.path}: {self.message}"
        return self.message


class ScanError(LesswatchError):
    """Raised when a directory could not be listed."""

    pass


class ReadError(LesswatchError):
    """Raised when a selected source file could not be read."""

    pass


class CompileError(LesswatchError):
    """Raised when the external compiler rejects a source file."""

    pass


class WriteError(LesswatchError):
    """Raised when an output or source map file could not be written."""

    pass


class InvalidPathError(LesswatchError, ValueError):
    """Raised when a source path is not rooted under the configured root."""

    pass
