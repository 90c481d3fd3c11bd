"""
Source file discovery for the build daemon.

Uses os.walk() with directory pruning so ignored directories are skipped
BEFORE descending into them.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from ..errors import ScanError
from ..ignore_patterns import IgnoreFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateFile:
    """A regular file found under the root directory."""

    path: Path  # Absolute path
    name: str  # File name
    rel_path: str  # Root-relative, "/" separators, no leading slash


class DirectoryScanner:
    """
    Recursively enumerates files under a root directory.

    Behavior:
    ---------
    - Directories matched by the ignore filter are pruned with their subtree
    - Symbolic links are never followed (neither directories nor files)
    - A directory that can't be listed is logged as a ScanError and skipped;
      the rest of the tree is still scanned

    The scanner is reusable; errors from the most recent scan are kept in
    ``errors``.
    """

    def __init__(self, root: Path, ignore: Optional[IgnoreFilter] = None) -> None:
        self.root = Path(root)
        self.ignore = ignore if ignore is not None else IgnoreFilter()
        self.errors: list[ScanError] = []

    def _on_walk_error(self, error: OSError) -> None:
        path = Path(error.filename) if error.filename else self.root
        scan_error = ScanError(error.strerror or str(error), path=path)
        self.errors.append(scan_error)
        logger.error(f"❌ Cannot list directory, skipping: {scan_error}")

    def scan(self) -> Iterator[CandidateFile]:
        """
        Walk the root directory.

        Yields:
            CandidateFile for each regular, non-ignored file
        """
        self.errors = []
        root_str = str(self.root)

        for dirpath, dirs, files in os.walk(root_str, onerror=self._on_walk_error, followlinks=False):
            if dirpath == root_str:
                rel_root = ""
            else:
                rel_root = os.path.relpath(dirpath, root_str).replace("\\", "/")

            # Prune ignored directories IN-PLACE to prevent descent
            dirs_to_keep = []
            for d in dirs:
                dir_rel = f"{rel_root}/{d}" if rel_root else d
                if self.ignore.is_ignored(d, dir_rel):
                    logger.debug(f"Ignoring directory: {dir_rel}")
                    continue
                dirs_to_keep.append(d)
            dirs[:] = dirs_to_keep

            for f in files:
                file_path = Path(dirpath) / f
                if file_path.is_symlink():
                    logger.debug(f"Skipping symlink: {file_path}")
                    continue

                yield CandidateFile(
                    path=file_path,
                    name=f,
                    rel_path=f"{rel_root}/{f}" if rel_root else f,
                )


def scan_directory(root: Path, ignore: Optional[IgnoreFilter] = None) -> list[CandidateFile]:
    """Scan a directory tree and return all candidate files as a list."""
    return list(DirectoryScanner(root, ignore).scan())
