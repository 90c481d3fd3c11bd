"""
Build input selection.

A discovered file is compiled only if:
1. its name ends with the source extension (case-sensitive)
2. its name doesn't start with the partial marker ("_mixins.less" is meant
   to be imported, not compiled on its own)
3. when an allow-list is configured, its root-relative path is listed
"""

from typing import AbstractSet

from ..config import BuildConfig
from .discovery import CandidateFile


def is_build_input(
    rel_path: str,
    name: str,
    source_extension: str = ".less",
    partial_prefix: str = "_",
    allowed: AbstractSet[str] = frozenset(),
) -> bool:
    """
    Pure selection predicate.

    Args:
        rel_path: Root-relative path with "/" separators
        name: File name
        source_extension: Required (dotted) suffix
        partial_prefix: Marker of partial files
        allowed: Allow-list of root-relative paths (empty = everything)

    Returns:
        True if the file is a build input
    """
    if not name.endswith(source_extension):
        return False
    if partial_prefix and name.startswith(partial_prefix):
        return False
    if allowed and rel_path not in allowed:
        return False
    return True


class FileSelector:
    """Applies the selection predicate with the values from a BuildConfig."""

    def __init__(self, config: BuildConfig) -> None:
        self.source_extension = config.source_extension
        self.partial_prefix = config.partial_prefix
        self.allowed = config.files

    def accepts(self, rel_path: str, name: str) -> bool:
        return is_build_input(
            rel_path,
            name,
            source_extension=self.source_extension,
            partial_prefix=self.partial_prefix,
            allowed=self.allowed,
        )

    def __call__(self, candidate: CandidateFile) -> bool:
        return self.accepts(candidate.rel_path, candidate.name)
