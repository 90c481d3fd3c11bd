"""
Directory ignore rules for the source scanner.

Plain entries ("node_modules", ".git", "[old]") are directory names and match
a directory with exactly that name at any depth; glob characters in a plain
entry are literal. Entries containing a slash ("vendor/*", "themes/**/dist")
are gitignore-style patterns matched against the directory's root-relative
path, using the pathspec library for GitIgnore-compliant matching.

Either way an ignored directory prunes its whole subtree.
"""

import logging
from typing import Iterable

from pathspec import GitIgnoreSpec

logger = logging.getLogger(__name__)


def is_pattern(entry: str) -> bool:
    """Return True if an ignore entry is a gitignore-style pattern, not a bare name."""
    return "/" in entry


class IgnoreFilter:
    """
    Decides whether a directory is excluded from the scan.

    Example:
    --------
    >>> ignore = build_ignore_filter({"node_modules", "[old]", "vendor/*"})
    >>> ignore.is_ignored("[old]", "styles/[old]")
    True
    >>> ignore.is_ignored("o", "styles/o")
    False
    >>> ignore.is_ignored("node_modules", "a/b/node_modules")
    True
    >>> ignore.is_ignored("lib", "vendor/lib")
    True
    >>> ignore.is_ignored("styles", "styles")
    False
    """

    def __init__(self, names: Iterable[str] = (), patterns: Iterable[str] = ()) -> None:
        self.names = frozenset(names)
        self.patterns = tuple(patterns)
        self._spec = GitIgnoreSpec.from_lines(self.patterns) if self.patterns else None

    def is_ignored(self, name: str, rel_path: str) -> bool:
        """
        Check a directory against the ignore rules.

        Args:
            name: Directory name (last path component)
            rel_path: Root-relative directory path with "/" separators

        Returns:
            True if the directory and everything below it must be skipped
        """
        if name in self.names:
            return True
        if self._spec is not None:
            # Trailing slash so directory-only patterns ("dist/") match
            return self._spec.match_file(f"{rel_path}/")
        return False

    def __bool__(self) -> bool:
        return bool(self.names or self.patterns)


def build_ignore_filter(entries: Iterable[str]) -> IgnoreFilter:
    """
    Split configured ignore entries into exact names and patterns.

    Args:
        entries: Ignore list from the configuration

    Returns:
        IgnoreFilter for the scanner
    """
    names = []
    patterns = []
    for entry in entries:
        entry = entry.strip()
        if not entry:
            continue
        if is_pattern(entry):
            patterns.append(entry)
        else:
            names.append(entry)

    if patterns:
        logger.debug(f"Ignore patterns: {patterns}")

    return IgnoreFilter(names=names, patterns=patterns)
