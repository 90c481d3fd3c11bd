"""
Workspace scanning: discovery, selection and output path mapping.

- discovery: walk the root tree with directory pruning
- selection: decide which discovered files are build inputs
- paths: map a source file to its output (and source map) location
"""

from .discovery import CandidateFile, DirectoryScanner, scan_directory
from .paths import OutputTargets, PathMapper
from .selection import FileSelector, is_build_input

__all__ = [
    "CandidateFile",
    "DirectoryScanner",
    "FileSelector",
    "OutputTargets",
    "PathMapper",
    "is_build_input",
    "scan_directory",
]
