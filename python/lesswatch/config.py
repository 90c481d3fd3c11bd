"""
Build configuration.

A BuildConfig is resolved exactly once at startup (normally by the CLI) and
then handed by reference to every component. Nothing downstream of this
module looks at the working directory, the environment or argv.

Typical usage:
--------------
    from lesswatch.config import BuildConfig

    config = BuildConfig.resolve(
        directory="styles",
        output="build/css",
        extension="css",
        ignore=["node_modules", "vendor"],
        source_map=True,
    )
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

DEFAULT_SOURCE_EXTENSION = ".less"
DEFAULT_OUTPUT_EXTENSION = ".less.css"
DEFAULT_PARTIAL_PREFIX = "_"
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_LESSC = "lessc"

OPTIMIZATION_LEVELS = (0, 1, 2)

PathLike = Union[str, os.PathLike]


def normalize_extension(extension: str) -> str:
    """
    Normalize an output extension so it always starts with a dot.

    Args:
        extension: Extension as given by the user ("css", ".less.css", ...)

    Returns:
        Dotted extension

    Raises:
        ValueError: If the extension is empty
    """
    if not extension:
        raise ValueError("extension must not be empty")
    if extension.startswith("."):
        return extension
    return f".{extension}"


def normalize_allowed_path(rel_path: str) -> str:
    """Convert an allow-list entry to the root-relative form used by the selector."""
    rel_path = str(rel_path).replace("\\", "/")
    while rel_path.startswith("./"):
        rel_path = rel_path[2:]
    return rel_path


@dataclass(frozen=True)
class CompilerOptions:
    """Options passed straight through to the external compiler."""

    compress: bool = False
    optimization: int = 0
    source_map: bool = False

    def __post_init__(self) -> None:
        if self.optimization not in OPTIMIZATION_LEVELS:
            raise ValueError(
                f"optimization must be one of {OPTIMIZATION_LEVELS}, got {self.optimization!r}"
            )


@dataclass(frozen=True)
class BuildConfig:
    """
    Immutable, fully resolved daemon configuration.

    Attributes:
        root: Absolute root directory scanned for sources
        output: Absolute output directory (mirrors the root's structure)
        extension: Dotted extension appended to generated files
        ignore: Directory names excluded anywhere in the tree
        files: Root-relative allow-list; empty means every matching file
        compiler: Pass-through compiler options
        source_extension: Extension identifying source files
        partial_prefix: Leading marker of partial (import-only) files
        initial_build: Compile every selected file once before watching
        use_polling: Poll file stats instead of native change notifications
        poll_interval: Polling period in seconds (polling mode only)
        serialize_builds: Run compiles for the same path one at a time
        lessc: Compiler executable
    """

    root: Path
    output: Path
    extension: str = DEFAULT_OUTPUT_EXTENSION
    ignore: frozenset[str] = frozenset()
    files: frozenset[str] = frozenset()
    compiler: CompilerOptions = field(default_factory=CompilerOptions)
    source_extension: str = DEFAULT_SOURCE_EXTENSION
    partial_prefix: str = DEFAULT_PARTIAL_PREFIX
    initial_build: bool = True
    use_polling: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL
    serialize_builds: bool = False
    lessc: str = DEFAULT_LESSC

    @classmethod
    def resolve(
        cls,
        directory: Optional[PathLike] = None,
        output: Optional[PathLike] = None,
        extension: Optional[str] = None,
        ignore: Iterable[str] = (),
        files: Iterable[str] = (),
        compress: bool = False,
        optimization: int = 0,
        source_map: bool = False,
        cwd: Optional[PathLike] = None,
        **kwargs,
    ) -> "BuildConfig":
        """
        Resolve user-facing options into a BuildConfig.

        Relative directories are resolved against cwd (default: the process
        working directory at call time). Extra keyword arguments are passed
        through to the dataclass (initial_build, use_polling, ...).

        Raises:
            FileNotFoundError: If the root directory doesn't exist
            ValueError: If the root is not a directory, or an option is invalid
        """
        base = Path(cwd) if cwd is not None else Path.cwd()

        root = (base / directory).resolve() if directory is not None else base.resolve()
        if not root.exists():
            raise FileNotFoundError(f"Root directory does not exist: {root}")
        if not root.is_dir():
            raise ValueError(f"Root path is not a directory: {root}")

        output_dir = (base / output).resolve() if output is not None else root

        return cls(
            root=root,
            output=output_dir,
            extension=normalize_extension(
                extension if extension is not None else DEFAULT_OUTPUT_EXTENSION
            ),
            ignore=frozenset(ignore),
            files=frozenset(normalize_allowed_path(f) for f in files),
            compiler=CompilerOptions(
                compress=compress,
                optimization=int(optimization),
                source_map=source_map,
            ),
            **kwargs,
        )

    def __post_init__(self) -> None:
        if not self.extension.startswith("."):
            raise ValueError(f"extension must start with '.', got {self.extension!r}")
        if not self.source_extension.startswith("."):
            raise ValueError(
                f"source_extension must start with '.', got {self.source_extension!r}"
            )
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
