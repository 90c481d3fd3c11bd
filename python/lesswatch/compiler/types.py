"""
Contract between the build pipeline and the external stylesheet compiler.

The pipeline never parses Less itself. It hands the source text plus a
CompileRequest to a StylesheetCompiler and gets CSS (and optionally a source
map) back, or a CompileError.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol


@dataclass(frozen=True)
class SourceMapOptions:
    """Source map metadata for one compile."""

    input_filename: str  # Absolute source path
    output_filename: str  # Output basename
    map_filename: str  # Map basename
    map_relpath: str  # Map path relative to the output directory
    rootpath: str  # Output dir -> source dir, "/"-terminated or empty


@dataclass(frozen=True)
class CompileRequest:
    """Everything the compiler needs besides the source text."""

    filename: Path
    search_paths: tuple[Path, ...] = ()
    optimization: int = 0
    minify: bool = False
    source_map: Optional[SourceMapOptions] = None


@dataclass(frozen=True)
class CompileOutput:
    css: str
    map: Optional[str] = None


class StylesheetCompiler(Protocol):
    """
    Protocol for stylesheet compilers.

    Implementations must not block the event loop: run external processes
    with asyncio subprocesses, or push blocking work to a thread.
    """

    async def compile(self, source: str, request: CompileRequest) -> CompileOutput:
        """
        Compile source text.

        Raises:
            CompileError: On syntax or import resolution failure
        """
        ...
