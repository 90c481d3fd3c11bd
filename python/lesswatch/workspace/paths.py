"""
Source path -> output path mapping.

    root      /proj
    output    /proj/build
    extension .less.css

    /proj/styles/app.less  ->  /proj/build/styles/app.less.css
                               /proj/build/styles/app.less.css.map  (source maps on)

The mapping depends only on the configuration and the source path, never on
call order or earlier calls.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..compiler.types import SourceMapOptions
from ..config import BuildConfig
from ..errors import InvalidPathError

MAP_SUFFIX = ".map"


@dataclass(frozen=True)
class OutputTargets:
    """Where one source file's artifacts go."""

    source: Path
    output: Path
    map_path: Optional[Path] = None
    source_map: Optional[SourceMapOptions] = None


class PathMapper:
    """Derives output and source map locations for source files under a root."""

    def __init__(
        self,
        root: Path,
        output_dir: Path,
        extension: str,
        source_extension: str = ".less",
        source_map: bool = False,
    ) -> None:
        self.root = Path(root)
        self.output_dir = Path(output_dir)
        self.extension = extension
        self.source_extension = source_extension
        self.source_map = source_map

    @classmethod
    def from_config(cls, config: BuildConfig) -> "PathMapper":
        return cls(
            root=config.root,
            output_dir=config.output,
            extension=config.extension,
            source_extension=config.source_extension,
            source_map=config.compiler.source_map,
        )

    def relative(self, source: Path) -> str:
        """
        Root-relative path of a source file, with "/" separators.

        Raises:
            InvalidPathError: If source is not under the root directory
        """
        source = Path(source)
        if not source.is_absolute():
            raise InvalidPathError("source path is not absolute", path=source)
        try:
            rel = source.relative_to(self.root)
        except ValueError:
            raise InvalidPathError(f"not under root directory {self.root}", path=source) from None
        if not rel.parts:
            raise InvalidPathError("source path is the root directory itself", path=source)
        return rel.as_posix()

    def output_path(self, source: Path) -> Path:
        """Absolute output path for a source file."""
        rel = self.relative(source)
        if self.source_extension and rel.endswith(self.source_extension):
            rel = rel[: -len(self.source_extension)]
        return self.output_dir / f"{rel}{self.extension}"

    def map_path(self, output: Path) -> Optional[Path]:
        """Companion source map path, or None when source maps are off."""
        if not self.source_map:
            return None
        return output.with_name(output.name + MAP_SUFFIX)

    def source_map_options(self, source: Path, output: Path, map_path: Path) -> SourceMapOptions:
        """Source map metadata, derived purely from the source, output and map paths."""
        rootpath = Path(os.path.relpath(source.parent, output.parent)).as_posix()
        return SourceMapOptions(
            input_filename=str(source),
            output_filename=output.name,
            map_filename=map_path.name,
            map_relpath=map_path.relative_to(self.output_dir).as_posix(),
            rootpath="" if rootpath == "." else f"{rootpath}/",
        )

    def targets(self, source: Path) -> OutputTargets:
        """
        Compute every artifact location for a source file.

        Raises:
            InvalidPathError: If source is not under the root directory
        """
        source = Path(source)
        output = self.output_path(source)
        map_path = self.map_path(output)
        if map_path is None:
            return OutputTargets(source=source, output=output)
        return OutputTargets(
            source=source,
            output=output,
            map_path=map_path,
            source_map=self.source_map_options(source, output, map_path),
        )
