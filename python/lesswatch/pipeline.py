"""
Read -> compile -> write for a single source file.

Every failure is contained here: a broken file logs an error and returns a
BuildFailure, it never raises into the scanner or the watcher. On failure
nothing is written, so the last good output (if any) stays in place.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .compiler.types import CompileOutput, CompileRequest, StylesheetCompiler
from .config import BuildConfig
from .errors import CompileError, InvalidPathError, LesswatchError, ReadError, WriteError
from .workspace.paths import OutputTargets, PathMapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildSuccess:
    source: Path
    output: Path
    css: str
    map: Optional[str] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class BuildFailure:
    source: Path
    output: Optional[Path]
    error: LesswatchError

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return self.error.message


BuildResult = Union[BuildSuccess, BuildFailure]


def read_source(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def write_artifact(path: Path, text: str) -> None:
    """Create-or-truncate write of a whole artifact, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


class CompilePipeline:
    """
    Compiles one source file at a time into its output location.

    Concurrency:
    ------------
    build() may be awaited many times concurrently, including for the same
    file. By default nothing orders those calls and the last write wins.
    With config.serialize_builds, builds of the same path run one after the
    other (per-path asyncio.Lock); different paths still run concurrently.
    """

    def __init__(
        self,
        config: BuildConfig,
        compiler: StylesheetCompiler,
        mapper: Optional[PathMapper] = None,
    ) -> None:
        self.config = config
        self.compiler = compiler
        self.mapper = mapper if mapper is not None else PathMapper.from_config(config)
        self.serialize = config.serialize_builds

        # Per-file locks, only used when serializing
        self._file_locks: dict[Path, asyncio.Lock] = {}

        self.attempts = 0
        self.failures = 0

    def _lock_for(self, source: Path) -> asyncio.Lock:
        lock = self._file_locks.get(source)
        if lock is None:
            lock = asyncio.Lock()
            self._file_locks[source] = lock
        return lock

    def _fail(self, source: Path, output: Optional[Path], error: LesswatchError) -> BuildFailure:
        self.failures += 1
        if error.path is None:
            error.path = source
        logger.error(f"❌ {type(error).__name__}: {error}")
        return BuildFailure(source=source, output=output, error=error)

    def request_for(self, targets: OutputTargets) -> CompileRequest:
        options = self.config.compiler
        return CompileRequest(
            filename=targets.source,
            search_paths=(targets.source.parent,),
            optimization=options.optimization,
            minify=options.compress,
            source_map=targets.source_map,
        )

    async def build(self, source: Path) -> BuildResult:
        """
        Compile a source file and write its artifacts.

        Args:
            source: Absolute path of a selected source file

        Returns:
            BuildSuccess, or BuildFailure after the error has been logged
        """
        source = Path(source)
        try:
            targets = self.mapper.targets(source)
        except InvalidPathError as e:
            return self._fail(source, None, e)

        if self.serialize:
            async with self._lock_for(source):
                return await self._build(targets)
        return await self._build(targets)

    async def _build(self, targets: OutputTargets) -> BuildResult:
        source, output = targets.source, targets.output
        self.attempts += 1
        logger.info(f"updating: {output}")

        try:
            text = await asyncio.to_thread(read_source, source)
        except (OSError, UnicodeDecodeError) as e:
            return self._fail(source, output, ReadError(str(e), path=source))

        try:
            result: CompileOutput = await self.compiler.compile(text, self.request_for(targets))
        except CompileError as e:
            return self._fail(source, output, e)
        except Exception as e:
            logger.error(f"Unexpected compiler failure for {source}", exc_info=True)
            return self._fail(source, output, CompileError(f"unexpected compiler failure: {e}"))

        try:
            await asyncio.to_thread(write_artifact, output, result.css)
            if result.map is not None and targets.map_path is not None:
                await asyncio.to_thread(write_artifact, targets.map_path, result.map)
                logger.debug(f"Wrote source map {targets.source_map.map_relpath}")
        except OSError as e:
            return self._fail(source, output, WriteError(str(e), path=Path(e.filename or output)))

        return BuildSuccess(source=source, output=output, css=result.css, map=result.map)
