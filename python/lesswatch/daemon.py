"""
Build daemon lifecycle - startup, initial build, watching, and shutdown.

Startup:
  1. Scan the root directory (ignored subtrees pruned)
  2. For every selected file: compile it once, then register its watch
  3. Stay resident; each change notification recompiles that one file

Shutdown: release all watches, let in-flight compiles finish.

The initial build runs file by file in scan order, before that file's watch
is installed. The watched set is fixed after the scan: files created later
are not picked up until the daemon is restarted.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .compiler.types import StylesheetCompiler
from .config import BuildConfig
from .ignore_patterns import build_ignore_filter
from .pipeline import BuildResult, CompilePipeline
from .watcher import WatchRegistry
from .workspace.discovery import DirectoryScanner
from .workspace.selection import FileSelector

logger = logging.getLogger(__name__)


@dataclass
class InitialBuildStats:
    """Outcome of the startup scan."""

    discovered: int = 0
    selected: int = 0
    built: int = 0
    failed: int = 0
    watched: int = 0
    scan_errors: int = 0
    elapsed: float = 0.0


class BuildDaemon:
    """
    Composes scanner, selector, pipeline and watch registry.

    Example Usage:
    --------------
    >>> config = BuildConfig.resolve(directory="styles", ignore=["node_modules"])
    >>> daemon = BuildDaemon(config)
    >>> asyncio.run(daemon.run_forever())   # until SIGINT/SIGTERM or stop()
    """

    def __init__(
        self,
        config: BuildConfig,
        compiler: Optional[StylesheetCompiler] = None,
        registry: Optional[WatchRegistry] = None,
    ) -> None:
        """
        Args:
            config: Resolved configuration
            compiler: Stylesheet compiler (default: LesscCompiler(config.lessc))
            registry: Watch registry (default: built from config, calling rebuild())
        """
        if compiler is None:
            from .compiler.lessc import LesscCompiler

            compiler = LesscCompiler(config.lessc)

        self.config = config
        self.scanner = DirectoryScanner(config.root, build_ignore_filter(config.ignore))
        self.selector = FileSelector(config)
        self.pipeline = CompilePipeline(config, compiler)
        self.registry = registry if registry is not None else WatchRegistry.from_config(config, self.rebuild)

        self.stats: Optional[InitialBuildStats] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._started = False

    async def rebuild(self, path: Path) -> BuildResult:
        """Change callback: recompile one watched file."""
        return await self.pipeline.build(path)

    async def start(self) -> InitialBuildStats:
        """
        Run the startup scan and initial build, and start watching.

        Raises:
            RuntimeError: If already started
        """
        if self._started:
            raise RuntimeError("BuildDaemon is already started")
        self._started = True
        self._stop_event = asyncio.Event()

        config = self.config
        logger.info(f"📁 Root directory: {config.root}")
        if config.output != config.root:
            logger.info(f"📂 Output directory: {config.output}")

        self.registry.start()

        stats = InitialBuildStats()
        t0 = time.time()

        # Registration only happens here, on the loop thread, before any
        # notification can be delivered for the file being registered
        for candidate in self.scanner.scan():
            stats.discovered += 1
            if not self.selector(candidate):
                continue
            stats.selected += 1

            if config.initial_build:
                result = await self.pipeline.build(candidate.path)
                if result.ok:
                    stats.built += 1
                else:
                    stats.failed += 1

            if self.registry.register(candidate.path):
                stats.watched += 1

        stats.scan_errors = len(self.scanner.errors)
        stats.elapsed = time.time() - t0
        self.stats = stats

        if config.initial_build:
            logger.info(
                f"✅ Initial build complete: {stats.built} compiled, {stats.failed} failed "
                f"({stats.elapsed:.1f}s)"
            )
        logger.info(f"👁️  Watching {stats.watched} file(s) for changes...")
        return stats

    def stop(self) -> None:
        """Ask run_forever() to return. Safe to call from signal handlers."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def run_forever(self) -> None:
        """Start the daemon and stay resident until stop() is called."""
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Release every watch and wait for in-flight compiles."""
        logger.info("🛑 Shutting down...")
        await self.registry.aclose()
        await self.registry.wait_idle()
        logger.info("👋 Shutdown complete")
