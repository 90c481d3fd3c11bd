"""
Less compiler adapter backed by the `lessc` command-line tool.

lessc runs as an asyncio subprocess so a slow compile never blocks change
notifications or compiles of other files. The source text goes in on stdin;
the subprocess runs in the source file's directory so relative @imports
resolve the same way they would for the file itself.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import CompileError
from .types import CompileOutput, CompileRequest, SourceMapOptions

# Names lessc gives the stdin source in a map's "sources"
STDIN_SOURCES = frozenset({"-", "input"})

logger = logging.getLogger(__name__)


class LesscCompiler:
    """
    StylesheetCompiler implementation that shells out to lessc.

    Flag mapping:
    -------------
    search_paths   -> --include-path=<dir>[:<dir>...]
    minify         -> --compress
    optimization   -> -O<n> (only for n > 0; lessc 1.x option)
    source_map     -> --source-map=<tmp map> --source-map-url=<map basename>
                      --source-map-rootpath=<rootpath> --source-map-basepath=<source dir>

    With a source map the CSS and the map are written by lessc into a
    temporary directory and read back, so the pipeline stays the only writer
    of the real output tree. Because lessc reads the source from stdin it
    records the entry source under a placeholder name ("-" or "input",
    depending on the lessc version); that entry and "file" are rewritten to
    the real names.
    """

    def __init__(self, executable: str = "lessc") -> None:
        self.executable = executable

    def build_args(self, request: CompileRequest, css_out: Optional[Path] = None, map_out: Optional[Path] = None) -> list[str]:
        """Build the lessc argument list for a request (stdin input)."""
        args = [self.executable, "--no-color"]

        if request.search_paths:
            include = os.pathsep.join(str(p) for p in request.search_paths)
            args.append(f"--include-path={include}")
        if request.minify:
            args.append("--compress")
        if request.optimization:
            args.append(f"-O{request.optimization}")

        sm = request.source_map
        if sm is not None and map_out is not None:
            args.append(f"--source-map={map_out}")
            args.append(f"--source-map-url={sm.map_filename}")
            args.append(f"--source-map-basepath={Path(sm.input_filename).parent}")
            if sm.rootpath:
                args.append(f"--source-map-rootpath={sm.rootpath}")

        args.append("-")
        if css_out is not None:
            args.append(str(css_out))
        return args

    async def _run(self, args: list[str], source: str, cwd: Path) -> str:
        """Run lessc, returning stdout. Raises CompileError on failure."""
        logger.debug(f"Running: {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd),
            )
        except FileNotFoundError:
            raise CompileError(f"compiler executable not found: {self.executable}") from None
        except PermissionError as e:
            raise CompileError(f"cannot run compiler {self.executable}: {e}") from None

        stdout, stderr = await process.communicate(source.encode("utf-8"))

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            if not message:
                message = f"{self.executable} exited with status {process.returncode}"
            raise CompileError(message)

        return stdout.decode("utf-8")

    @staticmethod
    def fix_source_map(text: str, sm: SourceMapOptions) -> str:
        """
        Point a lessc source map at the real source file instead of stdin.

        Raises:
            CompileError: If the map is not valid JSON
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise CompileError(f"invalid source map: {e}") from None

        source_name = sm.rootpath + Path(sm.input_filename).name
        data["file"] = sm.output_filename
        data["sources"] = [
            source_name if entry.rsplit("/", 1)[-1] in STDIN_SOURCES else entry
            for entry in data.get("sources", [])
        ]
        return json.dumps(data, separators=(",", ":"))

    async def compile(self, source: str, request: CompileRequest) -> CompileOutput:
        """
        Compile Less source text with lessc.

        Raises:
            CompileError: If lessc is missing or rejects the input
        """
        cwd = Path(request.filename).parent

        try:
            if request.source_map is None:
                css = await self._run(self.build_args(request), source, cwd)
                return CompileOutput(css=css)

            sm = request.source_map
            with tempfile.TemporaryDirectory(prefix="lesswatch_") as tmp:
                css_out = Path(tmp) / sm.output_filename
                map_out = Path(tmp) / sm.map_filename
                await self._run(self.build_args(request, css_out, map_out), source, cwd)

                try:
                    css = css_out.read_text(encoding="utf-8")
                except OSError as e:
                    raise CompileError(f"{self.executable} produced no output: {e}") from None
                source_map = None
                if map_out.exists():
                    source_map = self.fix_source_map(map_out.read_text(encoding="utf-8"), sm)
            return CompileOutput(css=css, map=source_map)
        except CompileError as e:
            if e.path is None:
                e.path = Path(request.filename)
            raise
