"""
Command-line entry point.

Usage:
    lesswatch -d styles -r build/css -i node_modules -i vendor --source-map

Or via environment variables:
    LESSWATCH_LESSC=./node_modules/.bin/lessc LESSWATCH_LOG_FILE=lesswatch.log lesswatch
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import DEFAULT_LESSC, DEFAULT_OUTPUT_EXTENSION, DEFAULT_POLL_INTERVAL, BuildConfig
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lesswatch",
        description="Watch a directory tree and recompile .less files whenever they change.",
    )
    parser.add_argument(
        "-d",
        "--directory",
        default=None,
        help="Root directory to watch (default: current working directory)",
    )
    parser.add_argument(
        "-r",
        "--output",
        default=None,
        help="CSS output directory (default: the root directory)",
    )
    parser.add_argument(
        "-e",
        "--extension",
        default=None,
        help=f"Extension of the generated files (default: {DEFAULT_OUTPUT_EXTENSION})",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        default=[],
        metavar="NAME",
        help="Directory name to ignore anywhere in the tree (repeatable)",
    )
    parser.add_argument(
        "-f",
        "--files",
        action="append",
        default=[],
        metavar="PATH",
        help="Only compile these root-relative files (repeatable)",
    )
    parser.add_argument("-c", "--compress", action="store_true", help="Compress the output")
    parser.add_argument(
        "-o",
        "--optimization",
        type=int,
        choices=(0, 1, 2),
        default=0,
        help="Optimization level passed to the compiler",
    )
    parser.add_argument(
        "-m",
        "--source-map",
        action="store_true",
        help="Write a .map file next to each generated file",
    )
    parser.add_argument(
        "--poll",
        action="store_true",
        help="Poll file stats instead of using native change notifications",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Polling period in seconds (default: {DEFAULT_POLL_INTERVAL})",
    )
    parser.add_argument(
        "--serialize",
        action="store_true",
        help="Never run two compiles of the same file at the same time",
    )
    parser.add_argument(
        "--watch-only",
        action="store_true",
        help="Skip the initial build; only compile files when they change",
    )
    parser.add_argument(
        "--lessc",
        default=None,
        help=f"Less compiler executable (default: {DEFAULT_LESSC}, or LESSWATCH_LESSC env var)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also log to this file, rotated daily (or LESSWATCH_LOG_FILE env var)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace, environ: Optional[dict] = None) -> BuildConfig:
    """
    Resolve parsed arguments (plus environment defaults) into a BuildConfig.

    Raises:
        FileNotFoundError, ValueError: On invalid configuration
    """
    environ = os.environ if environ is None else environ
    return BuildConfig.resolve(
        directory=args.directory,
        output=args.output,
        extension=args.extension,
        ignore=args.ignore,
        files=args.files,
        compress=args.compress,
        optimization=args.optimization,
        source_map=args.source_map,
        initial_build=not args.watch_only,
        use_polling=args.poll,
        poll_interval=args.poll_interval,
        serialize_builds=args.serialize,
        lessc=args.lessc or environ.get("LESSWATCH_LESSC", DEFAULT_LESSC),
    )


async def _run(config: BuildConfig) -> None:
    from .daemon import BuildDaemon

    daemon = BuildDaemon(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, daemon.stop)
        except (NotImplementedError, RuntimeError):
            # Windows: fall back to KeyboardInterrupt for SIGINT
            pass

    await daemon.run_forever()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except (FileNotFoundError, ValueError) as e:
        parser.print_usage(sys.stderr)
        sys.stderr.write(f"lesswatch: error: {e}\n")
        return 2

    log_file = args.log_file or os.environ.get("LESSWATCH_LOG_FILE")
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=Path(log_file) if log_file else None,
    )

    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        logger.info("🛑 Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
