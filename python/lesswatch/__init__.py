"""
lesswatch - incremental Less stylesheet build daemon.

Watches a directory tree for .less sources, compiles each one on startup and
again whenever it changes, and mirrors the generated CSS into an output tree.
"""

__version__ = "0.1.0"

# Keep this module light: the CLI imports it before logging is configured,
# and watchdog is only needed once the daemon actually starts.

__all__ = ["__version__"]
