"""
Watch registry type definitions.

- FileEvent: normalized change notification kinds
- WatchEntry: one registered source file and its subscription handle
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional


class FileEvent(Enum):
    """File system event types seen by the registry."""

    CREATED = "created"  # Path (re)created, e.g. editors saving via a temp file
    MODIFIED = "modified"  # Existing file content or metadata changed
    DELETED = "deleted"  # File removed
    MOVED = "moved"  # Another file was moved onto this path


# Events that mean "the source may have changed, rebuild it"
TRIGGER_EVENTS = frozenset({FileEvent.CREATED, FileEvent.MODIFIED, FileEvent.MOVED})

# Called with the absolute source path on every triggering notification
ChangeCallback = Callable[[Path], Awaitable[Any]]


@dataclass
class WatchEntry:
    """
    A registered source file.

    watch is the watchdog handle of the (shared, non-recursive) watch on the
    file's parent directory. It is None until the registry's observer starts.
    """

    path: Path
    watch: Optional[Any] = None
