"""
Internal event handler for watchdog file system monitoring.

Receives raw events on watchdog's observer thread, keeps only the ones that
concern registered files, and hands them to the registry on its asyncio loop.
"""

import os
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from .types import FileEvent


class RegistryEventHandler(FileSystemEventHandler):
    """
    Routes watchdog events to a WatchRegistry.

    Event mapping:
    --------------
    modified         -> MODIFIED on src_path
    created          -> CREATED on src_path
    moved            -> MOVED on dest_path (a file replaced the watched path)
    deleted          -> DELETED on src_path
    anything else (opened/closed, directory events) is dropped
    """

    def __init__(self, registry: "WatchRegistry") -> None:  # noqa: F821
        super().__init__()
        self.registry = registry

    def dispatch(self, event: FileSystemEvent) -> None:
        """Dispatch file system events to the registry."""
        if event.is_directory:
            return

        if event.event_type == EVENT_TYPE_MODIFIED:
            event_type, raw_path = FileEvent.MODIFIED, event.src_path
        elif event.event_type == EVENT_TYPE_CREATED:
            event_type, raw_path = FileEvent.CREATED, event.src_path
        elif event.event_type == EVENT_TYPE_MOVED:
            event_type, raw_path = FileEvent.MOVED, event.dest_path
        elif event.event_type == EVENT_TYPE_DELETED:
            event_type, raw_path = FileEvent.DELETED, event.src_path
        else:
            return

        file_path = Path(os.fsdecode(raw_path))
        if not self.registry.is_registered(file_path):
            return

        self.registry.notify_threadsafe(event_type, file_path)
