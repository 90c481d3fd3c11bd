"""
Per-file change subscriptions.

The registry holds exactly one WatchEntry per absolute source path. Under the
hood watchdog watches directories, so each distinct parent directory is
scheduled once (non-recursive) and shared by the files registered in it;
events for unregistered siblings are dropped by the handler.

Thread Safety:
--------------
- watchdog delivers events on its observer thread
- notifications are marshalled onto the asyncio loop with
  call_soon_threadsafe; callbacks always run as tasks on that loop
- register() is only called from the loop thread (initial scan)
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..config import BuildConfig
from .handlers import RegistryEventHandler
from .types import TRIGGER_EVENTS, ChangeCallback, FileEvent, WatchEntry

logger = logging.getLogger(__name__)


class WatchRegistry:
    """
    Binds source files to change notifications.

    Every triggering notification for a registered path starts an independent
    callback task: no debouncing, no coalescing, no cancellation of a task
    that is still running when the next notification arrives.

    Example Usage:
    --------------
    >>> async def rebuild(path):
    ...     await pipeline.build(path)
    ...
    >>> registry = WatchRegistry(rebuild)
    >>> registry.start()
    >>> registry.register(Path("/proj/styles/app.less"))
    True
    >>> registry.register(Path("/proj/styles/app.less"))
    False
    >>> # ... later
    >>> registry.shutdown()
    """

    def __init__(
        self,
        callback: ChangeCallback,
        use_polling: bool = False,
        poll_interval: float = 1.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Initialize the registry (not started yet).

        Args:
            callback: Coroutine function called with the changed source path
            use_polling: Use watchdog's PollingObserver (stat polling)
            poll_interval: Polling period in seconds
            loop: Event loop for callbacks (default: the running loop at start())

        Raises:
            TypeError: If callback is not callable
        """
        if not callable(callback):
            raise TypeError("callback must be callable")

        self._callback = callback
        self._use_polling = use_polling
        self._poll_interval = poll_interval
        self._loop = loop

        self._entries: dict[Path, WatchEntry] = {}
        self._dir_watches: dict[Path, object] = {}
        self._tasks: set[asyncio.Task] = set()

        self._handler = RegistryEventHandler(self)
        self._observer = None
        self._closed = False

        self.trigger_count = 0

    @classmethod
    def from_config(
        cls,
        config: BuildConfig,
        callback: ChangeCallback,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> "WatchRegistry":
        return cls(
            callback,
            use_polling=config.use_polling,
            poll_interval=config.poll_interval,
            loop=loop,
        )

    @property
    def event_handler(self) -> RegistryEventHandler:
        return self._handler

    @property
    def paths(self) -> list[Path]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def is_registered(self, path: Path) -> bool:
        return Path(path) in self._entries

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def _make_observer(self):
        if self._use_polling:
            from watchdog.observers.polling import PollingObserver

            return PollingObserver(timeout=self._poll_interval)

        from watchdog.observers import Observer

        return Observer()

    def _schedule(self, entry: WatchEntry) -> None:
        directory = entry.path.parent
        watch = self._dir_watches.get(directory)
        if watch is None:
            watch = self._observer.schedule(self._handler, str(directory), recursive=False)
            self._dir_watches[directory] = watch
            logger.debug(f"Watching directory {directory}")
        entry.watch = watch

    def start(self) -> None:
        """
        Start delivering change notifications.

        Raises:
            RuntimeError: If already running, or after shutdown()
        """
        if self._closed:
            raise RuntimeError("WatchRegistry has been shut down")
        if self._observer is not None:
            raise RuntimeError("WatchRegistry is already running")

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        self._observer = self._make_observer()
        for entry in self._entries.values():
            self._schedule(entry)
        self._observer.start()

        mode = "polling" if self._use_polling else "native"
        logger.info(f"👁️  File watcher started ({mode} mode, {len(self._entries)} files)")

    def register(self, path: Path) -> bool:
        """
        Subscribe to changes of one file.

        Args:
            path: Absolute source path

        Returns:
            True if a new subscription was created, False if the path was
            already registered

        Raises:
            RuntimeError: After shutdown()
        """
        if self._closed:
            raise RuntimeError("WatchRegistry has been shut down")

        path = Path(path)
        if path in self._entries:
            logger.debug(f"Already watching {path}")
            return False

        entry = WatchEntry(path=path)
        self._entries[path] = entry
        if self._observer is not None:
            self._schedule(entry)
        return True

    def notify_threadsafe(self, event_type: FileEvent, path: Path) -> None:
        """Hand a notification from the observer thread to the event loop."""
        loop = self._loop
        if loop is None or self._closed:
            return
        try:
            loop.call_soon_threadsafe(self.notify, event_type, path)
        except RuntimeError:
            # Loop already closed during shutdown
            pass

    def notify(self, event_type: FileEvent, path: Path) -> Optional[asyncio.Task]:
        """
        Handle a change notification on the loop thread.

        Returns:
            The callback task, or None if the notification didn't trigger one
        """
        if self._closed or path not in self._entries:
            return None

        if event_type not in TRIGGER_EVENTS:
            logger.debug(f"{event_type.value}: {path} (no rebuild)")
            return None

        self.trigger_count += 1
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        task = loop.create_task(self._run_callback(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_callback(self, path: Path) -> None:
        try:
            await self._callback(path)
        except Exception as e:
            # Log error but don't raise (keep watching)
            logger.error(f"Error in change callback for {path}: {e}", exc_info=True)

    async def wait_idle(self) -> None:
        """Wait until every callback task started so far has finished."""
        # Let pending call_soon_threadsafe notifications run first
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _release(self):
        """Close the registry and signal the observer to stop. Returns the observer to join."""
        if self._closed:
            return None
        self._closed = True

        observer, self._observer = self._observer, None
        if observer is not None:
            logger.info("Stopping file watcher")
            observer.unschedule_all()
            observer.stop()

        self._entries.clear()
        self._dir_watches.clear()
        return observer

    def shutdown(self) -> None:
        """
        Release every subscription and stop the observer.

        Safe to call more than once. Notifications arriving afterwards are
        ignored; callback tasks already running are left to finish (see
        wait_idle()). Blocks until the observer thread exits; inside a running
        event loop use aclose() instead.
        """
        observer = self._release()
        if observer is not None:
            observer.join()

    async def aclose(self) -> None:
        """shutdown() that joins the observer thread without blocking the event loop."""
        observer = self._release()
        if observer is not None:
            await asyncio.to_thread(observer.join)
