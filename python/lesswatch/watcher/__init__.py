"""
Change watching for selected source files.

Typical usage:
--------------
    from lesswatch.watcher import WatchRegistry

    async def on_change(path):
        await pipeline.build(path)

    registry = WatchRegistry(on_change, use_polling=False)
    registry.start()
    for path in selected:
        registry.register(path)
    # ... notifications trigger on_change(path) on the event loop ...
    registry.shutdown()

ERROR CONDITIONS
================
- Callback raises -> logged, watching continues
- register()/start() after shutdown() -> RuntimeError
- start() twice -> RuntimeError
- shutdown() twice or before start() -> no-op
- Watched file deleted -> entry stays; a later re-create triggers a rebuild
"""

from .handlers import RegistryEventHandler
from .registry import WatchRegistry
from .types import TRIGGER_EVENTS, ChangeCallback, FileEvent, WatchEntry

__all__ = [
    "ChangeCallback",
    "FileEvent",
    "RegistryEventHandler",
    "TRIGGER_EVENTS",
    "WatchEntry",
    "WatchRegistry",
]
