"""
Tests for WatchRegistry: registration, change dispatch and shutdown.

Most tests inject watchdog events through registry.event_handler.dispatch()
without starting an observer; the tests at the bottom start a real
PollingObserver against files on disk.
"""

import asyncio
import logging
import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from lesswatch.watcher import FileEvent, WatchRegistry
from tests.fixtures.build import write_file
from tests.fixtures.watcher import wait_for


@pytest.fixture
def source(project_root):
    return write_file(project_root, "a.less", ".a {}")


# ============================================================================
# INITIALIZATION / REGISTRATION
# ============================================================================


def test_callback_not_callable():
    """Test: WatchRegistry raises TypeError if callback is not callable."""
    with pytest.raises(TypeError, match="callable"):
        WatchRegistry("not_a_function")  # type: ignore


def test_from_config(make_config, mock_callback):
    registry = WatchRegistry.from_config(make_config(use_polling=True, poll_interval=0.25), mock_callback)

    assert registry._use_polling is True
    assert registry._poll_interval == 0.25
    assert not registry.is_running()


@pytest.mark.asyncio
async def test_register_once(registry, source):
    """Test: a path gets exactly one subscription."""
    assert registry.register(source) is True
    assert registry.register(source) is False

    assert len(registry) == 1
    assert registry.is_registered(source)
    assert registry.paths == [source]


# ============================================================================
# DISPATCH
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "make_event",
    [
        lambda p: FileModifiedEvent(str(p)),
        lambda p: FileCreatedEvent(str(p)),
        lambda p: FileMovedEvent(str(p.with_name("a.less.tmp")), str(p)),
    ],
    ids=["modified", "created", "moved-onto"],
)
async def test_triggering_events(registry, mock_callback, source, make_event):
    registry.register(source)

    registry.event_handler.dispatch(make_event(source))
    await registry.wait_idle()

    mock_callback.assert_awaited_once_with(source)
    assert registry.trigger_count == 1


@pytest.mark.asyncio
async def test_non_triggering_events(registry, mock_callback, source):
    """Test: deletes, directory events and closes don't rebuild."""
    registry.register(source)

    registry.event_handler.dispatch(FileDeletedEvent(str(source)))
    registry.event_handler.dispatch(DirModifiedEvent(str(source.parent)))
    registry.event_handler.dispatch(FileClosedEvent(str(source)))
    await registry.wait_idle()

    mock_callback.assert_not_awaited()


@pytest.mark.asyncio
async def test_move_away_does_not_trigger(registry, mock_callback, source):
    registry.register(source)

    registry.event_handler.dispatch(FileMovedEvent(str(source), str(source.with_name("renamed.less"))))
    await registry.wait_idle()

    mock_callback.assert_not_awaited()


@pytest.mark.asyncio
async def test_unregistered_sibling_ignored(registry, mock_callback, project_root, source):
    """Test: events for files sharing the watched directory are dropped."""
    registry.register(source)
    other = write_file(project_root, "b.less", ".b {}")

    registry.event_handler.dispatch(FileModifiedEvent(str(other)))
    await registry.wait_idle()

    mock_callback.assert_not_awaited()


@pytest.mark.asyncio
async def test_every_notification_runs_callback(registry, mock_callback, source):
    """Test: no debouncing or coalescing of rapid notifications."""
    registry.register(source)

    for _ in range(3):
        registry.event_handler.dispatch(FileModifiedEvent(str(source)))
    await registry.wait_idle()

    assert mock_callback.await_count == 3


@pytest.mark.asyncio
async def test_callbacks_for_same_path_overlap(source):
    """Test: a running callback is not cancelled or waited on by the next one."""
    running = 0
    peak = 0

    async def slow_callback(path):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.05)
        running -= 1

    registry = WatchRegistry(slow_callback, loop=asyncio.get_running_loop())
    registry.register(source)
    try:
        registry.notify(FileEvent.MODIFIED, source)
        registry.notify(FileEvent.MODIFIED, source)
        await registry.wait_idle()
    finally:
        registry.shutdown()

    assert peak == 2


@pytest.mark.asyncio
async def test_callback_error_keeps_watching(registry, mock_callback, source, caplog):
    """Test: an exception in the callback is logged, later changes still fire."""
    mock_callback.side_effect = [RuntimeError("compiler crashed"), None]
    registry.register(source)

    registry.event_handler.dispatch(FileModifiedEvent(str(source)))
    await registry.wait_idle()
    registry.event_handler.dispatch(FileModifiedEvent(str(source)))
    await registry.wait_idle()

    assert mock_callback.await_count == 2
    assert "compiler crashed" in caplog.text


@pytest.mark.asyncio
async def test_non_trigger_logged_at_debug(registry, source, caplog):
    registry.register(source)

    with caplog.at_level(logging.DEBUG, logger="lesswatch"):
        assert registry.notify(FileEvent.DELETED, source) is None

    assert "no rebuild" in caplog.text


# ============================================================================
# LIFECYCLE
# ============================================================================


@pytest.mark.asyncio
async def test_no_callbacks_after_shutdown(registry, mock_callback, source):
    registry.register(source)

    registry.shutdown()
    registry.event_handler.dispatch(FileModifiedEvent(str(source)))
    assert registry.notify(FileEvent.MODIFIED, source) is None
    await registry.wait_idle()

    mock_callback.assert_not_awaited()
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_register_after_shutdown_raises(registry, source):
    registry.shutdown()

    with pytest.raises(RuntimeError, match="shut down"):
        registry.register(source)
    with pytest.raises(RuntimeError, match="shut down"):
        registry.start()


@pytest.mark.asyncio
async def test_shutdown_twice(registry):
    registry.shutdown()
    registry.shutdown()


@pytest.mark.asyncio
async def test_shutdown_lets_running_callback_finish(source):
    finished = asyncio.Event()

    async def slow_callback(path):
        await asyncio.sleep(0.05)
        finished.set()

    registry = WatchRegistry(slow_callback, loop=asyncio.get_running_loop())
    registry.register(source)
    registry.notify(FileEvent.MODIFIED, source)

    registry.shutdown()
    await registry.wait_idle()

    assert finished.is_set()


# ============================================================================
# REAL OBSERVER
# ============================================================================


@pytest.fixture
def polling_registry(mock_callback):
    registry = WatchRegistry(mock_callback, use_polling=True, poll_interval=0.1)
    yield registry
    registry.shutdown()


@pytest.mark.asyncio
async def test_start_twice_raises(polling_registry):
    polling_registry.start()
    assert polling_registry.is_running()

    with pytest.raises(RuntimeError, match="already running"):
        polling_registry.start()


@pytest.mark.asyncio
async def test_directory_watch_shared(polling_registry, project_root):
    a = write_file(project_root, "a.less")
    b = write_file(project_root, "b.less")
    c = write_file(project_root, "sub/c.less")

    polling_registry.register(a)
    polling_registry.start()
    polling_registry.register(b)
    polling_registry.register(c)

    assert set(polling_registry._dir_watches) == {project_root, project_root / "sub"}


@pytest.mark.asyncio
async def test_change_on_disk_triggers_callback(polling_registry, mock_callback, project_root):
    source = write_file(project_root, "a.less", ".a {}")
    polling_registry.start()
    polling_registry.register(source)
    await asyncio.sleep(0.3)  # let the first snapshot be taken

    source.write_text(".a { color: red; }", encoding="utf-8")

    assert await wait_for(lambda: mock_callback.await_count >= 1)
    mock_callback.assert_awaited_with(source)


@pytest.mark.asyncio
async def test_shutdown_stops_observer(polling_registry, mock_callback, project_root):
    source = write_file(project_root, "a.less", ".a {}")
    polling_registry.start()
    polling_registry.register(source)

    polling_registry.shutdown()
    assert not polling_registry.is_running()

    source.write_text(".a { color: blue; }", encoding="utf-8")
    await asyncio.sleep(0.3)
    mock_callback.assert_not_awaited()


@pytest.mark.asyncio
async def test_aclose_joins_observer_off_the_loop(polling_registry, project_root):
    """Test: a slow observer join doesn't stall the event loop."""
    polling_registry.start()
    polling_registry.register(write_file(project_root, "a.less"))
    observer = polling_registry._observer
    real_join = observer.join

    def slow_join(timeout=None):
        time.sleep(0.3)
        real_join(timeout)

    observer.join = slow_join

    task = asyncio.create_task(polling_registry.aclose())
    await asyncio.sleep(0.05)
    assert not task.done()

    await asyncio.wait_for(task, timeout=5)
    assert not polling_registry.is_running()
    assert not observer.is_alive()
    with pytest.raises(RuntimeError, match="shut down"):
        polling_registry.register(project_root / "b.less")


@pytest.mark.asyncio
async def test_aclose_twice(polling_registry):
    polling_registry.start()

    await polling_registry.aclose()
    await polling_registry.aclose()
    polling_registry.shutdown()
