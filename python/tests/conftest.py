"""
Pytest configuration and fixtures for lesswatch tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.build: source trees, configs and a fake stylesheet compiler
- fixtures.watcher: WatchRegistry fixtures
"""

import logging

import pytest

# Load fixture modules
pytest_plugins = [
    "tests.fixtures.build",
    "tests.fixtures.watcher",
]


@pytest.fixture
def clean_lesswatch_logger():
    """Remove handlers added to the "lesswatch" logger by setup_logging()."""
    logger = logging.getLogger("lesswatch")
    before = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
