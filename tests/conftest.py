"""Top-level pytest configuration for the keel framework."""

import logging
import os

import pytest

# Import for side effects so the error registry is populated
import keel.injection.errors  # noqa: F401
from keel.injection.config import ContainerSettings
from keel.injection.container import Container
from keel.injection.metadata import MetadataStore
from keel.logging import ROOT_LOGGER_NAME

# Configure asyncio to be less verbose
os.environ["PYTHONASYNCIODEBUG"] = "0"

pytest_plugins = [
    "pytest_asyncio",
]

_ENV_PREFIXES = ("KEEL_CONTAINER_", "KEEL_APP_", "KEEL_LOGGING_")


@pytest.fixture(autouse=True)
def clear_keel_env(monkeypatch):
    """Keep settings deterministic regardless of the caller's environment."""
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_keel_logger():
    """Undo handler and level changes made by configure_logging."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.fixture
def container():
    return Container(ContainerSettings())


@pytest.fixture
def strict_container():
    return Container(ContainerSettings(strict=True))


@pytest.fixture
def store():
    return MetadataStore()
