"""
Pytest configuration and shared fixtures for the test suite.
"""

from __future__ import annotations

import pytest

from src.logger.logger import Logger, init_logger
from src.logger.types import Level
from src.services.config_service import ConfigService
from tests.mocks.config import InMemoryConfigRepository, RecordingNotifier


@pytest.fixture(autouse=True)
def logger() -> Logger:
    """Global logger without a writer; only warnings and above are printed."""
    return init_logger("configstore-test", "test", min_level=Level.WARN)


@pytest.fixture
def repository() -> InMemoryConfigRepository:
    return InMemoryConfigRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(repository, notifier) -> ConfigService:
    return ConfigService(repository, notifier)
