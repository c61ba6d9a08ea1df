"""Shared test configuration for async-context tests.

Provides:
- A clean ASYNC_CONTEXT_* environment and settings cache for every test
- A fresh string handle for tests that only need one
"""

import logging
from collections.abc import Iterator

import pytest

from async_context import ContextHandle, create_context, reset_settings

SETTINGS_ENV_VARS = (
    "ASYNC_CONTEXT_LOG_LEVEL",
    "ASYNC_CONTEXT_TRACE",
    "ASYNC_CONTEXT_MAX_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from the caller's environment and from each other.

    Settings are cached process-wide after the first read, so the cache is
    dropped before and after each test.
    """
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def package_logger() -> Iterator[logging.Logger]:
    """The async_context logger, restored to its original state afterwards."""
    logger = logging.getLogger("async_context")
    original_level = logger.level
    original_handlers = list(logger.handlers)
    yield logger
    logger.setLevel(original_level)
    logger.handlers[:] = original_handlers


@pytest.fixture
def handle() -> ContextHandle[str]:
    """Fresh handle with default 'initial'."""
    return create_context("initial")
