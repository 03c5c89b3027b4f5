"""Shared test fixtures."""

from collections.abc import Generator

import pytest
from loguru import logger


@pytest.fixture
def log_messages() -> Generator[list[str], None, None]:
    """Collect loguru output for the duration of a test.

    Each entry is "LEVEL message" so tests can assert on severity.
    """
    messages: list[str] = []
    handler_id = logger.add(
        lambda msg: messages.append(msg.rstrip("\n")),
        level="DEBUG",
        format="{level} {message}",
    )
    yield messages
    logger.remove(handler_id)
