# tests/conftest.py
from __future__ import annotations

import random
from unittest.mock import AsyncMock, Mock

import pytest
from loguru import logger

from subdb.client import SubDBClient
from subdb.hashing import CHUNK_SIZE, HASH_SIZE
from subdb.settings import SubDBSettings
from subdb.transport import TransportResponse
from subdb.utils.logging import setup_logger

# Setup logger for tests to ensure custom log levels are available
setup_logger("DEBUG")

EXPECTED_HASH = "ffd8d4aa68033dc03d1c8ef373b9028c"


def make_response(
    status_code: int, content_text: str = "", headers: dict[str, str] | None = None
) -> TransportResponse:
    return TransportResponse(
        status_code=status_code, content_text=content_text, headers=headers or {}
    )


@pytest.fixture
def video_bytes() -> bytes:
    """Deterministic pseudo-video, larger than the fingerprint sample."""
    return random.Random(42).randbytes(HASH_SIZE + 3 * CHUNK_SIZE + 17)


@pytest.fixture
def transport() -> Mock:
    """Sync-only transport capability answering 200 with an empty body."""
    mock = Mock(spec=["execute"])
    mock.execute.return_value = make_response(200)
    return mock


@pytest.fixture
def async_transport() -> Mock:
    """Transport capability exposing both entry points."""
    mock = Mock(spec=["execute", "execute_async"])
    mock.execute.return_value = make_response(200)
    mock.execute_async = AsyncMock(return_value=make_response(200))
    return mock


@pytest.fixture
def client(transport: Mock) -> SubDBClient:
    return SubDBClient(transport=transport)


@pytest.fixture
def settings() -> SubDBSettings:
    return SubDBSettings(
        base_url="http://sandbox.thesubdb.com/",
        client_name="SubDBTests",
        client_version="1.0",
        client_url="http://example.com/subdb-tests",
        retries=0,
        backoff_factor=0.0,
    )


@pytest.fixture
def respond():
    """Factory for canned transport responses."""
    return make_response


@pytest.fixture
def expected_hash() -> str:
    return EXPECTED_HASH


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level=0)
    yield records
    logger.remove(handler_id)
