"""Shared fixtures for the Livy client tests."""

from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from livy_client import client

HOST = "livy.local"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def mock_logger() -> MagicMock:
    """Logger double exposing the info/error capability."""
    return MagicMock(spec=["info", "error"])


@pytest.fixture
def sent() -> list[httpx.Request]:
    """Requests seen by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(
    mock_logger: MagicMock,
    sent: list[httpx.Request],
) -> Callable[..., client.LivyClient]:
    """Build a LivyClient whose transport answers with the given handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> client.LivyClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        return client.LivyClient(
            HOST,
            logger=mock_logger,
            transport=httpx.MockTransport(recording_handler),
        )

    return factory
