"""Shared fixtures for asset event ingestion tests."""

import asyncio
from typing import Any

import pytest

from asset_event_monitor.core.config import get_settings
from asset_event_monitor.core.errors import TransportError
from asset_event_monitor.core.types import AssetEvent


class RecordingSink:
    """In-memory sink that records sends and resolves them immediately."""

    def __init__(self, fail_keys: tuple[str, ...] = ()) -> None:
        self.fail_keys = set(fail_keys)
        self.sent: list[tuple[str, str, AssetEvent]] = []

    def send(self, topic: str, key: str, value: AssetEvent) -> asyncio.Future[Any]:
        self.sent.append((topic, key, value))
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        if key in self.fail_keys:
            future.set_exception(TransportError(topic, key, "broker unavailable"))
        else:
            future.set_result({"topic": topic, "offset": len(self.sent) - 1})
        return future


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def fresh_settings():
    """Drop cached settings before and after a test that changes the environment."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sink_factory() -> type[RecordingSink]:
    return RecordingSink
