"""Asynchronous dispatch of ordered asset events to a publish sink."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Sequence
from pathlib import Path
from typing import Any, Protocol, TextIO

from asset_event_monitor.core.config import PUBLISH_MODE_CONCURRENT, PUBLISH_MODE_SEQUENTIAL
from asset_event_monitor.core.errors import TransportError
from asset_event_monitor.core.time_utils import utc_now_iso
from asset_event_monitor.core.types import AssetEvent, event_payload

logger = logging.getLogger(__name__)

_STDOUT_PATH = "-"


class PublishSink(Protocol):
    """Message bus boundary: one keyed send per event, acknowledged asynchronously."""

    def send(self, topic: str, key: str, value: AssetEvent) -> Awaitable[Any]: ...


class JsonlSink:
    """Append-only JSONL sink; ``-`` writes records to stdout.

    File writes run in a worker thread so a slow disk does not stall the event
    loop. A lock keeps one write in flight, so offsets match file order.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._file: TextIO | None = None
        self._offset = 0
        self._write_lock = asyncio.Lock()

    def open(self) -> None:
        if self.path == _STDOUT_PATH:
            self._file = sys.stdout
            return
        target = Path(self.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._file = target.open("a", encoding="utf-8")

    def _write_line(self, file_obj: TextIO, line: str) -> None:
        file_obj.write(line + "\n")
        file_obj.flush()

    async def send(self, topic: str, key: str, value: AssetEvent) -> dict[str, Any]:
        payload = event_payload(value)
        async with self._write_lock:
            if self._file is None:
                raise TransportError(topic, key, "sink is not open")

            offset = self._offset
            record = {
                "topic": topic,
                "key": key,
                "offset": offset,
                "published_at": utc_now_iso(),
                "value": payload,
            }
            line = json.dumps(record, ensure_ascii=True, separators=(",", ":"))
            try:
                await asyncio.to_thread(self._write_line, self._file, line)
            except OSError as exc:
                raise TransportError(topic, key, str(exc)) from exc
            self._offset = offset + 1

        return {"topic": topic, "offset": offset}

    def close(self) -> None:
        if self._file is None:
            return
        if self._file is not sys.stdout:
            self._file.close()
        self._file = None


class EventPublisher:
    """Submit events to a sink keyed by ticker and log each outcome.

    In concurrent mode every send is started without waiting for the previous
    acknowledgment, so the sink may observe records out of submission order.
    Sequential mode awaits each acknowledgment before the next send.
    Send failures are logged and never raised to the caller.
    """

    def __init__(self, sink: PublishSink, topic: str, mode: str = PUBLISH_MODE_CONCURRENT) -> None:
        if mode not in (PUBLISH_MODE_CONCURRENT, PUBLISH_MODE_SEQUENTIAL):
            raise ValueError(f"unsupported publish mode: {mode}")
        self.sink = sink
        self.topic = topic
        self.mode = mode
        self._pending: set[asyncio.Future[Any]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def publish_events(self, events: Sequence[AssetEvent]) -> int:
        """Submit events in the given order; return how many sends were initiated."""

        if self.mode == PUBLISH_MODE_SEQUENTIAL:
            for event in events:
                await self._publish_and_wait(event)
        else:
            for event in events:
                self._publish_nowait(event)
        return len(events)

    def _publish_nowait(self, event: AssetEvent) -> None:
        try:
            future = asyncio.ensure_future(self.sink.send(self.topic, event.ticker, event))
        except Exception as exc:  # noqa: BLE001
            self._log_failure(event, exc)
            return

        self._pending.add(future)
        future.add_done_callback(self._pending.discard)
        future.add_done_callback(lambda done, event=event: self._log_outcome(event, done))

    async def _publish_and_wait(self, event: AssetEvent) -> None:
        try:
            await self.sink.send(self.topic, event.ticker, event)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            self._log_failure(event, exc)
            return
        self._log_success(event)

    def _log_outcome(self, event: AssetEvent, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            logger.warning(
                "asset_event_publish_cancelled",
                extra={"event_id": str(event.event_id), "ticker": event.ticker, "topic": self.topic},
            )
            return

        exc = future.exception()
        if exc is None:
            self._log_success(event)
        else:
            self._log_failure(event, exc)

    def _log_success(self, event: AssetEvent) -> None:
        logger.info(
            "asset_event_published",
            extra={"event_id": str(event.event_id), "ticker": event.ticker, "topic": self.topic},
        )

    def _log_failure(self, event: AssetEvent, exc: BaseException) -> None:
        logger.error(
            "asset_event_publish_failed",
            extra={
                "event_id": str(event.event_id),
                "ticker": event.ticker,
                "topic": self.topic,
                "error": str(exc),
            },
            exc_info=(type(exc), exc, exc.__traceback__),
        )

    async def drain(self) -> None:
        """Wait for every in-flight send to complete."""

        if not self._pending:
            return
        await asyncio.gather(*tuple(self._pending), return_exceptions=True)
