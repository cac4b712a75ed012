"""Deterministic publish ordering for a parsed batch of asset events."""

from collections.abc import Iterable
from datetime import date

from asset_event_monitor.core.types import AssetEvent, EventType

EVENT_TYPE_RANK: dict[EventType, int] = {
    EventType.PRICE_UPDATE: 0,
    EventType.SPLIT: 1,
    EventType.AGGREGATE: 2,
}


def publish_sort_key(event: AssetEvent) -> tuple[str, int, date]:
    """Return the (ticker, event type rank, date) key used to order a batch."""

    return event.ticker, EVENT_TYPE_RANK[event.event_type], event.date


def sort_events(events: Iterable[AssetEvent]) -> list[AssetEvent]:
    """Return a new list in publish order; ties keep their input order."""

    return sorted(events, key=publish_sort_key)
