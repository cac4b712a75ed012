"""Ingestion call: parse a CSV source, order the batch, start publishing."""

import logging
from collections.abc import Iterable, Sequence

from asset_event_monitor.core.csv_parser import parse_asset_events
from asset_event_monitor.core.errors import EmptyImportError
from asset_event_monitor.core.ordering import sort_events
from asset_event_monitor.core.publisher import EventPublisher

logger = logging.getLogger(__name__)


async def import_asset_events(
    rows: Iterable[Sequence[str]],
    publisher: EventPublisher,
    source: str = "<stream>",
) -> int:
    """Import every row or none; return the number of events accepted for publish.

    Parsing finishes before the first send, so a schema or row error means
    nothing is dispatched.
    """

    events = parse_asset_events(rows)
    if not events:
        raise EmptyImportError("No valid events found in the CSV file")

    ordered = sort_events(events)
    logger.info(
        "asset_import_dispatching",
        extra={"source": source, "event_count": len(ordered), "mode": publisher.mode},
    )
    return await publisher.publish_events(ordered)
