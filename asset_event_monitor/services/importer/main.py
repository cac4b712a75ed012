"""One-shot importer that publishes the asset events of a CSV file on disk."""

import argparse
import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from asset_event_monitor.core.config import Settings, get_settings
from asset_event_monitor.core.csv_parser import read_csv_rows
from asset_event_monitor.core.errors import IngestionError
from asset_event_monitor.core.logging import configure_logging
from asset_event_monitor.core.pipeline import import_asset_events
from asset_event_monitor.core.publisher import EventPublisher, JsonlSink


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import asset events from a CSV file.")
    parser.add_argument("path", type=Path, help="CSV file with a ticker/eventType/amount/date header")
    return parser.parse_args(argv)


async def _run(path: Path, settings: Settings, logger: logging.Logger) -> int:
    if path.suffix.lower() != ".csv":
        logger.error("importer_not_csv", extra={"path": str(path)})
        return 1

    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("importer_read_failed", extra={"path": str(path), "error": str(exc)})
        return 1

    sink = JsonlSink(settings.PUBLISH_SINK_PATH)
    try:
        sink.open()
    except OSError as exc:
        logger.error(
            "importer_sink_path_error",
            extra={"path": settings.PUBLISH_SINK_PATH, "error": str(exc)},
        )
        return 1

    publisher = EventPublisher(sink, settings.asset_events_topic(), settings.publish_mode())
    try:
        count = await import_asset_events(read_csv_rows(text), publisher, source=str(path))
    except IngestionError as exc:
        logger.error("importer_rejected", extra={"path": str(path), "error": str(exc)}, exc_info=exc)
        return 1
    finally:
        await publisher.drain()
        sink.close()

    logger.info("importer_done", extra={"path": str(path), "imported": count})
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Import one CSV file and exit once every send has completed."""

    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, service="importer")
    logger = logging.getLogger(__name__)
    return asyncio.run(_run(args.path, settings, logger))


if __name__ == "__main__":
    raise SystemExit(main())
