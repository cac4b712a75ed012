"""FastAPI service accepting CSV uploads of asset events for publication."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile

from asset_event_monitor.core.config import get_settings
from asset_event_monitor.core.csv_parser import read_csv_rows
from asset_event_monitor.core.errors import EmptyImportError, IngestionError
from asset_event_monitor.core.logging import configure_logging
from asset_event_monitor.core.pipeline import import_asset_events
from asset_event_monitor.core.publisher import EventPublisher, JsonlSink

settings = get_settings()
configure_logging(settings.LOG_LEVEL, service="api")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the publish sink for the app lifetime and flush pending sends on shutdown."""

    sink = JsonlSink(settings.PUBLISH_SINK_PATH)
    sink.open()
    publisher = EventPublisher(sink, settings.asset_events_topic(), settings.publish_mode())
    app.state.publisher = publisher
    logger.info(
        "api_startup",
        extra={
            "service": "api",
            "env": settings.ENV,
            "version": settings.VERSION,
            "topic": publisher.topic,
            "mode": publisher.mode,
        },
    )
    try:
        yield
    finally:
        await publisher.drain()
        sink.close()
        logger.info("api_shutdown", extra={"service": "api"})


app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)


def get_publisher(request: Request) -> EventPublisher:
    """Return the publisher created by the lifespan hook."""

    return request.app.state.publisher


@app.get("/health")
def health() -> dict[str, str]:
    """Return process liveness status."""

    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, str]:
    """Return application metadata from shared settings."""

    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "env": settings.ENV,
    }


def _reject(upload_name: str | None, detail: str) -> HTTPException:
    logger.warning("asset_import_rejected", extra={"upload_name": upload_name, "reason": detail})
    return HTTPException(status_code=400, detail=detail)


@app.post("/api/asset-events/import")
async def import_events(
    file: Annotated[UploadFile, File(description="CSV file of asset events")],
    publisher: Annotated[EventPublisher, Depends(get_publisher)],
) -> dict[str, str | int]:
    """Parse an uploaded CSV file and start publishing its events.

    The returned count is the number of events accepted for publish, not the
    number acknowledged by the sink.
    """

    content = await file.read()
    if not content:
        raise _reject(file.filename, "Please upload a non-empty file")

    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise _reject(file.filename, "Please upload a CSV file")

    logger.info("asset_import_parsing", extra={"upload_name": file.filename})
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise _reject(file.filename, f"Error reading CSV file: {exc}") from exc

    try:
        count = await import_asset_events(read_csv_rows(text), publisher, source=file.filename)
    except EmptyImportError as exc:
        raise _reject(file.filename, str(exc)) from exc
    except IngestionError as exc:
        raise _reject(file.filename, f"Error reading CSV file: {exc}") from exc

    return {
        "status": "ok",
        "imported": count,
        "message": f"Successfully imported {count} events",
    }
