"""Errors raised while ingesting and publishing asset events."""

from collections.abc import Sequence


class IngestionError(Exception):
    """Base class for failures that reject a whole ingestion call."""


class SchemaError(IngestionError):
    """Raised when the header row is missing or a required column is unresolved."""


class RowParseError(IngestionError):
    """Raised when a data row cannot be converted into an asset event.

    The offending row is kept verbatim for diagnostics; the conversion failure,
    if any, is chained as ``__cause__``.
    """

    def __init__(self, message: str, row: Sequence[str], line_number: int | None = None):
        self.row = tuple(row)
        self.line_number = line_number
        super().__init__(message)


class EmptyImportError(IngestionError):
    """Raised when a source has a valid header but no data rows."""


class TransportError(Exception):
    """Raised by a publish sink when a single send fails."""

    def __init__(self, topic: str, key: str, message: str):
        self.topic = topic
        self.key = key
        super().__init__(f"Failed to send to {topic} (key={key}): {message}")
