"""Header resolution and row validation for delimited asset event files."""

import csv
import io
import re
from collections.abc import Iterable, Iterator, Sequence
from datetime import date
from decimal import Decimal, InvalidOperation

from asset_event_monitor.core.errors import RowParseError, SchemaError
from asset_event_monitor.core.types import AssetEvent, ColumnMapping, EventType

# Accepted header spellings per field, compared after trim + lowercase.
HEADER_VARIANTS: dict[str, tuple[str, ...]] = {
    "ticker": ("ticker",),
    "event_type": ("eventtype", "event_type", "event type"),
    "amount": ("amount",),
    "date": ("date",),
}

_REQUIRED_COLUMNS = "ticker, eventType, amount, date"
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

_LABEL_TO_FIELD = {
    variant: field_name for field_name, variants in HEADER_VARIANTS.items() for variant in variants
}


def resolve_header(header: Sequence[str] | None) -> ColumnMapping:
    """Map header labels to required field positions.

    Columns are scanned left to right and a later match for the same field
    overwrites an earlier one, so the right-most duplicate wins. Unknown
    labels are ignored.
    """

    if header is None:
        raise SchemaError("CSV file is empty")

    positions: dict[str, int] = {}
    for index, label in enumerate(header):
        field_name = _LABEL_TO_FIELD.get(label.strip().lower())
        if field_name is not None:
            positions[field_name] = index

    missing = [name for name in HEADER_VARIANTS if name not in positions]
    if missing:
        raise SchemaError(
            f"CSV file is missing required columns. Required: {_REQUIRED_COLUMNS}"
            f" (unresolved: {', '.join(missing)})"
        )

    return ColumnMapping(**positions)


def _parse_ticker(raw: str) -> str:
    ticker = raw.strip()
    if not ticker:
        raise ValueError("ticker must not be blank")
    return ticker


def _parse_event_type(raw: str) -> EventType:
    try:
        return EventType[raw]
    except KeyError:
        allowed = ", ".join(member.value for member in EventType)
        raise ValueError(f"unknown event type {raw!r}; expected one of {allowed}") from None


def _parse_amount(raw: str) -> Decimal:
    if not _DECIMAL_RE.fullmatch(raw):
        raise InvalidOperation(f"invalid decimal amount {raw!r}")
    return Decimal(raw)


def _parse_date(raw: str) -> date:
    if not _ISO_DATE_RE.fullmatch(raw):
        raise ValueError(f"invalid ISO date {raw!r}; expected YYYY-MM-DD")
    return date.fromisoformat(raw)


def parse_row(row: Sequence[str], mapping: ColumnMapping, line_number: int | None = None) -> AssetEvent:
    """Convert one raw row into an AssetEvent or raise RowParseError."""

    if len(row) <= mapping.max_index:
        raise RowParseError(
            f"Error parsing row: insufficient columns: {','.join(row)}",
            row,
            line_number,
        ) from ValueError("Insufficient columns")

    try:
        return AssetEvent(
            ticker=_parse_ticker(row[mapping.ticker]),
            event_type=_parse_event_type(row[mapping.event_type]),
            amount=_parse_amount(row[mapping.amount]),
            date=_parse_date(row[mapping.date]),
        )
    except (ValueError, ArithmeticError) as exc:
        raise RowParseError(f"Error parsing row: {','.join(row)} ({exc})", row, line_number) from exc


def _lines_consumed(records: Iterator[Sequence[str]], fallback: int) -> int:
    # csv.reader tracks physical lines, so quoted multi-line cells are counted.
    return getattr(records, "line_num", fallback)


def parse_asset_events(rows: Iterable[Sequence[str]]) -> list[AssetEvent]:
    """Parse a header row followed by data rows, stopping at the first bad row.

    Nothing is returned for a partially valid source: any row failure raises
    and discards the events parsed so far. A blank line is a row with no
    cells and fails like any other short row.
    """

    records: Iterator[Sequence[str]] = iter(rows)
    try:
        header = next(records, None)
    except csv.Error as exc:
        raise SchemaError(f"Error parsing CSV header: {exc}") from exc
    mapping = resolve_header(header)

    events: list[AssetEvent] = []
    records_read = 1
    while True:
        line_number = _lines_consumed(records, records_read) + 1
        try:
            row = next(records)
        except StopIteration:
            break
        except csv.Error as exc:
            raise RowParseError(
                f"Error parsing row at line {line_number}: {exc}", (), line_number
            ) from exc
        records_read += 1
        events.append(parse_row(row, mapping, line_number))
    return events


def read_csv_rows(text: str) -> Iterator[list[str]]:
    """Return a comma-delimited row iterator over decoded CSV text."""

    return csv.reader(io.StringIO(text, newline=""))
