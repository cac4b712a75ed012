"""Shared lightweight types for the asset event ingestion pipeline."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class EventType(str, Enum):
    """Closed set of asset event kinds, matched by canonical spelling."""

    PRICE_UPDATE = "PRICE_UPDATE"
    SPLIT = "SPLIT"
    AGGREGATE = "AGGREGATE"


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Column positions of the four required fields, resolved from a header row."""

    ticker: int
    event_type: int
    amount: int
    date: int

    @property
    def max_index(self) -> int:
        return max(self.ticker, self.event_type, self.amount, self.date)


@dataclass(frozen=True, slots=True, kw_only=True)
class AssetEvent:
    """Normalized asset event parsed from one CSV row and ready for publication."""

    ticker: str
    event_type: EventType
    amount: Decimal
    date: date
    event_id: UUID = field(default_factory=uuid4)


def event_payload(event: AssetEvent) -> dict[str, Any]:
    """Return a JSON-safe payload; amount stays a decimal string to avoid float drift."""

    return {
        "event_id": str(event.event_id),
        "ticker": event.ticker,
        "event_type": event.event_type.value,
        "amount": str(event.amount),
        "date": event.date.isoformat(),
    }
