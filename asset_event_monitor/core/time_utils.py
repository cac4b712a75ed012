"""UTC clock helpers used to stamp log lines and published records."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime with timezone attached."""

    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return current UTC time as an ISO-8601 string with millisecond precision."""

    return utc_now().isoformat(timespec="milliseconds")
