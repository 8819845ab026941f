# src/agora/db/time.py
"""UTC clock helpers shared by models and services."""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def start_of_day(moment: datetime | None = None) -> datetime:
    """Return UTC midnight of the day containing ``moment`` (default: now)."""
    moment = moment.astimezone(UTC) if moment is not None else utcnow()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def days_ago(days: int, *, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)
