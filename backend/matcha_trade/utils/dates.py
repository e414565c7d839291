"""UTC helpers. SQLite hands back naive datetimes, so every comparison goes through as_utc."""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso(dt: Optional[datetime]) -> Optional[str]:
    dt = as_utc(dt)
    return dt.isoformat().replace('+00:00', 'Z') if dt else None


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 (date or datetime, trailing Z allowed). Raises ValueError."""
    if not isinstance(value, str) or not value:
        raise ValueError('datetime string required')
    dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    return as_utc(dt)


def month_key(dt: Optional[datetime]) -> Optional[str]:
    dt = as_utc(dt)
    return dt.strftime('%Y-%m') if dt else None

__all__ = ['utcnow', 'as_utc', 'iso', 'parse_datetime', 'month_key']
