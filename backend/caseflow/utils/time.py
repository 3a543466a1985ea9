"""UTC time helpers for due dates and history timestamps"""
from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """ISO 8601 with a Z suffix; naive values (as Mongo returns them) are UTC"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def due_date_from_days(due_days: Optional[int], start: Optional[datetime] = None) -> Optional[datetime]:
    """Due date ``due_days`` after ``start`` (default now); None when unset"""
    if due_days is None:
        return None
    return add_days(start or utc_now(), due_days)
