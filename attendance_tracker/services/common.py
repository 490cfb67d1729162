"""Helpers shared by the entity services."""
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from attendance_tracker.db import Store
from attendance_tracker.errors import InvalidReferenceError, ValidationError
from attendance_tracker.models import DEPARTMENTS


def utcnow() -> datetime:
    return datetime.utcnow()


def parse_day(value: Optional[str]) -> datetime:
    """Parse a calendar date (or ISO datetime) into midnight UTC of that day.

    Aware datetimes are converted to UTC before the day is taken, so
    "2024-01-01T23:30:00-02:00" lands on 2024-01-02.
    """
    text = (value or "").strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError("Invalid date format. Please use YYYY-MM-DD.")
    try:
        day = date.fromisoformat(text)
    except ValueError:
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("Invalid date format. Please use YYYY-MM-DD.") from None
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        day = moment.date()
    return datetime(day.year, day.month, day.day)


async def ensure_department(store: Store, department_id: str) -> dict:
    department = await store.get(DEPARTMENTS, department_id)
    if not department:
        raise InvalidReferenceError(f"Department with ID {department_id} not found.")
    return department


async def departments_by_id(store: Store, records: Iterable[dict]) -> dict[str, dict]:
    return await store.get_many(DEPARTMENTS, {r["department_id"] for r in records})
