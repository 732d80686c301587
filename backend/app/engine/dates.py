"""
Calendar-date normalization. Raw timestamps become calendar dates here and
nowhere else, always in the same reference timezone.
"""
import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

REFERENCE_TZ = ZoneInfo(os.environ.get("STREAK_TIMEZONE", "UTC"))


def to_calendar_date(value: str | date | datetime, tz: ZoneInfo = REFERENCE_TZ) -> date:
    """
    Turn a stored timestamp into the calendar day it falls on in `tz`.

    Accepts a bare "YYYY-MM-DD" string, an ISO-8601 timestamp (with or without
    offset, "Z" allowed) or a date/datetime. Naive timestamps are taken as UTC.
    """
    if isinstance(value, str):
        if len(value) == 10:
            return date.fromisoformat(value)
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz).date()

    return value


def today_in_reference_tz(now: datetime | None = None, tz: ZoneInfo = REFERENCE_TZ) -> date:
    now = now or datetime.now(timezone.utc)
    return to_calendar_date(now, tz)


def submission_days(rows: list[dict], tz: ZoneInfo = REFERENCE_TZ) -> set[date]:
    """Unique calendar days covered by a list of submission rows."""
    return {to_calendar_date(row["date"], tz) for row in rows if row.get("date")}
