"""Time window helpers."""

from datetime import date, datetime, time, timedelta, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def trailing(now: datetime, days: int) -> tuple[datetime, datetime]:
    """Return the window covering the last ``days`` days up to ``now``."""

    end = as_utc(now)
    return end - timedelta(days=days), end


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return [start, end) of a UTC calendar day."""

    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def overlaps(start: datetime, end: datetime | None, window_start: datetime, window_end: datetime) -> bool:
    """Whether [start, end] touches [window_start, window_end); open ``end`` means ongoing."""

    if as_utc(start) >= window_end:
        return False
    return end is None or as_utc(end) >= window_start
