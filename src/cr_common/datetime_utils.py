"""UTC datetime utilities."""

from datetime import datetime, time, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def utc_day_start(moment: datetime) -> datetime:
    """Midnight UTC of the day containing `moment` (daily-limit window start)."""
    return datetime.combine(moment.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)
