"""Human-relative labels for extraction timestamps ("3 hours ago")"""
from datetime import datetime, timezone
from typing import Any, Optional

from .normalize import parse_timestamp
from .logger import get_logger

logger = get_logger()

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_relative_time(timestamp: Any, now: Optional[datetime] = None) -> str:
    """
    Bucket the distance between timestamp and now into the largest unit
    that keeps the count under its next boundary. Months are 30 days and
    years 365. Unparseable input is returned as given.
    """
    if not timestamp:
        return "N/A"

    moment = parse_timestamp(timestamp)
    if moment is None:
        logger.debug(f"Unparseable timestamp, showing raw value: {timestamp!r}")
        return str(timestamp)

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = abs((now - moment).total_seconds())

    minutes = int(seconds // MINUTE)
    hours = int(seconds // HOUR)
    days = int(seconds // DAY)
    weeks = days // 7
    # 28-29 days is past 4 weeks but short of a 30-day month
    months = max(1, days // 30)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    if weeks < 4:
        return _plural(weeks, "week")
    if months < 12:
        return _plural(months, "month")
    return _plural(max(1, days // 365), "year")
