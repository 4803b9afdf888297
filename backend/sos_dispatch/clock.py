from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DISPLAY_FORMAT = "%I:%M %p"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def display_label(moment: Optional[datetime], tz_name: str) -> Optional[str]:
    """Format a stored timestamp as a local wall-clock label, e.g. '02:15 PM'.

    SQLite hands datetimes back without tzinfo; those are treated as UTC.
    """
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).strftime(DISPLAY_FORMAT)
