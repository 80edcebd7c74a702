from datetime import datetime, time
from zoneinfo import ZoneInfo

from app.core.config import settings


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone, as a naive datetime.

    Reservation dates/times and blacklist timestamps are stored naive in that zone.
    """
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def parse_hhmm(value: str) -> time:
    """Parse an ``HH:MM`` opening-hours string."""
    return datetime.strptime(value, "%H:%M").time()
