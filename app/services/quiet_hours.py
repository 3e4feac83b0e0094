# file: app/services/quiet_hours.py

from datetime import datetime, time
from typing import Union

from app.models.notification import NotificationSettings, QuietHours


def parse_hhmm(value: str) -> int:
    """Converts "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_since_midnight(moment: Union[datetime, time]) -> int:
    return moment.hour * 60 + moment.minute


def is_quiet(now: Union[datetime, time], settings: Union[NotificationSettings, QuietHours]) -> bool:
    """
    True when `now` falls inside the configured quiet window. Both bounds are
    inclusive; a start at or after the end wraps past midnight.
    """
    quiet = settings.quiet_hours if isinstance(settings, NotificationSettings) else settings
    if not quiet.enabled:
        return False

    current = minutes_since_midnight(now)
    start = parse_hhmm(quiet.start_time)
    end = parse_hhmm(quiet.end_time)

    if start < end:
        return start <= current <= end
    return current >= start or current <= end
