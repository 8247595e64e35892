"""Timezone-aware datetime utilities.

This module provides consistent timezone handling across the application.
All datetime values use UTC for storage and comparison; calendar dates for
streaks are derived in the learner's own timezone.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from proficiency.shared.exceptions import InvalidTimezoneError


def utc_now() -> datetime:
    """Get current datetime with UTC timezone.

    Always use this function instead of datetime.utcnow() or datetime.now().

    Returns:
        Current datetime with UTC timezone
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure datetime has UTC timezone.

    If datetime is naive (no timezone), assumes UTC and adds it.
    If datetime has different timezone, converts to UTC.

    Args:
        dt: Datetime to ensure is UTC

    Returns:
        Datetime with UTC timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume it's UTC and add timezone
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def is_expired(expiry: datetime | None, now: datetime | None = None) -> bool:
    """Check if a datetime has expired.

    Args:
        expiry: Expiration datetime to check
        now: Current datetime for comparison (defaults to utc_now())

    Returns:
        True if expired (expiry is in the past), False otherwise
    """
    if expiry is None:
        return False

    if now is None:
        now = utc_now()

    return ensure_utc(expiry) <= ensure_utc(now)


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        InvalidTimezoneError: If the name is empty or unknown
    """
    if not tz_name:
        raise InvalidTimezoneError(tz_name)
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(tz_name) from e


def local_date(moment: datetime, tz_name: str) -> date:
    """Calendar date of ``moment`` as seen in ``tz_name``."""
    return ensure_utc(moment).astimezone(get_zone(tz_name)).date()


def monday_of(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def iso_to_datetime(iso_string: str | None) -> datetime | None:
    """Parse ISO 8601 string to datetime.

    Args:
        iso_string: ISO 8601 formatted string

    Returns:
        Datetime with UTC timezone, or None if input is None
    """
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
    return ensure_utc(dt)
