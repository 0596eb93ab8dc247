# eventbot - Discord Event Scheduler
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Time Parser Module

Turns the raw date and time strings given to event commands into
timezone-aware datetimes. Strict "YYYY-MM-DD" / "HH:MM" input is preferred;
natural language ("tomorrow", "next friday", "5pm") is accepted as a fallback.
"""

import logging
from datetime import date, datetime, time
from typing import Optional

import dateparser
import pytz

logger = logging.getLogger("eventbot.events.time_parser")

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class EventTimeError(ValueError):
    """Raised when an event date or time cannot be parsed or is not usable."""

    pass


def validate_timezone(tz_name: str) -> bool:
    """
    Validate that a timezone name is valid.

    Args:
        tz_name: IANA timezone name (e.g., "America/Los_Angeles")

    Returns:
        True if valid, False otherwise
    """
    try:
        pytz.timezone(tz_name)
        return True
    except pytz.UnknownTimeZoneError:
        return False


def _get_timezone(tz_name: str) -> pytz.BaseTzInfo:
    if not validate_timezone(tz_name):
        logger.warning(f"Invalid timezone '{tz_name}', falling back to UTC")
        tz_name = "UTC"
    return pytz.timezone(tz_name)


def _natural(expr: str, tz_name: str) -> Optional[datetime]:
    settings = {
        "TIMEZONE": tz_name,
        "RETURN_AS_TIMEZONE_AWARE": True,
        "PREFER_DATES_FROM": "future",
    }
    return dateparser.parse(expr, settings=settings)


def parse_date(date_str: str, tz_name: str = "UTC") -> date:
    """Parse a calendar date, strictly first and then as natural language."""
    date_str = date_str.strip()
    try:
        return datetime.strptime(date_str, DATE_FORMAT).date()
    except ValueError:
        pass

    parsed = _natural(date_str, tz_name)
    if parsed is None:
        raise EventTimeError(
            f"Could not parse date '{date_str}'. Use the format YYYY-MM-DD (e.g. 2025-07-04)."
        )
    return parsed.date()


def parse_time(time_str: str, tz_name: str = "UTC") -> time:
    """Parse a time of day, strictly (24h "HH:MM") first and then as natural language."""
    time_str = time_str.strip()
    try:
        return datetime.strptime(time_str, TIME_FORMAT).time()
    except ValueError:
        pass

    parsed = _natural(time_str, tz_name)
    if parsed is None:
        raise EventTimeError(
            f"Could not parse time '{time_str}'. Use 24 hour time (e.g. 13:45)."
        )
    return parsed.time().replace(second=0, microsecond=0)


def parse_event_datetime(date_str: str, time_str: str, timezone: str = "UTC") -> datetime:
    """
    Parse the date and time options of an event command.

    Args:
        date_str: Date like "2025-07-04" or "next friday"
        time_str: Time like "13:45" or "5pm"
        timezone: IANA zone the input is written in

    Returns:
        Timezone-aware datetime in `timezone`

    Raises:
        EventTimeError: If either part cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise EventTimeError("Empty date")
    if not time_str or not time_str.strip():
        raise EventTimeError("Empty time")

    tz = _get_timezone(timezone)
    day = parse_date(date_str, tz.zone)
    at = parse_time(time_str, tz.zone)
    return tz.localize(datetime.combine(day, at))


def combine_event_datetime(
    existing: datetime,
    date_str: Optional[str] = None,
    time_str: Optional[str] = None,
    timezone: str = "UTC",
) -> datetime:
    """
    Replace the date part, the time part, or both of an existing event time.

    Parts that are not given keep their current wall-clock value in `timezone`.
    """
    tz = _get_timezone(timezone)
    local = existing.astimezone(tz)

    day = parse_date(date_str, tz.zone) if date_str else local.date()
    at = parse_time(time_str, tz.zone) if time_str else local.time()
    return tz.localize(datetime.combine(day, at))


def ensure_future(value: datetime, now: Optional[datetime] = None) -> datetime:
    """
    Check that an event time lies in the future.

    Raises:
        EventTimeError: If `value` is not after `now`
    """
    if now is None:
        now = datetime.now(pytz.UTC)
    if value <= now:
        raise EventTimeError(
            f"{value.strftime('%Y-%m-%d %H:%M %Z')} is in the past. Pick a future date and time."
        )
    return value
