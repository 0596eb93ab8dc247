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
Scheduled Event Model

The ScheduledEvent entity and its clock logic: readiness within a grace
window, days-before reminder checks, reminder cooldown, and advancing
recurring events to their next occurrence.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Optional

import pytz

from .config import DEFAULT_DISPLAY_ZONES

DEFAULT_MENTION = "@everyone"

WEEKDAYS = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]
MONTHS = [
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
]


class Repeat(str, Enum):
    """Recurrence of a scheduled event. Values double as display labels."""

    NONE = "None"
    ONCE = "Once"
    HOURLY = "Hourly"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @property
    def is_recurring(self) -> bool:
        return self not in (Repeat.NONE, Repeat.ONCE)

    @classmethod
    def parse(cls, value: Optional[str]) -> "Repeat":
        """Look up a repeat by label, case-insensitively. Empty means NONE."""
        if not value:
            return cls.NONE
        for repeat in cls:
            if repeat.value.lower() == value.strip().lower():
                return repeat
        raise ValueError(f"Unknown repeat '{value}'")


class ExecutionResult(str, Enum):
    """What happened to an event when it fired."""

    COMPLETED = "completed"  # one-shot, remove it
    RESCHEDULED = "rescheduled"  # recurring, date advanced


def date_ordinal(day: int) -> str:
    """Render a day of month with its English ordinal suffix (1st, 12th, 22nd)."""
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _localize(wall: datetime, tz: tzinfo) -> datetime:
    """Attach a zone to a naive wall-clock time, resolving DST for pytz zones."""
    if hasattr(tz, "localize"):
        return tz.localize(wall)
    return wall.replace(tzinfo=tz)


def next_occurrence(date: datetime, repeat: Repeat) -> Optional[datetime]:
    """
    Compute the occurrence following `date` for a repeat.

    Day-based repeats keep the wall-clock time across DST changes; hourly
    repeats step one absolute hour.

    Returns:
        The next occurrence, or None for one-shot events
    """
    if not repeat.is_recurring:
        return None

    if repeat is Repeat.HOURLY:
        return (date.astimezone(pytz.UTC) + timedelta(hours=1)).astimezone(date.tzinfo)

    wall = date.replace(tzinfo=None)
    if repeat is Repeat.DAILY:
        wall += timedelta(days=1)
    elif repeat is Repeat.WEEKLY:
        wall += timedelta(days=7)
    else:
        wall = add_months(wall, 1)

    return _localize(wall, date.tzinfo)


@dataclass
class ScheduledEvent:
    """A schedulable occurrence belonging to one guild."""

    name: str
    date: datetime  # timezone-aware, next occurrence
    channel_id: int
    guild_id: int
    repeat: Repeat = Repeat.NONE
    role: Optional[str] = None
    last_reminder_at: Optional[datetime] = None
    id: Optional[int] = None

    def __post_init__(self):
        # Rows and command options hand us plain labels
        if not isinstance(self.repeat, Repeat):
            self.repeat = Repeat.parse(self.repeat)

    @property
    def mention(self) -> str:
        return self.role or DEFAULT_MENTION

    # =========================================================================
    # Clock checks
    # =========================================================================

    def is_ready(self, now: datetime, grace: timedelta = timedelta(seconds=60)) -> bool:
        """
        Check if the event should fire now.

        The grace window keeps an event firing if a tick lands a little late,
        without re-firing events that were missed long ago.
        """
        return self.date <= now <= self.date + grace

    def is_missed(self, now: datetime, grace: timedelta = timedelta(seconds=60)) -> bool:
        """Check if the event's start time passed outside the grace window."""
        return now > self.date + grace

    def is_days_before(self, now: datetime, days: int, reminder_hour: int = 8) -> bool:
        """
        Check whether the event falls on the calendar day `days` after `now`,
        and `now` is at or past the reminder hour.
        """
        target_day = (now + timedelta(days=days)).date()
        event_day = self.date.astimezone(now.tzinfo).date()
        return event_day == target_day and now.hour >= reminder_hour

    def can_remind(self, now: datetime, cooldown: timedelta = timedelta(hours=24)) -> bool:
        """
        Check the reminder cooldown, stamping the reminder time on success.

        Returns:
            True if no reminder was sent yet or the last one is at least
            `cooldown` old, False otherwise (state unchanged)
        """
        if self.last_reminder_at is not None and now - self.last_reminder_at < cooldown:
            return False

        self.last_reminder_at = now
        return True

    # =========================================================================
    # Mutation
    # =========================================================================

    def execute(self) -> ExecutionResult:
        """Fire the event: advance recurring events, mark one-shots completed."""
        upcoming = next_occurrence(self.date, self.repeat)
        if upcoming is None:
            return ExecutionResult.COMPLETED

        self.date = upcoming
        return ExecutionResult.RESCHEDULED

    def roll_forward(self, now: datetime, grace: timedelta = timedelta(seconds=60)) -> int:
        """
        Advance a recurring event past occurrences it missed.

        Returns:
            Number of occurrences skipped
        """
        skipped = 0
        while self.repeat.is_recurring and self.is_missed(now, grace):
            self.date = next_occurrence(self.date, self.repeat)
            skipped += 1
        return skipped

    # =========================================================================
    # Formatting
    # =========================================================================

    def format_time(
        self,
        now: Optional[datetime] = None,
        zones: tuple[tuple[str, str], ...] = DEFAULT_DISPLAY_ZONES,
    ) -> str:
        """
        Format the next occurrence as a header line plus one line per zone.

        Example:
            Today, March 3rd, at:
                9:30am (PT)
                10:30am (MT)
        """
        if now is None:
            now = datetime.now(pytz.UTC)

        local_now = now.astimezone(self.date.tzinfo)
        if self.date.date() == local_now.date():
            day_label = "Today"
        else:
            day_label = WEEKDAYS[self.date.weekday()]

        lines = [
            f"{day_label}, {MONTHS[self.date.month - 1]} {date_ordinal(self.date.day)}, at:"
        ]
        for label, tz_name in zones:
            zoned = self.date.astimezone(pytz.timezone(tz_name))
            hour = zoned.hour % 12 or 12
            ampm = "pm" if zoned.hour >= 12 else "am"
            lines.append(f"\t{hour}:{zoned.minute:02d}{ampm} ({label})")

        return "\n".join(lines)

    def format_summary(
        self,
        now: Optional[datetime] = None,
        zones: tuple[tuple[str, str], ...] = DEFAULT_DISPLAY_ZONES,
    ) -> str:
        """Render id, name, next occurrence and recurrence for listings."""
        return (
            f"**Id:** {self.id}\n"
            f"**Name**: {self.name}\n\n"
            f"**Date**: {self.format_time(now, zones)}\n"
            f"**Repeating**: {self.repeat.value}"
        )
