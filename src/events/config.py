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
Event Scheduler Configuration

Timing and display parameters for the event scheduler.
Values can be overridden via environment variables.
"""

import logging
import os
from dataclasses import dataclass, field

from .time_parser import validate_timezone

logger = logging.getLogger("eventbot.events.config")

DEFAULT_TIMEZONE = "America/Los_Angeles"

# Label/zone pairs shown under every event time
DEFAULT_DISPLAY_ZONES = (
    ("PT", "America/Los_Angeles"),
    ("MT", "America/Denver"),
    ("CT", "America/Chicago"),
    ("ET", "America/New_York"),
)


def parse_display_zones(raw: str) -> tuple[tuple[str, str], ...]:
    """
    Parse a display zone list like "PT=America/Los_Angeles,UTC=UTC".

    Entries with an unknown zone are skipped. An empty result falls back
    to DEFAULT_DISPLAY_ZONES.
    """
    zones = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "=" in entry:
            label, tz_name = (part.strip() for part in entry.split("=", 1))
        else:
            label = tz_name = entry
        if not validate_timezone(tz_name):
            logger.warning(f"Ignoring unknown display timezone '{tz_name}'")
            continue
        zones.append((label, tz_name))

    return tuple(zones) or DEFAULT_DISPLAY_ZONES


def parse_reminder_days(raw: str) -> tuple[int, ...]:
    """Parse "0,1,2" into (0, 1, 2), keeping the given order."""
    days = tuple(int(part) for part in raw.split(",") if part.strip())
    return days or (0, 1, 2)


@dataclass
class EventConfig:
    """Configuration for the event scheduler."""

    # Scheduler loop period
    tick_seconds: float = 1.0

    # How long after its start time an event may still fire
    grace_seconds: int = 60

    # Reminder settings
    reminder_hour: int = 8
    reminder_days: tuple[int, ...] = (0, 1, 2)
    reminder_cooldown_hours: int = 24

    # Zone used to interpret user input and compute calendar days
    timezone: str = DEFAULT_TIMEZONE
    display_zones: tuple[tuple[str, str], ...] = field(
        default_factory=lambda: DEFAULT_DISPLAY_ZONES
    )

    @classmethod
    def from_env(cls) -> "EventConfig":
        """Create config from environment variables with defaults."""
        timezone = os.getenv("EVENTS_TIMEZONE", DEFAULT_TIMEZONE)
        if not validate_timezone(timezone):
            logger.warning(
                f"Invalid EVENTS_TIMEZONE '{timezone}', falling back to {DEFAULT_TIMEZONE}"
            )
            timezone = DEFAULT_TIMEZONE

        return cls(
            tick_seconds=float(os.getenv("EVENTS_TICK_SECONDS", "1.0")),
            grace_seconds=int(os.getenv("EVENTS_GRACE_SECONDS", "60")),
            reminder_hour=int(os.getenv("EVENTS_REMINDER_HOUR", "8")),
            reminder_days=parse_reminder_days(
                os.getenv("EVENTS_REMINDER_DAYS", "0,1,2")
            ),
            reminder_cooldown_hours=int(
                os.getenv("EVENTS_REMINDER_COOLDOWN_HOURS", "24")
            ),
            timezone=timezone,
            display_zones=parse_display_zones(
                os.getenv("EVENTS_DISPLAY_TIMEZONES", "")
            ),
        )
