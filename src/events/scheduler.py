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
Event Scheduler Module

Periodic loop that walks the event registry, fires due events and emits
reminders for upcoming ones. Uses discord.ext.tasks for reliable scheduling.

The loop itself never awaits delivery or storage work: subscribers to the
started/reminder/missed signals get each event synchronously and schedule
their own side effects.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

import pytz
from discord.ext import tasks

from .config import EventConfig
from .models import ExecutionResult, ScheduledEvent
from .registry import EventRegistry
from .signals import Signal

logger = logging.getLogger("eventbot.events.scheduler")


@dataclass
class TickResult:
    """Counts of what one tick did."""

    started: int = 0
    reminded: int = 0
    missed: int = 0


class EventScheduler:
    """
    Background scheduler for firing events and sending reminders.

    Runs a loop every `config.tick_seconds` (1 second by default). Each tick
    processes every guild and every event in insertion order.
    """

    def __init__(
        self,
        registry: EventRegistry,
        config: Optional[EventConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the event scheduler.

        Args:
            registry: Events to drive
            config: Timing configuration (defaults if omitted)
            clock: Returns the current aware datetime; defaults to now in
                the configured timezone
        """
        self.registry = registry
        self.config = config or EventConfig()
        self.tz = pytz.timezone(self.config.timezone)
        self._clock = clock or (lambda: datetime.now(self.tz))
        self._started = False

        self.started = Signal("event-started")
        self.reminder = Signal("event-reminder")
        self.missed = Signal("event-missed")

    @property
    def is_running(self) -> bool:
        return self._started

    def start(self) -> None:
        """
        Start the scheduler loop. Does nothing if already running.

        After a stop() whose cancelled task has not finished yet, the loop
        restarts once that task is done.
        """
        if not self._started:
            self._tick_loop.change_interval(seconds=self.config.tick_seconds)
            if self._tick_loop.is_running():
                self._tick_loop.restart()
            else:
                self._tick_loop.start()
            self._started = True
            logger.info(
                f"Event scheduler started (every {self.config.tick_seconds}s, "
                f"{len(self.registry)} event(s))"
            )

    def stop(self) -> None:
        """Stop the scheduler loop. Signals already emitted are not retracted."""
        if self._started:
            self._tick_loop.cancel()
            self._started = False
            logger.info("Event scheduler stopped")

    @tasks.loop(seconds=1)
    async def _tick_loop(self) -> None:
        """Run one tick against the current time."""
        if not self._started:
            # Restarted after a stop() that came in while the restart was pending
            self._tick_loop.cancel()
            return

        try:
            self.tick(self._clock())
        except Exception as e:
            logger.error(f"Error in event scheduler loop: {e}", exc_info=True)

    def tick(self, now: datetime) -> TickResult:
        """
        Process every event once.

        Events removed from the registry earlier in the same tick (by a
        firing or a command) are skipped.

        Args:
            now: Current timezone-aware time

        Returns:
            Counts of started, reminded and missed events
        """
        result = TickResult()
        for guild_id in self.registry.guild_ids():
            for event in self.registry.list(guild_id):
                if event not in self.registry:
                    continue
                self._process(event, now, result)

        if result.started or result.reminded or result.missed:
            logger.debug(
                f"Tick {now.isoformat()}: started={result.started} "
                f"reminded={result.reminded} missed={result.missed}"
            )
        return result

    def _process(self, event: ScheduledEvent, now: datetime, result: TickResult) -> None:
        grace = timedelta(seconds=self.config.grace_seconds)

        if event.is_ready(now, grace):
            logger.info(
                f"Event starting: {event.name} (id={event.id}, guild={event.guild_id})"
            )
            self.started.publish(event)
            if event.execute() is ExecutionResult.COMPLETED:
                self.registry.remove(event)
            else:
                logger.info(f"Event {event.id} rescheduled for {event.date.isoformat()}")
            result.started += 1

        elif event.is_missed(now, grace):
            if event.repeat.is_recurring:
                skipped = event.roll_forward(now, grace)
                logger.warning(
                    f"Event {event.id} missed {skipped} occurrence(s), "
                    f"next at {event.date.isoformat()}"
                )
            else:
                self.registry.remove(event)
                logger.warning(
                    f"Event {event.id} ({event.name}) missed its window at "
                    f"{event.date.isoformat()}, dropping it"
                )
            self.missed.publish(event)
            result.missed += 1

        elif self._reminder_due(event, now) and event.can_remind(
            now, timedelta(hours=self.config.reminder_cooldown_hours)
        ):
            logger.info(f"Event reminder: {event.name} (id={event.id})")
            self.reminder.publish(event)
            result.reminded += 1

    def _reminder_due(self, event: ScheduledEvent, now: datetime) -> bool:
        return any(
            event.is_days_before(now, days, self.config.reminder_hour)
            for days in self.config.reminder_days
        )
