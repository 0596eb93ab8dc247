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
Event Command Service

The logic behind the /schedule, /upcoming, /cancel and /update commands:
validate input, write to the database, then mirror the change into the
in-memory registry. The registry is only touched after the database call
succeeds.
"""

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import asyncpg
import pytz

from .config import EventConfig
from .models import Repeat, ScheduledEvent
from .registry import EventRegistry
from .store import EventStore
from .time_parser import (
    combine_event_datetime,
    ensure_future,
    parse_event_datetime,
)

logger = logging.getLogger("eventbot.events.service")

# Failures a database call may raise that we report instead of crash on
STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


@dataclass
class CommandResult:
    """Outcome of an event command, ready to be shown to the user."""

    ok: bool
    message: str
    event: Optional[ScheduledEvent] = None


class EventService:
    """Schedules, lists, cancels and updates events for a guild."""

    def __init__(
        self,
        store: EventStore,
        registry: EventRegistry,
        config: Optional[EventConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.registry = registry
        self.config = config or EventConfig()
        self.tz = pytz.timezone(self.config.timezone)
        self._clock = clock or (lambda: datetime.now(self.tz))

    async def schedule(
        self,
        guild_id: int,
        channel_id: int,
        name: str,
        date: str,
        time: str,
        repeat: Optional[str] = None,
        role: Optional[str] = None,
    ) -> CommandResult:
        """
        Create, store and register a new event.

        Args:
            guild_id: Guild the event belongs to
            channel_id: Channel announcements go to
            name: Event name
            date: Date string (YYYY-MM-DD or natural language)
            time: Time string (HH:MM or natural language)
            repeat: Repeat label ("None", "Daily", ...)
            role: Mention target; @everyone when omitted

        Returns:
            CommandResult with the registered event on success
        """
        name = (name or "").strip()
        if not name:
            return CommandResult(False, "Failed to schedule event. The name cannot be empty.")

        try:
            when = parse_event_datetime(date, time, self.config.timezone)
            ensure_future(when, self._clock())
            event = ScheduledEvent(
                name=name,
                date=when,
                repeat=Repeat.parse(repeat),
                channel_id=channel_id,
                guild_id=guild_id,
                role=role,
            )
        except ValueError as e:
            logger.debug(f"Rejected event '{name}' in guild {guild_id}: {e}")
            return CommandResult(False, f"Failed to schedule event. Invalid date/time: {e}")

        try:
            event.id = await self.store.insert(event)
        except STORE_ERRORS as e:
            logger.error(f"Failed to store event '{name}': {e}", exc_info=True)
            return CommandResult(False, "Failed to schedule event. Please try again.")

        self.registry.add(event)
        logger.info(f"Scheduled event {event.id} '{event.name}' in guild {guild_id}")

        return CommandResult(
            True,
            f"{event.mention}\nNew event: **{event.name}** scheduled for "
            f"{event.format_time(self._clock(), self.config.display_zones)}",
            event,
        )

    def upcoming(self, guild_id: int) -> CommandResult:
        """List a guild's events, soonest first."""
        events = sorted(self.registry.list(guild_id), key=lambda e: e.date)
        if not events:
            return CommandResult(True, "No upcoming events!")

        now = self._clock()
        summaries = [e.format_summary(now, self.config.display_zones) for e in events]
        return CommandResult(True, "**Upcoming Events**\n\n" + "\n\n".join(summaries))

    async def cancel(self, guild_id: int, event_id: int) -> CommandResult:
        """Delete an event from the database and the registry."""
        event = self.registry.get_by_id(guild_id, event_id)
        if event is None:
            return CommandResult(False, f"Event with id **{event_id}** not found.")

        try:
            deleted = await self.store.delete(event.id)
        except STORE_ERRORS as e:
            logger.error(f"Failed to delete event {event_id}: {e}", exc_info=True)
            return CommandResult(False, "Failed to cancel event. Please try again.")

        if not deleted:
            return CommandResult(False, f"Event with id **{event_id}** not found.")

        self.registry.remove(event)
        logger.info(f"Cancelled event {event_id} in guild {guild_id}")
        return CommandResult(True, f"Event **{event.name}** has been cancelled.", event)

    async def update(
        self,
        guild_id: int,
        event_id: int,
        name: Optional[str] = None,
        date: Optional[str] = None,
        time: Optional[str] = None,
        repeat: Optional[str] = None,
        channel_id: Optional[int] = None,
        role: Optional[str] = None,
    ) -> CommandResult:
        """
        Change fields of an existing event.

        Omitted fields keep their value. Giving only a date or only a time
        keeps the other part of the current occurrence.

        Changes are applied to the registered event after the store write,
        so an occurrence fired in the meantime is not rolled back.
        """
        event = self.registry.get_by_id(guild_id, event_id)
        if event is None:
            return CommandResult(False, "There is no event with this id.")

        changes = {}
        if name and name.strip():
            changes["name"] = name.strip()
        if channel_id:
            changes["channel_id"] = channel_id
        if role:
            changes["role"] = role

        try:
            if repeat:
                changes["repeat"] = Repeat.parse(repeat)
            if date or time:
                when = combine_event_datetime(event.date, date, time, self.config.timezone)
                changes["date"] = ensure_future(when, self._clock())
        except ValueError as e:
            return CommandResult(False, f"Failed to update event. Invalid date/time: {e}")

        updated = dataclasses.replace(event, **changes)

        try:
            stored = await self.store.update(updated)
        except STORE_ERRORS as e:
            logger.error(f"Failed to update event {event_id}: {e}", exc_info=True)
            return CommandResult(False, "Failed to update event. Please try again.")

        if not stored:
            return CommandResult(False, f"Event with id **{event_id}** not found.")

        # A tick may have fired, advanced or dropped the event during the write
        live = self.registry.get_by_id(guild_id, event_id)
        if live is None:
            logger.info(f"Event {event_id} finished while being updated")
            return CommandResult(False, f"Event with id **{event_id}** not found.")

        for field_name, value in changes.items():
            setattr(live, field_name, value)
        if not self.registry.update_by_id(live):
            return CommandResult(False, f"Event with id **{event_id}** not found.")

        if live != updated:
            # Store the clock state the tick produced, not the stale copy
            try:
                await self.store.update(live)
            except STORE_ERRORS as e:
                logger.error(f"Failed to resync event {event_id}: {e}", exc_info=True)

        logger.info(f"Updated event {event_id} in guild {guild_id}: {sorted(changes)}")
        return CommandResult(
            True,
            f"Event updated\n{live.format_summary(self._clock(), self.config.display_zones)}",
            live,
        )
