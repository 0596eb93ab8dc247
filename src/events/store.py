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
Event Store Module

Handles database operations for scheduled events.
"""

import logging

import asyncpg
import pytz

from .models import ScheduledEvent

logger = logging.getLogger("eventbot.events.store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS scheduled_events (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    event_date TIMESTAMPTZ NOT NULL,
    repeat TEXT NOT NULL DEFAULT 'None',
    channel_id BIGINT NOT NULL,
    guild_id BIGINT NOT NULL,
    last_reminder_at TIMESTAMPTZ,
    role TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_scheduled_events_guild
    ON scheduled_events (guild_id);
"""


class EventStore:
    """
    Manages database operations for scheduled events.

    Database errors are not caught here; callers decide whether a failure
    is reported to a user or only logged.
    """

    def __init__(self, db_pool: asyncpg.Pool, timezone: str = "UTC"):
        """
        Initialize the event store.

        Args:
            db_pool: asyncpg connection pool
            timezone: Zone loaded event times are converted into
        """
        self.db = db_pool
        self.tz = pytz.timezone(timezone)

    def _row_to_event(self, row) -> ScheduledEvent:
        last_reminder = row["last_reminder_at"]
        return ScheduledEvent(
            id=row["id"],
            name=row["name"],
            date=row["event_date"].astimezone(self.tz),
            repeat=row["repeat"],
            channel_id=row["channel_id"],
            guild_id=row["guild_id"],
            role=row["role"],
            last_reminder_at=last_reminder.astimezone(self.tz) if last_reminder else None,
        )

    async def ensure_schema(self) -> None:
        """Create the events table if it does not exist."""
        await self.db.execute(SCHEMA)
        logger.info("Event schema ready")

    async def load_all(self) -> list[ScheduledEvent]:
        """
        Load every stored event.

        Returns:
            Events ordered by guild, then by creation (ID)
        """
        rows = await self.db.fetch(
            """
            SELECT id, name, event_date, repeat, channel_id, guild_id,
                   last_reminder_at, role
            FROM scheduled_events
            ORDER BY guild_id, id
            """
        )
        events = []
        for row in rows:
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning(f"Skipping unreadable event row {row['id']}: {e}")

        logger.info(f"Loaded {len(events)} event(s) from database")
        return events

    async def insert(self, event: ScheduledEvent) -> int:
        """
        Store a new event.

        Returns:
            The ID of the created event
        """
        row = await self.db.fetchrow(
            """
            INSERT INTO scheduled_events (
                name, event_date, repeat, channel_id, guild_id,
                last_reminder_at, role
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING id
            """,
            event.name,
            event.date,
            event.repeat.value,
            event.channel_id,
            event.guild_id,
            event.last_reminder_at,
            event.role,
        )

        event_id = row["id"]
        logger.info(
            f"Created event {event_id} in guild {event.guild_id}: "
            f"'{event.name}' at {event.date.isoformat()}, repeat={event.repeat.value}"
        )
        return event_id

    async def update(self, event: ScheduledEvent) -> bool:
        """
        Overwrite a stored event with the in-memory state.

        Returns:
            True if a row was updated
        """
        result = await self.db.execute(
            """
            UPDATE scheduled_events
            SET name = $2,
                event_date = $3,
                repeat = $4,
                channel_id = $5,
                last_reminder_at = $6,
                role = $7,
                updated_at = NOW()
            WHERE id = $1 AND guild_id = $8
            """,
            event.id,
            event.name,
            event.date,
            event.repeat.value,
            event.channel_id,
            event.last_reminder_at,
            event.role,
            event.guild_id,
        )

        updated = result == "UPDATE 1"
        if updated:
            logger.info(f"Updated event {event.id}: next={event.date.isoformat()}")
        else:
            logger.warning(f"Event {event.id} not found for update")
        return updated

    async def update_last_reminder(self, event: ScheduledEvent) -> bool:
        """Persist only the last reminder time of an event."""
        result = await self.db.execute(
            """
            UPDATE scheduled_events
            SET last_reminder_at = $2, updated_at = NOW()
            WHERE id = $1
            """,
            event.id,
            event.last_reminder_at,
        )
        return result == "UPDATE 1"

    async def delete(self, event_id: int) -> bool:
        """
        Delete a stored event.

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(
            """
            DELETE FROM scheduled_events
            WHERE id = $1
            """,
            event_id,
        )

        deleted = result == "DELETE 1"
        if deleted:
            logger.info(f"Deleted event {event_id}")
        return deleted
