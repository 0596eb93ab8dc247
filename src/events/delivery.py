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
Event Delivery Module

Subscribes to the scheduler's signals and turns them into Discord channel
messages, then brings the database in line with the in-memory event.

Handlers return immediately; the Discord and database work runs in
background tasks so a slow channel never delays a scheduler tick.
Failures are logged and never retried.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Coroutine, Optional

import discord

from .config import EventConfig
from .models import ScheduledEvent
from .store import EventStore

if TYPE_CHECKING:
    from .scheduler import EventScheduler

logger = logging.getLogger("eventbot.events.delivery")

ALLOWED_MENTIONS = discord.AllowedMentions(everyone=True, roles=True, users=False)


class EventNotifier:
    """Posts event announcements and reminders to their channels."""

    def __init__(
        self,
        bot: discord.Client,
        store: EventStore,
        config: Optional[EventConfig] = None,
    ):
        """
        Initialize the notifier.

        Args:
            bot: Discord client used to resolve channels
            store: Event store kept in sync with fired events
            config: Display configuration
        """
        self.bot = bot
        self.store = store
        self.config = config or EventConfig()
        self._tasks: set[asyncio.Task] = set()

    def attach(self, scheduler: "EventScheduler") -> None:
        """Subscribe to every scheduler signal."""
        scheduler.started.subscribe(self.on_started)
        scheduler.reminder.subscribe(self.on_reminder)
        scheduler.missed.subscribe(self.on_missed)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all in-flight deliveries to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # =========================================================================
    # Signal handlers
    # =========================================================================

    def on_started(self, event: ScheduledEvent) -> None:
        # Message text is built now; the scheduler advances the event right after
        content = f"{event.mention}\n\nEvent Starting!!! **{event.name}**"
        self._spawn(self._deliver_start(event, content))

    def on_reminder(self, event: ScheduledEvent) -> None:
        content = (
            f"{event.mention} Reminder!\n\n **{event.name}** - "
            f"{event.format_time(zones=self.config.display_zones)}"
        )
        self._spawn(self._deliver_reminder(event, content))

    def on_missed(self, event: ScheduledEvent) -> None:
        self._spawn(self._sync(event))

    # =========================================================================
    # Background work
    # =========================================================================

    async def _deliver_start(self, event: ScheduledEvent, content: str) -> None:
        logger.info(f"Event starting: {event.name} (channel={event.channel_id})")
        await self._send(event, content)
        await self._sync(event)

    async def _deliver_reminder(self, event: ScheduledEvent, content: str) -> None:
        logger.info(f"Event reminder: {event.name} (channel={event.channel_id})")
        await self._send(event, content)

        if event.id is None:
            return
        try:
            await self.store.update_last_reminder(event)
        except Exception as e:
            logger.error(
                f"Failed to save reminder time for event {event.id}: {e}", exc_info=True
            )

    async def _sync(self, event: ScheduledEvent) -> None:
        """Delete finished one-shot events, save the new date of recurring ones."""
        if event.id is None:
            return
        try:
            if event.repeat.is_recurring:
                await self.store.update(event)
            else:
                await self.store.delete(event.id)
        except Exception as e:
            logger.error(f"Failed to sync event {event.id} to database: {e}", exc_info=True)

    async def _send(self, event: ScheduledEvent, content: str) -> bool:
        """
        Send a message to the event's channel.

        Returns:
            True if the message was sent
        """
        channel_id = event.channel_id
        try:
            channel = self.bot.get_channel(channel_id)
            if channel is None:
                channel = await self.bot.fetch_channel(channel_id)
            await channel.send(content, allowed_mentions=ALLOWED_MENTIONS)
            return True
        except discord.NotFound:
            logger.warning(f"Channel {channel_id} for event {event.id} not found (deleted)")
        except discord.Forbidden:
            logger.warning(f"No access to channel {channel_id} for event {event.id}")
        except Exception as e:
            logger.error(
                f"Failed to send message for event {event.id} to channel {channel_id}: {e}",
                exc_info=True,
            )
        return False
