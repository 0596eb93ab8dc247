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

"""Tests for event announcement delivery."""

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from events.config import EventConfig
from events.delivery import ALLOWED_MENTIONS, EventNotifier
from events.models import Repeat, ScheduledEvent
from events.registry import EventRegistry
from events.scheduler import EventScheduler

UTC = pytz.UTC
START = UTC.localize(datetime(2099, 1, 1, 9, 0))


def make_event(repeat=Repeat.NONE, role=None, event_id=5):
    return ScheduledEvent(
        name="Raid Night",
        date=START,
        repeat=repeat,
        channel_id=100,
        guild_id=1,
        role=role,
        id=event_id,
    )


@pytest.fixture
def channel():
    channel = MagicMock()
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def bot(channel):
    bot = MagicMock()
    bot.get_channel.return_value = channel
    bot.fetch_channel = AsyncMock(return_value=channel)
    return bot


@pytest.fixture
def store():
    store = MagicMock()
    store.update = AsyncMock(return_value=True)
    store.delete = AsyncMock(return_value=True)
    store.update_last_reminder = AsyncMock(return_value=True)
    return store


@pytest.fixture
def notifier(bot, store):
    return EventNotifier(bot, store, EventConfig(timezone="UTC", display_zones=(("UTC", "UTC"),)))


class TestStarted:
    """Test event start announcements."""

    @pytest.mark.asyncio
    async def test_one_shot_announced_and_deleted(self, notifier, channel, store):
        notifier.on_started(make_event())
        await notifier.drain()

        channel.send.assert_awaited_once_with(
            "@everyone\n\nEvent Starting!!! **Raid Night**",
            allowed_mentions=ALLOWED_MENTIONS,
        )
        store.delete.assert_awaited_once_with(5)
        store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recurring_saved_with_new_date(self, notifier, store):
        event = make_event(Repeat.DAILY, role="<@&42>")
        notifier.on_started(event)
        event.execute()
        await notifier.drain()

        store.update.assert_awaited_once_with(event)
        assert event.date == UTC.localize(datetime(2099, 1, 2, 9, 0))
        store.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_role_mention(self, notifier, channel):
        notifier.on_started(make_event(role="<@&42>"))
        await notifier.drain()

        content = channel.send.await_args.args[0]
        assert content.startswith("<@&42>\n\n")

    @pytest.mark.asyncio
    async def test_fetches_uncached_channel(self, notifier, bot, channel):
        bot.get_channel.return_value = None

        notifier.on_started(make_event())
        await notifier.drain()

        bot.fetch_channel.assert_awaited_once_with(100)
        channel.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_deleted_channel_still_syncs(self, notifier, bot, store):
        bot.get_channel.return_value = None
        bot.fetch_channel.side_effect = discord.NotFound(
            MagicMock(status=404, reason="Not Found"), "Unknown Channel"
        )

        notifier.on_started(make_event())
        await notifier.drain()

        store.delete.assert_awaited_once_with(5)

    @pytest.mark.asyncio
    async def test_send_failure_is_contained(self, notifier, channel, store):
        channel.send.side_effect = RuntimeError("gateway hiccup")

        notifier.on_started(make_event())
        await notifier.drain()

        store.delete.assert_awaited_once_with(5)
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_unpersisted_event_not_synced(self, notifier, channel, store):
        notifier.on_started(make_event(event_id=None))
        await notifier.drain()

        channel.send.assert_awaited_once()
        store.delete.assert_not_awaited()


class TestReminder:
    """Test reminder messages."""

    @pytest.mark.asyncio
    async def test_reminder_sent_and_stamped(self, notifier, channel, store):
        event = make_event()
        notifier.on_reminder(event)
        await notifier.drain()

        content = channel.send.await_args.args[0]
        assert content.startswith("@everyone Reminder!\n\n **Raid Night** - ")
        assert "January 1st, at:\n\t9:00am (UTC)" in content
        store.update_last_reminder.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_stamp_failure_is_logged(self, notifier, store):
        store.update_last_reminder.side_effect = OSError("db down")

        notifier.on_reminder(make_event())
        await notifier.drain()

        assert notifier.pending == 0


class TestMissed:
    """Test database sync for missed events."""

    @pytest.mark.asyncio
    async def test_missed_one_shot_deleted(self, notifier, channel, store):
        notifier.on_missed(make_event())
        await notifier.drain()

        store.delete.assert_awaited_once_with(5)
        channel.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missed_recurring_updated(self, notifier, store):
        event = make_event(Repeat.WEEKLY)
        notifier.on_missed(event)
        await notifier.drain()

        store.update.assert_awaited_once_with(event)


class TestWithScheduler:
    """Notifier wired to a real scheduler."""

    @pytest.mark.asyncio
    async def test_tick_delivers_and_syncs(self, notifier, channel, store):
        registry = EventRegistry()
        scheduler = EventScheduler(registry, EventConfig(timezone="UTC"))
        notifier.attach(scheduler)

        once = make_event(event_id=1)
        weekly = make_event(Repeat.WEEKLY, event_id=2)
        registry.add(once)
        registry.add(weekly)

        scheduler.tick(START)
        await notifier.drain()

        assert channel.send.await_count == 2
        store.delete.assert_awaited_once_with(1)
        store.update.assert_awaited_once_with(weekly)
        assert weekly.date == UTC.localize(datetime(2099, 1, 8, 9, 0))
        assert registry.list(1) == [weekly]
