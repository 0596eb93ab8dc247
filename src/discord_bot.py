"""
eventbot Discord Bot

Maintains the Discord connection, loads scheduled events from the database
and runs the event scheduler that announces them in their channels.
"""

import asyncio
import os
from typing import Optional

import asyncpg
import discord
from discord.ext import commands
from dotenv import load_dotenv

from commands.event_commands import EventCommands
from events import (
    EventConfig,
    EventNotifier,
    EventRegistry,
    EventScheduler,
    EventService,
    EventStore,
)
from events.registry import group_by_guild

load_dotenv()

import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("eventbot")


class EventBot(commands.Bot):
    """Discord bot that schedules guild events and reminds members of them."""

    def __init__(
        self,
        database_url: str,
        config: Optional[EventConfig] = None,
        sync_guild_id: Optional[int] = None,
    ):
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(command_prefix="!", intents=intents)

        self.database_url = database_url
        self.config = config or EventConfig.from_env()
        self.sync_guild_id = sync_guild_id
        self.db_pool: Optional[asyncpg.Pool] = None

        self.registry = EventRegistry()
        self.scheduler = EventScheduler(self.registry, self.config)
        self.store: Optional[EventStore] = None
        self.notifier: Optional[EventNotifier] = None

    async def setup_hook(self):
        """Called when the bot is starting up."""
        logger.info(f"Setup: EVENTS_TIMEZONE={self.config.timezone}")
        logger.info(
            "Setup: display zones="
            + ", ".join(f"{label}={tz}" for label, tz in self.config.display_zones)
        )

        logger.info("Initializing database...")
        self.db_pool = await asyncpg.create_pool(self.database_url)
        self.store = EventStore(self.db_pool, self.config.timezone)
        await self.store.ensure_schema()

        events = await self.store.load_all()
        self.registry.replace_all(group_by_guild(events))

        self.notifier = EventNotifier(self, self.store, self.config)
        self.notifier.attach(self.scheduler)

        service = EventService(self.store, self.registry, self.config)
        await self.add_cog(EventCommands(self, service))
        await self._sync_commands()

    async def _sync_commands(self):
        """Register slash commands, instantly for one guild when configured."""
        if self.sync_guild_id:
            guild = discord.Object(id=self.sync_guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info(f"Synced {len(synced)} command(s) to guild {self.sync_guild_id}")
        else:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} global command(s)")

    async def on_ready(self):
        """Called when the bot has connected to Discord (again after reconnects)."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")
        self.scheduler.start()

    async def close(self):
        """Clean up resources on shutdown."""
        self.scheduler.stop()
        if self.notifier:
            await self.notifier.drain()
        if self.db_pool:
            await self.db_pool.close()
        await super().close()


async def main():
    """Run the bot."""
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.error("DISCORD_BOT_TOKEN environment variable not set")
        logger.error("Please set it in your .env file")
        return

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL environment variable not set")
        return

    sync_guild = os.getenv("EVENTS_SYNC_GUILD_ID")

    bot = EventBot(
        database_url,
        sync_guild_id=int(sync_guild) if sync_guild else None,
    )
    async with bot:
        await bot.start(token)


def run():
    """Console entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
