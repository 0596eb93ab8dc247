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
Event Slash Commands

Discord slash commands for scheduling and managing guild events.
"""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from events import EventService, Repeat

logger = logging.getLogger("eventbot.commands.event")

# Discord message length limit
DISCORD_MAX_LENGTH = 2000

REPEAT_CHOICES = [app_commands.Choice(name=r.value, value=r.value) for r in Repeat]


def chunk_message(content: str, limit: int = DISCORD_MAX_LENGTH) -> list[str]:
    """Split a listing into messages at blank lines, keeping each under the limit."""
    if len(content) <= limit:
        return [content]

    chunks = []
    current = ""
    for section in content.split("\n\n"):
        candidate = f"{current}\n\n{section}" if current else section
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        # A single oversized section gets hard-split
        while len(section) > limit:
            chunks.append(section[:limit])
            section = section[limit:]
        current = section

    if current:
        chunks.append(current)
    return chunks


class EventCommands(commands.Cog):
    """
    Slash commands for event management.

    Commands:
    - /schedule - Schedule an event in this channel
    - /upcoming - List this server's events
    - /cancel - Cancel an event
    - /update - Change an existing event
    """

    def __init__(self, bot: commands.Bot, service: EventService):
        self.bot = bot
        self.service = service

    def _log_command(self, interaction: discord.Interaction, name: str) -> None:
        logger.info(
            f"Received command: {name} (guild={interaction.guild_id}, "
            f"channel={interaction.channel_id}, user={interaction.user.id})"
        )

    # =========================================================================
    # /schedule
    # =========================================================================

    @app_commands.command(name="schedule", description="Schedule an event for a given day")
    @app_commands.guild_only()
    @app_commands.describe(
        name="Name of the event",
        date="Date of the event. Format as (year-month-day)",
        time="Time of the event (military time e.g. 13:45)",
        repeat="How often the event repeats (default: None)",
        role="Role to notify (default: @everyone)",
    )
    @app_commands.choices(repeat=REPEAT_CHOICES)
    async def schedule(
        self,
        interaction: discord.Interaction,
        name: str,
        date: str,
        time: str,
        repeat: Optional[app_commands.Choice[str]] = None,
        role: Optional[discord.Role] = None,
    ):
        """Schedule a new event."""
        self._log_command(interaction, "schedule")

        result = await self.service.schedule(
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            name=name,
            date=date,
            time=time,
            repeat=repeat.value if repeat else None,
            role=role.mention if role else None,
        )

        await interaction.response.send_message(
            result.message,
            ephemeral=not result.ok,
            allowed_mentions=discord.AllowedMentions(everyone=True, roles=True),
        )

    # =========================================================================
    # /upcoming
    # =========================================================================

    @app_commands.command(name="upcoming", description="List upcoming events")
    @app_commands.guild_only()
    async def upcoming(self, interaction: discord.Interaction):
        """List this server's events."""
        self._log_command(interaction, "upcoming")

        result = self.service.upcoming(interaction.guild_id)
        chunks = chunk_message(result.message)

        await interaction.response.send_message(chunks[0], ephemeral=True)
        for chunk in chunks[1:]:
            await interaction.followup.send(chunk, ephemeral=True)

    # =========================================================================
    # /cancel
    # =========================================================================

    @app_commands.command(name="cancel", description="Cancel an event")
    @app_commands.guild_only()
    @app_commands.describe(id="ID of the event to cancel")
    async def cancel(self, interaction: discord.Interaction, id: int):
        """Cancel an event."""
        self._log_command(interaction, "cancel")

        result = await self.service.cancel(interaction.guild_id, id)
        await interaction.response.send_message(result.message, ephemeral=not result.ok)

    # =========================================================================
    # /update
    # =========================================================================

    @app_commands.command(name="update", description="Update an event")
    @app_commands.guild_only()
    @app_commands.describe(
        id="ID of the event to update",
        name="New name",
        date="New date (year-month-day)",
        time="New time (military time e.g. 13:45)",
        repeat="New repeat",
        role="New role to notify",
        channel="Channel to announce in (default: unchanged)",
    )
    @app_commands.choices(repeat=REPEAT_CHOICES)
    async def update(
        self,
        interaction: discord.Interaction,
        id: int,
        name: Optional[str] = None,
        date: Optional[str] = None,
        time: Optional[str] = None,
        repeat: Optional[app_commands.Choice[str]] = None,
        role: Optional[discord.Role] = None,
        channel: Optional[discord.TextChannel] = None,
    ):
        """Change an existing event."""
        self._log_command(interaction, "update")

        result = await self.service.update(
            interaction.guild_id,
            id,
            name=name,
            date=date,
            time=time,
            repeat=repeat.value if repeat else None,
            channel_id=channel.id if channel else None,
            role=role.mention if role else None,
        )
        await interaction.response.send_message(result.message, ephemeral=True)
