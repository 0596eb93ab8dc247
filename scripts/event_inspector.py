#!/usr/bin/env python3
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
Event Inspector CLI

Debug tool for inspecting the scheduled events stored in the database.

Usage:
    # List all stored events
    python scripts/event_inspector.py list

    # List one guild's events with full details
    python scripts/event_inspector.py list --guild-id 123456789 --verbose

    # Inspect a specific event
    python scripts/event_inspector.py inspect --event-id 42

    # Show event statistics
    python scripts/event_inspector.py stats

    # Export events to JSON
    python scripts/event_inspector.py export --output events.json

    # Delete an event the bot can no longer deliver
    python scripts/event_inspector.py delete --event-id 42
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import asyncpg
from dotenv import load_dotenv

from events import EventConfig, EventStore, ScheduledEvent

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def format_datetime(dt: datetime) -> str:
    """Format datetime for display."""
    if dt is None:
        return "Never"
    return dt.strftime("%Y-%m-%d %H:%M %Z")


def truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


async def list_events(store: EventStore, guild_id: int = None, verbose: bool = False):
    """List stored events, optionally for one guild."""
    events = await store.load_all()
    if guild_id:
        events = [e for e in events if e.guild_id == guild_id]

    if not events:
        logger.info("No events found matching the criteria.")
        return

    logger.info(f"\n{'='*80}")
    logger.info(f"Found {len(events)} events")
    logger.info(f"{'='*80}\n")

    for event in events:
        logger.info(f"[{event.id}] {truncate(event.name)} | {event.repeat.value}")
        logger.info(f"    Guild: {event.guild_id}  Channel: {event.channel_id}")
        logger.info(f"    Next: {format_datetime(event.date)}")
        if verbose:
            logger.info(f"    Mention: {event.mention}")
            logger.info(f"    Last reminder: {format_datetime(event.last_reminder_at)}")
        logger.info("")


async def show_stats(conn: asyncpg.Connection):
    """Show event statistics."""
    total = await conn.fetchval("SELECT COUNT(*) FROM scheduled_events")

    repeat_stats = await conn.fetch(
        "SELECT repeat, COUNT(*) as count FROM scheduled_events GROUP BY repeat ORDER BY count DESC"
    )

    guild_stats = await conn.fetch(
        "SELECT guild_id, COUNT(*) as count FROM scheduled_events GROUP BY guild_id ORDER BY count DESC LIMIT 10"
    )

    overdue = await conn.fetchval(
        "SELECT COUNT(*) FROM scheduled_events WHERE event_date < NOW()"
    )

    logger.info("\n" + "=" * 60)
    logger.info("SCHEDULED EVENT STATISTICS")
    logger.info("=" * 60)

    logger.info(f"\nTotal events: {total}")
    logger.info(f"Past their start time: {overdue}")

    logger.info("\nBy Repeat:")
    for row in repeat_stats:
        pct = (row["count"] / total * 100) if total > 0 else 0
        logger.info(f"  {row['repeat']:20} {row['count']:6} ({pct:5.1f}%)")

    logger.info("\nTop 10 Guilds by Event Count:")
    for row in guild_stats:
        logger.info(f"  Guild {row['guild_id']:20} {row['count']:6} events")


def _find(events: list[ScheduledEvent], event_id: int) -> ScheduledEvent:
    for event in events:
        if event.id == event_id:
            return event
    return None


async def inspect_event(store: EventStore, config: EventConfig, event_id: int):
    """Show full details for a specific event."""
    event = _find(await store.load_all(), event_id)
    if event is None:
        logger.error(f"Event {event_id} not found")
        return

    logger.info("\n" + "=" * 60)
    logger.info(f"EVENT #{event.id}")
    logger.info("=" * 60)
    logger.info(f"\nGuild: {event.guild_id}")
    logger.info(f"Channel: {event.channel_id}")
    logger.info(f"Mention: {event.mention}")
    logger.info(f"Last reminder: {format_datetime(event.last_reminder_at)}")
    logger.info("")
    logger.info(event.format_summary(zones=config.display_zones))


async def export_events(store: EventStore, output_file: str, guild_id: int = None):
    """Export events to JSON file."""
    events = await store.load_all()
    if guild_id:
        events = [e for e in events if e.guild_id == guild_id]

    rows = [
        {
            "id": e.id,
            "name": e.name,
            "date": e.date.isoformat(),
            "repeat": e.repeat.value,
            "channel_id": e.channel_id,
            "guild_id": e.guild_id,
            "role": e.role,
            "last_reminder_at": e.last_reminder_at.isoformat() if e.last_reminder_at else None,
        }
        for e in events
    ]

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)

    logger.info(f"Exported {len(rows)} events to {output_file}")


async def main_async(args):
    """Async main function."""
    db_url = os.environ.get("DATABASE_URL")
    if not db_url:
        logger.error("DATABASE_URL environment variable required")
        sys.exit(1)

    config = EventConfig.from_env()
    conn = await asyncpg.connect(db_url)
    store = EventStore(conn, config.timezone)

    try:
        if args.command == "list":
            await list_events(store, guild_id=args.guild_id, verbose=args.verbose)
        elif args.command == "stats":
            await show_stats(conn)
        elif args.command == "inspect":
            await inspect_event(store, config, args.event_id)
        elif args.command == "export":
            await export_events(store, args.output, guild_id=args.guild_id)
        elif args.command == "delete":
            if await store.delete(args.event_id):
                logger.info(f"Deleted event {args.event_id}. Restart the bot to drop it from memory.")
            else:
                logger.error(f"Event {args.event_id} not found")
    finally:
        await conn.close()


def main():
    parser = argparse.ArgumentParser(
        description="Event Inspector CLI - Debug and query scheduled events"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # List command
    list_parser = subparsers.add_parser("list", help="List events")
    list_parser.add_argument("--guild-id", type=int, help="Filter by guild ID")
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show full details"
    )

    # Stats command
    subparsers.add_parser("stats", help="Show event statistics")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Inspect a specific event")
    inspect_parser.add_argument("--event-id", type=int, required=True, help="Event ID")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export events to JSON")
    export_parser.add_argument(
        "--output", "-o", required=True, help="Output file path"
    )
    export_parser.add_argument("--guild-id", type=int, help="Filter by guild ID")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a stored event")
    delete_parser.add_argument("--event-id", type=int, required=True, help="Event ID")

    args = parser.parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
