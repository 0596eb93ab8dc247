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
Event Registry

In-memory collection of scheduled events, partitioned by guild.
Every operation is scoped to a single guild; events never leak across guilds.
"""

import logging
from typing import Iterable, Optional

from .models import ScheduledEvent

logger = logging.getLogger("eventbot.events.registry")


def group_by_guild(events: Iterable[ScheduledEvent]) -> dict[int, list[ScheduledEvent]]:
    """Group a flat sequence of events by guild, keeping their order."""
    grouped: dict[int, list[ScheduledEvent]] = {}
    for event in events:
        grouped.setdefault(event.guild_id, []).append(event)
    return grouped


class EventRegistry:
    """
    Maps guild IDs to their scheduled events, in insertion order.

    Readers get snapshot lists, so callers may iterate while the registry
    is being mutated.
    """

    def __init__(self):
        self._events: dict[int, list[ScheduledEvent]] = {}
        # id() of every registered event, for constant-time membership
        self._members: set[int] = set()

    @classmethod
    def from_events(cls, events: Iterable[ScheduledEvent]) -> "EventRegistry":
        """Build a registry from a flat sequence, grouping by guild."""
        registry = cls()
        registry.replace_all(group_by_guild(events))
        return registry

    def __len__(self) -> int:
        return sum(len(events) for events in self._events.values())

    def __contains__(self, event: ScheduledEvent) -> bool:
        return id(event) in self._members

    def add(self, event: ScheduledEvent) -> None:
        """Append an event to its guild's collection."""
        self._events.setdefault(event.guild_id, []).append(event)
        self._members.add(id(event))

    def remove(self, event: ScheduledEvent) -> bool:
        """
        Remove an event by identity.

        Returns:
            True if the event was present
        """
        events = self._events.get(event.guild_id)
        if not events:
            return False

        remaining = [e for e in events if e is not event]
        if len(remaining) == len(events):
            return False

        self._events[event.guild_id] = remaining
        self._members.discard(id(event))
        return True

    def update_by_id(self, event: ScheduledEvent) -> bool:
        """
        Replace the event with the same ID in the event's guild.

        Returns:
            True if replaced, False if no event with that ID exists there
        """
        events = self._events.get(event.guild_id, [])
        for index, existing in enumerate(events):
            if existing.id is not None and existing.id == event.id:
                events[index] = event
                if not any(e is existing for e in events):
                    self._members.discard(id(existing))
                self._members.add(id(event))
                return True

        logger.debug(f"No event {event.id} in guild {event.guild_id} to update")
        return False

    def get_by_id(self, guild_id: int, event_id: int) -> Optional[ScheduledEvent]:
        """Find an event by ID within a guild."""
        for event in self._events.get(guild_id, ()):
            if event.id == event_id:
                return event
        return None

    def guild_ids(self) -> list[int]:
        """Snapshot of the guilds that have (or had) events."""
        return list(self._events)

    def replace_all(self, events_by_guild: dict[int, list[ScheduledEvent]]) -> None:
        """Replace the entire registry contents."""
        self._events = {
            guild_id: list(events) for guild_id, events in events_by_guild.items()
        }
        self._members = {
            id(event) for events in self._events.values() for event in events
        }
        logger.info(
            f"Loaded {len(self)} event(s) across {len(self._events)} guild(s)"
        )

    # Kept last: inside the class body this name shadows the builtin `list`
    # used by the annotations above
    def list(self, guild_id: int) -> list[ScheduledEvent]:
        """Snapshot of a guild's events in insertion order."""
        return list(self._events.get(guild_id, ()))
