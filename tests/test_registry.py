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

"""Tests for the per-guild event registry."""

import sys
import typing
from datetime import datetime
from pathlib import Path

import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from events.models import ScheduledEvent
from events.registry import EventRegistry, group_by_guild

GUILD_A = 111
GUILD_B = 222


def make_event(name, guild_id=GUILD_A, event_id=None):
    return ScheduledEvent(
        name=name,
        date=pytz.UTC.localize(datetime(2099, 1, 1, 9, 0)),
        channel_id=500,
        guild_id=guild_id,
        id=event_id,
    )


class TestAddAndList:
    def test_list_keeps_insertion_order(self):
        registry = EventRegistry()
        first, second, third = make_event("a", event_id=1), make_event("b", event_id=2), make_event("c", event_id=3)
        for event in (first, second, third):
            registry.add(event)

        assert registry.list(GUILD_A) == [first, second, third]
        assert len(registry) == 3

    def test_list_unknown_guild_is_empty(self):
        assert EventRegistry().list(GUILD_A) == []

    def test_list_is_a_snapshot(self):
        registry = EventRegistry()
        event = make_event("a", event_id=1)
        registry.add(event)

        snapshot = registry.list(GUILD_A)
        registry.remove(event)
        registry.add(make_event("b", event_id=2))

        assert snapshot == [event]

    def test_no_dedup_by_content(self):
        registry = EventRegistry()
        registry.add(make_event("same"))
        registry.add(make_event("same"))
        assert len(registry.list(GUILD_A)) == 2


class TestRemove:
    def test_remove_by_identity_not_equality(self):
        registry = EventRegistry()
        original = make_event("twin", event_id=9)
        twin = make_event("twin", event_id=9)
        assert original == twin

        registry.add(original)
        registry.add(twin)
        assert registry.remove(twin) is True

        remaining = registry.list(GUILD_A)
        assert len(remaining) == 1
        assert remaining[0] is original

    def test_remove_missing_event(self):
        registry = EventRegistry()
        registry.add(make_event("a", event_id=1))
        assert registry.remove(make_event("a", event_id=1)) is False
        assert len(registry) == 1

    def test_remove_from_unknown_guild(self):
        assert EventRegistry().remove(make_event("a")) is False


class TestLookupAndUpdate:
    def test_get_by_id(self):
        registry = EventRegistry()
        event = make_event("a", event_id=4)
        registry.add(event)

        assert registry.get_by_id(GUILD_A, 4) is event
        assert registry.get_by_id(GUILD_A, 5) is None

    def test_update_by_id_replaces_in_place(self):
        registry = EventRegistry()
        registry.add(make_event("first", event_id=1))
        registry.add(make_event("old", event_id=2))
        registry.add(make_event("third", event_id=3))

        replacement = make_event("new", event_id=2)
        assert registry.update_by_id(replacement) is True

        names = [e.name for e in registry.list(GUILD_A)]
        assert names == ["first", "new", "third"]
        assert registry.get_by_id(GUILD_A, 2) is replacement

    def test_membership_follows_mutations(self):
        registry = EventRegistry()
        old = make_event("old", event_id=2)
        registry.add(old)
        assert old in registry

        replacement = make_event("new", event_id=2)
        registry.update_by_id(replacement)
        assert replacement in registry
        assert old not in registry

        registry.remove(replacement)
        assert replacement not in registry

        registry.replace_all({GUILD_A: [old]})
        assert old in registry
        assert replacement not in registry

    def test_update_by_id_missing_is_noop(self):
        registry = EventRegistry()
        registry.add(make_event("a", event_id=1))

        assert registry.update_by_id(make_event("b", event_id=99)) is False
        assert [e.name for e in registry.list(GUILD_A)] == ["a"]

    def test_update_ignores_unpersisted_events(self):
        registry = EventRegistry()
        registry.add(make_event("draft"))
        assert registry.update_by_id(make_event("other")) is False


class TestIsolation:
    """Operations on one guild never see or touch another guild's events."""

    def test_list_and_lookup_are_scoped(self):
        registry = EventRegistry()
        event = make_event("a", guild_id=GUILD_A, event_id=1)
        registry.add(event)

        assert registry.list(GUILD_B) == []
        assert registry.get_by_id(GUILD_B, 1) is None

    def test_update_does_not_cross_guilds(self):
        registry = EventRegistry()
        registry.add(make_event("mine", guild_id=GUILD_A, event_id=1))

        intruder = make_event("theirs", guild_id=GUILD_B, event_id=1)
        assert registry.update_by_id(intruder) is False
        assert registry.get_by_id(GUILD_A, 1).name == "mine"

    def test_same_id_in_two_guilds(self):
        registry = EventRegistry()
        a = make_event("a", guild_id=GUILD_A, event_id=1)
        b = make_event("b", guild_id=GUILD_B, event_id=1)
        registry.add(a)
        registry.add(b)

        assert registry.get_by_id(GUILD_A, 1) is a
        assert registry.get_by_id(GUILD_B, 1) is b


class TestBulkLoad:
    def test_replace_all(self):
        registry = EventRegistry()
        registry.add(make_event("stale", event_id=1))

        fresh = make_event("fresh", guild_id=GUILD_B, event_id=2)
        registry.replace_all({GUILD_B: [fresh]})

        assert registry.list(GUILD_A) == []
        assert registry.list(GUILD_B) == [fresh]
        assert registry.guild_ids() == [GUILD_B]

    def test_group_by_guild_and_from_events(self):
        events = [
            make_event("a1", GUILD_A, 1),
            make_event("b1", GUILD_B, 2),
            make_event("a2", GUILD_A, 3),
        ]
        grouped = group_by_guild(events)
        assert [e.name for e in grouped[GUILD_A]] == ["a1", "a2"]
        assert [e.name for e in grouped[GUILD_B]] == ["b1"]

        registry = EventRegistry.from_events(events)
        assert len(registry) == 3
        assert events[1] in registry
        assert make_event("a1", GUILD_A, 1) not in registry


class TestSignatures:
    def test_annotations_use_builtin_list(self):
        # The list() method must not shadow the builtin in other signatures
        assert typing.get_type_hints(EventRegistry.guild_ids)["return"] == list[int]
        hints = typing.get_type_hints(EventRegistry.replace_all)
        assert hints["events_by_guild"] == dict[int, list[ScheduledEvent]]
        assert typing.get_type_hints(EventRegistry.list)["return"] == list[ScheduledEvent]
