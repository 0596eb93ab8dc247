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
Scheduled Events Package

Guild event scheduling: the event model and its clock logic, the in-memory
registry, the scheduler loop, persistence and Discord delivery.
"""

from .config import EventConfig
from .delivery import EventNotifier
from .models import ExecutionResult, Repeat, ScheduledEvent, date_ordinal, next_occurrence
from .registry import EventRegistry
from .scheduler import EventScheduler, TickResult
from .service import CommandResult, EventService
from .signals import Signal
from .store import EventStore
from .time_parser import EventTimeError, parse_event_datetime, validate_timezone

__all__ = [
    "EventConfig",
    "EventNotifier",
    "ExecutionResult",
    "Repeat",
    "ScheduledEvent",
    "date_ordinal",
    "next_occurrence",
    "EventRegistry",
    "EventScheduler",
    "TickResult",
    "CommandResult",
    "EventService",
    "Signal",
    "EventStore",
    "EventTimeError",
    "parse_event_datetime",
    "validate_timezone",
]
