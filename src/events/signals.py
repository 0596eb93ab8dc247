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

"""Synchronous publish/subscribe channel for scheduler notifications."""

import logging
from typing import Callable

from .models import ScheduledEvent

logger = logging.getLogger("eventbot.events.signals")

Subscriber = Callable[[ScheduledEvent], None]


class Signal:
    """
    Broadcasts events to subscribers in registration order.

    A failing subscriber is logged and skipped; it never stops delivery to
    the others or the caller's loop.
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: list[Subscriber] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, handler: Subscriber) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(self, event: ScheduledEvent) -> int:
        """
        Call every subscriber with the event.

        Returns:
            Number of subscribers that handled it without raising
        """
        delivered = 0
        for handler in list(self._subscribers):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Subscriber {handler!r} failed on {self.name} for event {event.id}: {e}",
                    exc_info=True,
                )
        return delivered
