"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Wed Oct 15 2025
# SPDX-License-Identifier: MIT
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict], None]


def room_for_event(event_id: int) -> str:
    return f"event-{event_id}"


class ChannelEventPublisher:
    """
    In-process publish primitive for channel activity. A transport (for
    example a websocket gateway) subscribes to rooms and forwards events.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, room: str, listener: Listener):
        self._listeners[room].append(listener)

    def unsubscribe(self, room: str, listener: Listener):
        listeners = self._listeners.get(room)
        if listeners and listener in listeners:
            listeners.remove(listener)
            if not listeners:
                del self._listeners[room]

    def publish(self, room: str, event_name: str, data: dict) -> int:
        """
        Delivers to every listener of the room. Listener failures are logged
        and never reach the publisher.
        """
        delivered = 0
        for listener in list(self._listeners.get(room, [])):
            try:
                listener(event_name, data)
                delivered += 1
            except Exception:
                logger.exception("Realtime listener failed for %s on %s", event_name, room)
        logger.debug("Published %s to %s (%s listeners)", event_name, room, delivered)
        return delivered

    def clear(self):
        self._listeners.clear()


publisher = ChannelEventPublisher()
