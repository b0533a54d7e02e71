"""Domain event dispatch."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Mapping

logger = logging.getLogger(__name__)

EventPayload = Mapping[str, Any]
EventListener = Callable[[EventPayload], Awaitable[None]]

PLAYER_BANNED = "admin.player.banned"
PLAYER_UNBANNED = "admin.player.unbanned"
PLAYER_DELETED = "admin.player.deleted"
SNAPSHOT_CREATED = "admin.snapshot.created"
SNAPSHOT_RESTORED = "admin.snapshot.restored"
SNAPSHOT_DELETED = "admin.snapshot.deleted"


class EventBus:
    """Async pub-sub; a failing listener is logged and never aborts the publisher."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: EventListener) -> None:
        self._listeners[event_name].append(listener)

    async def publish(self, event_name: str, payload: EventPayload) -> None:
        for listener in list(self._listeners.get(event_name, ())):
            try:
                await listener(payload)
            except Exception:
                logger.exception("Listener %r failed for event '%s'.", listener, event_name)
