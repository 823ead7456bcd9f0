"""Room broker: the seam between domain code and the socket transport.

``subscribe(connection_id, room)`` and ``publish(room, event, payload)`` are the
whole contract. Delivery is best effort: no ordering, acknowledgement or replay
beyond what the transport gives for free.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

import socketio
from asgiref.sync import async_to_sync
from asgiref.sync import sync_to_async
from django.apps import apps
from django.conf import settings

from travelbuddy.realtime.rooms import room_for_user

logger = logging.getLogger(__name__)


class RoomBroker:
    """Interface every transport implements. All operations are coroutines."""

    async def subscribe(self, connection_id: str, room: str) -> None:
        raise NotImplementedError

    async def unsubscribe(self, connection_id: str, room: str) -> None:
        raise NotImplementedError

    async def publish(
        self,
        room: str,
        event: str,
        payload: dict[str, Any],
        *,
        skip: str | None = None,
    ) -> None:
        raise NotImplementedError

    async def start(self) -> None:
        """Called once the socket server accepts connections in this process."""

    async def disconnect(self, connection_id: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class SocketIOBroker(RoomBroker):
    """Rooms and broadcast backed by the python-socketio AsyncServer.

    Sockets only live in the ASGI process, which calls ``start()`` once it
    serves. Any other process (celery workers, management commands) reaches
    those sockets through a write-only Redis manager on the message queue the
    server listens to.
    """

    def __init__(
        self,
        server: socketio.AsyncServer | None = None,
        *,
        message_queue: str | None = None,
    ):
        if server is None:
            from travelbuddy.realtime.socketio import sio  # noqa: PLC0415

            server = sio
        if message_queue is None:
            message_queue = settings.SOCKETIO_MESSAGE_QUEUE
        self.server = server
        self.message_queue = message_queue or None
        self.serving = False
        self._emitter: socketio.RedisManager | None = None

    @property
    def emitter(self) -> socketio.RedisManager:
        if self._emitter is None:
            self._emitter = socketio.RedisManager(self.message_queue, write_only=True)
        return self._emitter

    async def start(self) -> None:
        self.serving = True

    async def subscribe(self, connection_id: str, room: str) -> None:
        await self.server.enter_room(connection_id, room)

    async def unsubscribe(self, connection_id: str, room: str) -> None:
        await self.server.leave_room(connection_id, room)

    async def publish(
        self,
        room: str,
        event: str,
        payload: dict[str, Any],
        *,
        skip: str | None = None,
    ) -> None:
        if self.serving or not self.message_queue:
            await self.server.emit(event, payload, room=room, skip_sid=skip)
            return
        await sync_to_async(self.emitter.emit, thread_sensitive=False)(
            event, payload, room=room, skip_sid=skip, namespace="/"
        )

    async def disconnect(self, connection_id: str) -> None:
        # python-socketio drops a disconnected sid from all of its rooms.
        _ = connection_id

    async def close(self) -> None:
        await self.server.shutdown()


@dataclass(frozen=True)
class PublishedEvent:
    room: str
    event: str
    payload: dict[str, Any]
    skip: str | None = None


class InMemoryBroker(RoomBroker):
    """Process-local rooms; every publish is recorded and delivered to inboxes."""

    def __init__(self):
        self.rooms: dict[str, set[str]] = defaultdict(set)
        self.inboxes: dict[str, list[tuple[str, dict[str, Any]]]] = defaultdict(list)
        self.published: list[PublishedEvent] = []

    async def subscribe(self, connection_id: str, room: str) -> None:
        self.rooms[room].add(connection_id)

    async def unsubscribe(self, connection_id: str, room: str) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            self.rooms.pop(room, None)

    async def publish(
        self,
        room: str,
        event: str,
        payload: dict[str, Any],
        *,
        skip: str | None = None,
    ) -> None:
        self.published.append(PublishedEvent(room, event, payload, skip))
        for connection_id in sorted(self.rooms.get(room, ())):
            if connection_id != skip:
                self.inboxes[connection_id].append((event, payload))

    async def disconnect(self, connection_id: str) -> None:
        for room in list(self.rooms):
            await self.unsubscribe(connection_id, room)

    async def close(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.rooms.clear()
        self.inboxes.clear()
        self.published.clear()

    def members(self, room: str) -> set[str]:
        return set(self.rooms.get(room, ()))


def get_broker() -> RoomBroker:
    return apps.get_app_config("realtime").broker


def publish_to_room(room: str, event: str, payload: dict[str, Any]) -> None:
    """Publish from sync Django code (views, signals, celery tasks)."""

    try:
        async_to_sync(get_broker().publish)(room, event, payload)
    except Exception:
        # Realtime delivery is best effort; REST remains the source of truth.
        logger.exception("Realtime publish of %s to %s failed", event, room)


def publish_to_user(user_id: int, event: str, payload: dict[str, Any]) -> None:
    publish_to_room(room_for_user(user_id), event, payload)
