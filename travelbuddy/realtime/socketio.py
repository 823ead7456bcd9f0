"""Socket.IO server shared by notifications and activity chat.

Frontend convention:
- Socket.IO path: /ws/socket.io/ (``SOCKETIO_PATH``)
- Auth: ``query.token`` or ``auth.token`` (JWT access token)

Every connection joins its ``user-<id>`` room on connect. Activity rooms are
entered and left explicitly with ``join-activity`` / ``leave-activity``.
Handlers reply through the Socket.IO ack with ``{"ok": bool, ...}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

import socketio
from asgiref.sync import sync_to_async
from django.conf import settings
from django.contrib.auth import get_user_model
from socketio.exceptions import ConnectionRefusedError as ConnectionRefused

from travelbuddy.activities.models import Activity
from travelbuddy.realtime.broker import get_broker
from travelbuddy.realtime.events.chat import NEW_MESSAGE
from travelbuddy.realtime.events.chat import USER_JOINED
from travelbuddy.realtime.events.chat import USER_LEFT
from travelbuddy.realtime.events.chat import build_message_payload
from travelbuddy.realtime.events.chat import build_presence_payload
from travelbuddy.realtime.rooms import room_for_activity
from travelbuddy.realtime.rooms import room_for_user
from travelbuddy.users.tokens import InvalidTokenError
from travelbuddy.users.tokens import verify_token

logger = logging.getLogger(__name__)


def build_client_manager(message_queue: str | None) -> socketio.AsyncManager | None:
    """Redis pub/sub manager shared with every process that publishes events."""
    if not message_queue:
        return None
    return socketio.AsyncRedisManager(message_queue)


sio = socketio.AsyncServer(
    async_mode="asgi",
    client_manager=build_client_manager(settings.SOCKETIO_MESSAGE_QUEUE),
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


@dataclass(frozen=True)
class SocketUser:
    user_id: int
    name: str


@sync_to_async
def _get_socket_user_from_access_token(token: str) -> SocketUser:
    user_id = verify_token(token)
    user = (
        get_user_model()
        .objects.filter(pk=user_id, is_active=True)
        .only("id", "name", "email")
        .first()
    )
    if user is None:
        msg = "User not found"
        raise InvalidTokenError(msg)
    return SocketUser(user_id=int(user.pk), name=user.name or user.email)


@sync_to_async
def _activity_exists(activity_id: int) -> bool:
    return Activity.objects.filter(pk=activity_id).exists()


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Access token from ``?token=`` on the handshake URL or ``auth.token``."""

    token = parse_qs(environ.get("QUERY_STRING", "")).get("token", [None])[0]
    if not token and isinstance(auth, dict):
        token = auth.get("token")
    return token if isinstance(token, str) and token else None


def _parse_id(data: Any, key: str) -> int | None:
    raw = data.get(key) if isinstance(data, dict) else data
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


async def _session_user(sid: str) -> SocketUser | None:
    session = await sio.get_session(sid)
    if not isinstance(session, dict) or "user_id" not in session:
        return None
    return SocketUser(user_id=int(session["user_id"]), name=session.get("name", ""))


def _error(message: str) -> dict[str, Any]:
    return {"ok": False, "error": message}


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    token = _extract_token(environ, auth)
    if not token:
        msg = "unauthorized"
        raise ConnectionRefused(msg)

    try:
        user = await _get_socket_user_from_access_token(token)
    except InvalidTokenError as exc:
        msg = "jwt_expired" if exc.expired else "unauthorized"
        raise ConnectionRefused(msg) from exc
    except Exception as exc:
        logger.exception("Socket.IO connect error")
        msg = "server_error"
        raise ConnectionRefused(msg) from exc

    await sio.save_session(sid, {"user_id": user.user_id, "name": user.name})
    await get_broker().subscribe(sid, room_for_user(user.user_id))
    logger.info("Socket %s connected as user %s", sid, user.user_id)


@sio.event
async def disconnect(sid: str, reason: Any = None):
    await get_broker().disconnect(sid)
    logger.debug("Socket %s disconnected (%s)", sid, reason)


@sio.on("join-user-room")
async def join_user_room(sid: str, data: Any = None):
    user = await _session_user(sid)
    if user is None:
        return _error("unauthorized")
    requested = _parse_id(data, "userId") if data is not None else user.user_id
    if requested != user.user_id:
        logger.warning(
            "Socket %s (user %s) asked for room of user %s",
            sid,
            user.user_id,
            requested,
        )
        return _error("forbidden")
    await get_broker().subscribe(sid, room_for_user(user.user_id))
    return {"ok": True, "room": room_for_user(user.user_id)}


@sio.on("join-activity")
async def join_activity(sid: str, data: Any = None):
    user = await _session_user(sid)
    if user is None:
        return _error("unauthorized")
    activity_id = _parse_id(data, "activityId")
    if activity_id is None:
        return _error("activityId is required")
    if not await _activity_exists(activity_id):
        return _error("Activity not found")

    room = room_for_activity(activity_id)
    broker = get_broker()
    await broker.subscribe(sid, room)
    await broker.publish(
        room,
        USER_JOINED,
        build_presence_payload(user_id=user.user_id, user_name=user.name, joined=True),
        skip=sid,
    )
    return {"ok": True, "room": room}


@sio.on("leave-activity")
async def leave_activity(sid: str, data: Any = None):
    user = await _session_user(sid)
    if user is None:
        return _error("unauthorized")
    activity_id = _parse_id(data, "activityId")
    if activity_id is None:
        return _error("activityId is required")

    room = room_for_activity(activity_id)
    broker = get_broker()
    await broker.publish(
        room,
        USER_LEFT,
        build_presence_payload(user_id=user.user_id, user_name=user.name, joined=False),
        skip=sid,
    )
    await broker.unsubscribe(sid, room)
    return {"ok": True, "room": room}


@sio.on("send-message")
async def send_message(sid: str, data: Any = None):
    """Relay a chat line to everyone in the activity room, sender included.

    The author always comes from the connection's session, never the payload.
    Persisting the message is the REST endpoint's job.
    """

    user = await _session_user(sid)
    if user is None:
        return _error("unauthorized")
    activity_id = _parse_id(data, "activityId")
    if activity_id is None:
        return _error("activityId is required")
    text = data.get("message") if isinstance(data, dict) else None
    if not isinstance(text, str) or not text.strip():
        return _error("Message is required.")

    timestamp = data.get("timestamp")
    payload = build_message_payload(
        activity_id=activity_id,
        user_id=user.user_id,
        user_name=user.name,
        text=text.strip(),
        timestamp=timestamp if isinstance(timestamp, str) else None,
    )
    await get_broker().publish(room_for_activity(activity_id), NEW_MESSAGE, payload)
    return {"ok": True}
