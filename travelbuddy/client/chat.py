"""Local chat state for one activity.

History comes from REST; live lines come from the socket. The server makes no
dedup promise, so a line that arrives both ways (posted over REST and relayed
over the socket) is folded into one entry when text and author match and the
timestamps are less than a second apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    from .api import TravelBuddyClient

logger = logging.getLogger(__name__)

USER_MESSAGE = "user-message"
SYSTEM = "system"
DEDUP_WINDOW = timedelta(seconds=1)


@dataclass
class TimelineEntry:
    kind: str
    text: str
    user_id: int | None
    user_name: str
    timestamp: datetime
    id: int | None = None


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = datetime.now(UTC)
    else:
        parsed = datetime.now(UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def entry_from_rest(message: dict[str, Any]) -> TimelineEntry:
    return TimelineEntry(
        kind=message.get("type") or USER_MESSAGE,
        text=message.get("message", ""),
        user_id=message.get("user_id"),
        user_name=message.get("user_name", ""),
        timestamp=_parse_timestamp(message.get("timestamp")),
        id=message.get("id"),
    )


def entry_from_socket(payload: dict[str, Any]) -> TimelineEntry:
    return TimelineEntry(
        kind=payload.get("type") or USER_MESSAGE,
        text=payload.get("message", ""),
        user_id=payload.get("userId"),
        user_name=payload.get("userName", ""),
        timestamp=_parse_timestamp(payload.get("timestamp")),
        id=payload.get("id"),
    )


class ChatTimeline:
    def __init__(self, activity_id: int):
        self.activity_id = activity_id
        self.entries: list[TimelineEntry] = []

    def load_history(self, client: TravelBuddyClient) -> list[TimelineEntry]:
        self.entries = [
            entry_from_rest(message) for message in client.chat_history(self.activity_id)
        ]
        self.entries.sort(key=lambda entry: entry.timestamp)
        return self.entries

    def is_duplicate(self, candidate: TimelineEntry) -> bool:
        if candidate.kind != USER_MESSAGE:
            return False
        for entry in reversed(self.entries):
            if candidate.id is not None and entry.id == candidate.id:
                return True
            if (
                entry.kind == USER_MESSAGE
                and entry.text == candidate.text
                and entry.user_id == candidate.user_id
                and abs(entry.timestamp - candidate.timestamp) < DEDUP_WINDOW
            ):
                return True
        return False

    def add(self, entry: TimelineEntry) -> bool:
        """Append unless it duplicates a line already shown."""
        if self.is_duplicate(entry):
            logger.debug("Dropped duplicate chat line from %s", entry.user_id)
            return False
        self.entries.append(entry)
        return True

    def post(self, client: TravelBuddyClient, text: str, socket: Any = None) -> TimelineEntry:
        """Persist over REST, show locally, then relay over the socket."""
        saved = entry_from_rest(client.post_message(self.activity_id, text))
        self.add(saved)
        if socket is not None:
            socket.emit(
                "send-message",
                {
                    "activityId": self.activity_id,
                    "message": saved.text,
                    "timestamp": saved.timestamp.isoformat(),
                },
            )
        return saved

    # socket handlers

    def on_new_message(self, payload: dict[str, Any]) -> bool:
        if payload.get("activityId") not in (None, self.activity_id):
            return False
        return self.add(entry_from_socket(payload))

    def _system_line(self, payload: dict[str, Any], verb: str) -> None:
        name = payload.get("userName", "")
        self.entries.append(
            TimelineEntry(
                kind=SYSTEM,
                text=payload.get("message") or f"{name} {verb} the chat",
                user_id=payload.get("userId"),
                user_name=name,
                timestamp=_parse_timestamp(payload.get("timestamp")),
            )
        )

    def on_user_joined(self, payload: dict[str, Any]) -> None:
        self._system_line(payload, "joined")

    def on_user_left(self, payload: dict[str, Any]) -> None:
        self._system_line(payload, "left")

    def bind(self, socket: Any) -> None:
        """Register the handlers on a Socket.IO-style client (``socket.on``)."""
        socket.on("new-message", self.on_new_message)
        socket.on("user-joined", self.on_user_joined)
        socket.on("user-left", self.on_user_left)

    def join(self, socket: Any) -> None:
        socket.emit("join-activity", {"activityId": self.activity_id})

    def leave(self, socket: Any) -> None:
        socket.emit("leave-activity", {"activityId": self.activity_id})
