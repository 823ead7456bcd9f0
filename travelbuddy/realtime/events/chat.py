"""Payloads for the activity chat rooms.

The ``type`` key mirrors the kinds a chat timeline renders: ``user-message`` for
something a participant typed, ``system`` for presence lines.
"""

from __future__ import annotations

from typing import Any

from django.utils import timezone

NEW_MESSAGE = "new-message"
USER_JOINED = "user-joined"
USER_LEFT = "user-left"


def build_message_payload(
    *,
    activity_id: int,
    user_id: int,
    user_name: str,
    text: str,
    timestamp: str | None = None,
    message_id: int | None = None,
) -> dict[str, Any]:
    payload = {
        "activityId": activity_id,
        "userId": user_id,
        "userName": user_name,
        "message": text,
        "timestamp": timestamp or timezone.now().isoformat(),
        "type": "user-message",
    }
    if message_id is not None:
        payload["id"] = message_id
    return payload


def build_presence_payload(*, user_id: int, user_name: str, joined: bool) -> dict[str, Any]:
    verb = "joined" if joined else "left"
    return {
        "userId": user_id,
        "userName": user_name,
        "message": f"{user_name} {verb} the chat",
        "timestamp": timezone.now().isoformat(),
        "type": "system",
    }
