from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from travelbuddy.realtime.broker import publish_to_user

if TYPE_CHECKING:  # import for type checking only
    from travelbuddy.notifications.models import Notification

NEW_NOTIFICATION = "new-notification"


def build_notification_payload(notification: Notification) -> dict[str, Any]:
    sender = notification.sender
    activity = notification.activity
    return {
        "id": notification.id,
        "type": notification.notification_type,
        "title": notification.title,
        "message": notification.message,
        "sender": {"id": sender.id, "name": sender.name} if sender else None,
        "activity": {"id": activity.id, "title": activity.title} if activity else None,
        "createdAt": notification.created_at.isoformat(),
    }


def publish_notification_created(notification: Notification) -> None:
    """Push a freshly stored notification to the recipient's personal room."""

    payload = build_notification_payload(notification)
    publish_to_user(notification.recipient_id, NEW_NOTIFICATION, payload)
