from __future__ import annotations

from typing import TYPE_CHECKING

from travelbuddy.notifications.models import Notification

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterable

    from travelbuddy.activities.models import Activity
    from travelbuddy.users.models import User


def create_notification(  # noqa: PLR0913
    *,
    recipient: User,
    notification_type: str,
    title: str,
    message: str,
    sender: User | None = None,
    activity: Activity | None = None,
) -> Notification:
    """Persist one Notification; the post_save signal pushes it in realtime."""

    return Notification.objects.create(
        recipient=recipient,
        sender=sender,
        activity=activity,
        notification_type=notification_type,
        title=title,
        message=message,
    )


def notify_many(  # noqa: PLR0913
    recipients: Iterable[User],
    *,
    notification_type: str,
    title: str,
    message: str,
    sender: User | None = None,
    activity: Activity | None = None,
) -> list[Notification]:
    # One save() per row (not bulk_create) so post_save fires for each.
    return [
        create_notification(
            recipient=recipient,
            sender=sender,
            activity=activity,
            notification_type=notification_type,
            title=title,
            message=message,
        )
        for recipient in recipients
    ]


def unread_count(user: User) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).count()


def mark_all_read(user: User) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).update(
        is_read=True
    )
