from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings

from travelbuddy.chat.models import ChatMessage

if TYPE_CHECKING:  # import for type checking only
    from travelbuddy.activities.models import Activity
    from travelbuddy.users.models import User

logger = logging.getLogger(__name__)


def recent_messages(activity: Activity, *, limit: int | None = None) -> list[ChatMessage]:
    """The latest ``limit`` messages, oldest first."""
    limit = limit or settings.CHAT_HISTORY_LIMIT
    newest_first = ChatMessage.objects.filter(activity=activity).order_by(
        "-timestamp", "-id"
    )[:limit]
    return list(reversed(newest_first))


def post_message(activity: Activity, author: User, text: str) -> ChatMessage:
    message = ChatMessage.objects.create(
        activity=activity,
        author=author,
        author_name=author.name or author.email,
        text=text,
    )
    logger.debug("User %s posted message %s in activity %s", author.pk, message.pk, activity.pk)
    return message
