"""Activity lifecycle: create, join/leave, participant removal, edits, delete.

Every mutation that also notifies somebody runs in one transaction, so the
participant change and its Notification rows are committed (or dropped)
together. Joins lock the activity row to keep the participant limit honest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from django.db import transaction
from django.db.models import Count
from django.db.models import QuerySet
from django.utils import timezone
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import PermissionDenied
from rest_framework.exceptions import ValidationError

from travelbuddy.activities.models import Activity
from travelbuddy.core.exceptions import Conflict
from travelbuddy.notifications.models import Notification
from travelbuddy.notifications.services import create_notification
from travelbuddy.notifications.services import notify_many

if TYPE_CHECKING:  # import for type checking only
    from datetime import timedelta

    from travelbuddy.users.models import User

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "location", "time", "participant_limit")


@dataclass(frozen=True)
class ActivityPartition:
    created: list[Activity]
    joined: list[Activity]


def activity_queryset() -> QuerySet[Activity]:
    return (
        Activity.objects.select_related("creator")
        .prefetch_related("participants")
        .annotate(participant_count=Count("participants", distinct=True))
    )


def get_activity(activity_id: int) -> Activity:
    try:
        return activity_queryset().get(pk=activity_id)
    except Activity.DoesNotExist as exc:
        msg = "Activity not found"
        raise NotFound(msg) from exc


def _lock_activity(activity_id: int) -> Activity:
    try:
        return (
            Activity.objects.select_for_update()
            .select_related("creator")
            .get(pk=activity_id)
        )
    except Activity.DoesNotExist as exc:
        msg = "Activity not found"
        raise NotFound(msg) from exc


def _display_name(user: User) -> str:
    return user.name or user.email


@transaction.atomic
def create_activity(creator: User, **data: Any) -> Activity:
    """Create an activity with its creator as the first participant."""
    activity = Activity.objects.create(creator=creator, **data)
    activity.participants.add(creator)
    logger.info("User %s created activity %s", creator.pk, activity.pk)
    return get_activity(activity.pk)


def join_activity(actor: User, activity_id: int) -> Activity:
    with transaction.atomic():
        activity = _lock_activity(activity_id)
        if activity.participants.filter(pk=actor.pk).exists():
            msg = "Already joined this activity"
            raise Conflict(msg)
        if activity.participants.count() >= activity.participant_limit:
            msg = "Activity is full"
            raise Conflict(msg)

        activity.participants.add(actor)
        if not activity.is_creator(actor):
            create_notification(
                recipient=activity.creator,
                sender=actor,
                activity=activity,
                notification_type=Notification.Type.ACTIVITY_JOINED,
                title="New Participant",
                message=f"{_display_name(actor)} joined {activity.title}",
            )

    logger.info("User %s joined activity %s", actor.pk, activity_id)
    return get_activity(activity_id)


def leave_activity(actor: User, activity_id: int) -> Activity:
    with transaction.atomic():
        activity = _lock_activity(activity_id)
        if not activity.participants.filter(pk=actor.pk).exists():
            msg = "Not joined this activity"
            raise Conflict(msg)
        if activity.is_creator(actor):
            msg = "Creator cannot leave activity"
            raise Conflict(msg)

        activity.participants.remove(actor)
        create_notification(
            recipient=activity.creator,
            sender=actor,
            activity=activity,
            notification_type=Notification.Type.ACTIVITY_LEFT,
            title="Participant Left",
            message=f"{_display_name(actor)} left {activity.title}",
        )

    logger.info("User %s left activity %s", actor.pk, activity_id)
    return get_activity(activity_id)


def remove_participant(actor: User, activity_id: int, user_id: int) -> Activity:
    """Creator-only removal of another participant."""
    with transaction.atomic():
        activity = _lock_activity(activity_id)
        if not activity.is_creator(actor):
            msg = "Only the creator can remove participants"
            raise PermissionDenied(msg)
        if activity.creator_id == user_id:
            msg = "Creator cannot remove themselves"
            raise Conflict(msg)
        participant = activity.participants.filter(pk=user_id).first()
        if participant is None:
            msg = "User is not a participant"
            raise Conflict(msg)
        activity.participants.remove(participant)

    logger.info(
        "User %s removed user %s from activity %s", actor.pk, user_id, activity_id
    )
    return get_activity(activity_id)


def update_activity(actor: User, activity_id: int, changes: dict[str, Any]) -> Activity:
    """Patch the editable fields and notify every other participant."""
    with transaction.atomic():
        activity = _lock_activity(activity_id)
        if not activity.is_creator(actor):
            msg = "Only the creator can update this activity"
            raise PermissionDenied(msg)

        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        new_limit = changes.get("participant_limit")
        if new_limit is not None:
            current = activity.participants.count()
            if new_limit < current:
                raise ValidationError(
                    {
                        "participant_limit": [
                            f"Cannot be lower than the current {current} participants."
                        ]
                    }
                )

        for field, value in changes.items():
            setattr(activity, field, value)
        if changes:
            update_fields = [*changes, "updated_at"]
            if "time" in changes:
                # A new start time earns a fresh reminder
                activity.reminder_sent_at = None
                update_fields.append("reminder_sent_at")
            activity.save(update_fields=update_fields)
            notify_many(
                activity.participants.exclude(pk=actor.pk),
                sender=actor,
                activity=activity,
                notification_type=Notification.Type.ACTIVITY_UPDATED,
                title="Activity Updated",
                message=f"{activity.title} has been updated",
            )

    logger.info("User %s updated activity %s (%s)", actor.pk, activity_id, sorted(changes))
    return get_activity(activity_id)


def delete_activity(actor: User, activity_id: int) -> None:
    with transaction.atomic():
        activity = _lock_activity(activity_id)
        if not activity.is_creator(actor):
            msg = "Only the creator can delete this activity"
            raise PermissionDenied(msg)
        activity.delete()
    logger.info("User %s deleted activity %s", actor.pk, activity_id)


def partition_activities(user: User) -> ActivityPartition:
    """Split a user's activities into the ones they created and the ones they joined."""
    created = list(activity_queryset().filter(creator=user))
    joined = list(
        activity_queryset().filter(participants=user).exclude(creator=user)
    )
    return ActivityPartition(created=created, joined=joined)


def send_due_reminders(*, window: timedelta, now=None) -> int:
    """Notify participants of activities starting within ``window``.

    Each activity is reminded once; returns the number of notifications created.
    """
    now = now or timezone.now()
    due = Activity.objects.filter(
        time__gt=now,
        time__lte=now + window,
        reminder_sent_at__isnull=True,
    ).values_list("pk", flat=True)

    sent = 0
    for activity_id in list(due):
        with transaction.atomic():
            activity = (
                Activity.objects.select_for_update()
                .filter(pk=activity_id, reminder_sent_at__isnull=True)
                .first()
            )
            if activity is None:
                continue
            created = notify_many(
                activity.participants.all(),
                activity=activity,
                notification_type=Notification.Type.ACTIVITY_REMINDER,
                title="Activity Reminder",
                message=f"{activity.title} starts at {activity.time:%H:%M} in {activity.location}",
            )
            activity.reminder_sent_at = now
            activity.save(update_fields=["reminder_sent_at"])
            sent += len(created)
    if sent:
        logger.info("Sent %s activity reminders", sent)
    return sent
