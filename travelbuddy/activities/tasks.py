from datetime import timedelta

from celery import shared_task
from django.conf import settings

from travelbuddy.activities.services import send_due_reminders


@shared_task(name="activities.send_activity_reminders")
def send_activity_reminders(window_minutes: int | None = None) -> int:
    """Remind participants of activities that start soon.

    Args:
        window_minutes: Look-ahead window. Defaults to
            ``ACTIVITY_REMINDER_WINDOW_MINUTES``.

    Returns:
        Number of reminder notifications created.
    """
    minutes = window_minutes or settings.ACTIVITY_REMINDER_WINDOW_MINUTES
    return send_due_reminders(window=timedelta(minutes=minutes))
