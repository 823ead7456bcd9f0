from datetime import timedelta

import pytest
from django.utils import timezone

from travelbuddy.activities.models import Activity
from travelbuddy.activities.services import send_due_reminders
from travelbuddy.activities.tasks import send_activity_reminders
from travelbuddy.activities.tests.factories import make_activity
from travelbuddy.notifications.models import Notification
from travelbuddy.users.tests.factories import make_user


def reminders():
    return Notification.objects.filter(
        notification_type=Notification.Type.ACTIVITY_REMINDER
    )


@pytest.mark.django_db
class TestActivityReminders:
    def setup_method(self):
        self.creator = make_user("Creator")
        self.guest = make_user("Guest")
        self.soon = make_activity(
            self.creator, time=timezone.now() + timedelta(minutes=30)
        )
        self.soon.participants.add(self.guest)
        make_activity(self.creator, title="Next week")

    def test_participants_of_upcoming_activity_are_reminded(self):
        sent = send_due_reminders(window=timedelta(hours=1))
        assert sent == 2  # noqa: PLR2004
        assert {n.recipient for n in reminders()} == {self.creator, self.guest}
        assert all(n.activity == self.soon for n in reminders())

    def test_reminders_are_sent_once(self):
        send_due_reminders(window=timedelta(hours=1))
        assert send_due_reminders(window=timedelta(hours=1)) == 0
        assert reminders().count() == 2  # noqa: PLR2004

    def test_past_activities_are_skipped(self):
        Activity.objects.filter(pk=self.soon.pk).update(
            time=timezone.now() - timedelta(minutes=5)
        )
        assert send_due_reminders(window=timedelta(hours=1)) == 0

    def test_task_uses_configured_window(self, settings):
        settings.ACTIVITY_REMINDER_WINDOW_MINUTES = 10
        assert send_activity_reminders.apply().get() == 0
        assert send_activity_reminders.apply(kwargs={"window_minutes": 60}).get() == 2  # noqa: PLR2004
        self.soon.refresh_from_db()
        assert self.soon.reminder_sent_at is not None
