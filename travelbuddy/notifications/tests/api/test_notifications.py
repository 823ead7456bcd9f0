import pytest
from rest_framework.test import APIClient

from travelbuddy.notifications.models import Notification
from travelbuddy.notifications.services import create_notification
from travelbuddy.users.tests.factories import make_user


def notify(recipient, sender=None, **fields):
    data = {
        "notification_type": Notification.Type.NEW_FOLLOWER,
        "title": "New Follower",
        "message": "Someone started following you",
    }
    data.update(fields)
    return create_notification(recipient=recipient, sender=sender, **data)


@pytest.mark.django_db
class TestNotifications:
    def setup_method(self):
        self.client = APIClient()
        self.user = make_user("Alice")
        self.other = make_user("Bob")
        self.client.force_authenticate(user=self.user)

    def unread_count(self):
        return self.client.get("/api/notifications/unread-count/").data["count"]

    def test_list_newest_first_and_scoped(self):
        first = notify(self.user, self.other, title="first")
        second = notify(self.user, self.other, title="second")
        notify(self.other, self.user)

        res = self.client.get("/api/notifications/")
        assert res.status_code == 200
        assert [n["id"] for n in res.data] == [second.pk, first.pk]
        assert res.data[0]["sender"] == {"id": self.other.pk, "name": "Bob"}
        assert res.data[0]["type"] == "new_follower"
        assert res.data[0]["is_read"] is False

    def test_list_capped_at_fifty(self):
        for _ in range(55):
            notify(self.user)
        res = self.client.get("/api/notifications/")
        assert len(res.data) == 50  # noqa: PLR2004

    def test_unread_count_matches_unread_rows(self):
        for _ in range(3):
            notify(self.user)
        notify(self.other)
        assert self.unread_count() == 3  # noqa: PLR2004
        assert self.unread_count() == Notification.objects.filter(
            recipient=self.user, is_read=False
        ).count()

    def test_mark_read(self):
        notification = notify(self.user)
        res = self.client.put(f"/api/notifications/{notification.pk}/read/")
        assert res.status_code == 200
        assert res.data["is_read"] is True
        assert self.unread_count() == 0

    def test_mark_read_is_idempotent(self):
        notification = notify(self.user)
        self.client.put(f"/api/notifications/{notification.pk}/read/")
        res = self.client.put(f"/api/notifications/{notification.pk}/read/")
        assert res.status_code == 200
        assert res.data["is_read"] is True

    def test_cannot_mark_someone_elses(self):
        foreign = notify(self.other)
        res = self.client.put(f"/api/notifications/{foreign.pk}/read/")
        assert res.status_code == 404
        assert res.data["message"] == "Notification not found"
        foreign.refresh_from_db()
        assert foreign.is_read is False

    def test_mark_all_read_only_touches_own(self):
        for _ in range(2):
            notify(self.user)
        foreign = notify(self.other)
        res = self.client.put("/api/notifications/read-all/")
        assert res.status_code == 200
        assert res.data["updated"] == 2  # noqa: PLR2004
        assert self.unread_count() == 0
        foreign.refresh_from_db()
        assert foreign.is_read is False


@pytest.mark.django_db
def test_created_notification_is_pushed_to_recipient_room(
    broker, django_capture_on_commit_callbacks
):
    recipient = make_user("Alice")
    sender = make_user("Bob")
    with django_capture_on_commit_callbacks(execute=True):
        notification = notify(recipient, sender)

    [event] = broker.published
    assert event.room == f"user-{recipient.pk}"
    assert event.event == "new-notification"
    assert event.payload["id"] == notification.pk
    assert event.payload["title"] == "New Follower"
    assert event.payload["activity"] is None


@pytest.mark.django_db
def test_realtime_failure_does_not_undo_notification(
    broker, django_capture_on_commit_callbacks, monkeypatch
):
    async def boom(*args, **kwargs):
        msg = "socket server down"
        raise RuntimeError(msg)

    monkeypatch.setattr(broker, "publish", boom)
    recipient = make_user("Alice")
    with django_capture_on_commit_callbacks(execute=True):
        notify(recipient)
    assert Notification.objects.filter(recipient=recipient).count() == 1
