import pytest
from rest_framework.test import APIClient

from travelbuddy.notifications.models import Notification
from travelbuddy.users.models import Follow
from travelbuddy.users.tests.factories import make_user


def edge_snapshot(*users):
    return {
        user.pk: (
            sorted(user.followers.values_list("pk", flat=True)),
            sorted(user.following.values_list("pk", flat=True)),
        )
        for user in users
    }


@pytest.mark.django_db
class TestFollowGraph:
    def setup_method(self):
        self.client = APIClient()
        self.alice = make_user("Alice")
        self.bob = make_user("Bob")
        self.client.force_authenticate(user=self.alice)

    def follow(self, user_id):
        return self.client.post(f"/api/users/{user_id}/follow/")

    def unfollow(self, user_id):
        return self.client.post(f"/api/users/{user_id}/unfollow/")

    def test_follow_adds_edge_on_both_sides(self):
        res = self.follow(self.bob.pk)
        assert res.status_code == 200
        assert list(self.bob.followers.all()) == [self.alice]
        assert list(self.alice.following.all()) == [self.bob]

    def test_follow_twice_fails_and_keeps_one_edge(self):
        self.follow(self.bob.pk)
        res = self.follow(self.bob.pk)
        assert res.status_code == 400
        assert res.data["message"] == "Already following this user"
        assert self.bob.followers.count() == 1

    def test_self_follow_fails_without_mutation(self):
        before = edge_snapshot(self.alice)
        res = self.follow(self.alice.pk)
        assert res.status_code == 400
        assert res.data["message"] == "Cannot follow yourself"
        assert edge_snapshot(self.alice) == before
        assert Notification.objects.count() == 0

    def test_self_unfollow_fails(self):
        res = self.unfollow(self.alice.pk)
        assert res.status_code == 400
        assert res.data["message"] == "Cannot unfollow yourself"

    def test_follow_then_unfollow_restores_both_users(self):
        before = edge_snapshot(self.alice, self.bob)
        self.follow(self.bob.pk)
        res = self.unfollow(self.bob.pk)
        assert res.status_code == 200
        assert edge_snapshot(self.alice, self.bob) == before
        assert not Follow.objects.exists()

    def test_unfollow_when_not_following(self):
        res = self.unfollow(self.bob.pk)
        assert res.status_code == 400
        assert res.data["message"] == "Not following this user"

    def test_follow_unknown_user(self):
        res = self.follow(999_999)
        assert res.status_code == 404
        assert res.data["message"] == "User not found"

    @pytest.mark.parametrize("suffix", ["", "followers/", "following/", "activities/"])
    def test_unknown_user_detail_routes(self, suffix):
        res = self.client.get(f"/api/users/999999/{suffix}")
        assert res.status_code == 404
        assert res.data["message"] == "User not found"

    def test_inactive_user_is_not_found(self):
        self.bob.is_active = False
        self.bob.save(update_fields=["is_active"])
        res = self.client.get(f"/api/users/{self.bob.pk}/")
        assert res.status_code == 404
        assert res.data["message"] == "User not found"

    def test_follow_notifies_followee(self):
        self.follow(self.bob.pk)
        notification = Notification.objects.get(recipient=self.bob)
        assert notification.notification_type == Notification.Type.NEW_FOLLOWER
        assert notification.sender == self.alice
        assert notification.message == "Alice started following you"
        assert notification.is_read is False

    def test_follow_pushes_realtime_notification(
        self, broker, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            self.follow(self.bob.pk)
        events = [e for e in broker.published if e.event == "new-notification"]
        assert len(events) == 1
        assert events[0].room == f"user-{self.bob.pk}"
        assert events[0].payload["type"] == "new_follower"
        assert events[0].payload["sender"] == {"id": self.alice.pk, "name": "Alice"}

    def test_followers_and_following_lists(self):
        carol = make_user("Carol")
        self.follow(self.bob.pk)
        self.client.force_authenticate(user=carol)
        self.follow(self.bob.pk)

        res = self.client.get(f"/api/users/{self.bob.pk}/followers/")
        assert res.status_code == 200
        assert {u["id"] for u in res.data} == {self.alice.pk, carol.pk}

        res = self.client.get(f"/api/users/{self.alice.pk}/following/")
        assert [u["id"] for u in res.data] == [self.bob.pk]

    def test_user_detail_reports_is_following(self):
        res = self.client.get(f"/api/users/{self.bob.pk}/")
        assert res.status_code == 200
        assert res.data["is_following"] is False

        self.follow(self.bob.pk)
        res = self.client.get(f"/api/users/{self.bob.pk}/")
        assert res.data["is_following"] is True
        assert res.data["followers_count"] == 1
