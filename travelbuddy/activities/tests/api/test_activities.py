from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from travelbuddy.activities.models import Activity
from travelbuddy.activities.tests.factories import make_activity
from travelbuddy.notifications.models import Notification
from travelbuddy.users.tests.factories import make_user


def participant_ids(activity_id):
    return set(
        Activity.objects.get(pk=activity_id).participants.values_list("pk", flat=True)
    )


@pytest.mark.django_db
class TestCreateAndRead:
    def setup_method(self):
        self.client = APIClient()
        self.creator = make_user("Creator")
        self.client.force_authenticate(user=self.creator)

    def test_create_adds_creator_as_participant(self):
        res = self.client.post(
            "/api/activities/",
            {
                "title": "Tapas night",
                "location": "Lisbon",
                "time": (timezone.now() + timedelta(days=1)).isoformat(),
                "category": "dinner",
                "tags": ["food"],
                "participant_limit": 4,
            },
            format="json",
        )
        assert res.status_code == 201
        assert res.data["creator"] == {"id": self.creator.pk, "name": "Creator"}
        assert [p["id"] for p in res.data["participants"]] == [self.creator.pk]
        assert res.data["participant_count"] == 1
        assert res.data["is_full"] is False

    def test_create_uses_default_limit(self, settings):
        res = self.client.post(
            "/api/activities/",
            {
                "title": "Walk",
                "location": "Porto",
                "time": (timezone.now() + timedelta(days=1)).isoformat(),
                "category": "outdoor",
            },
            format="json",
        )
        assert res.status_code == 201
        assert res.data["participant_limit"] == settings.ACTIVITY_DEFAULT_PARTICIPANT_LIMIT

    def test_create_rejects_bad_category(self):
        res = self.client.post(
            "/api/activities/",
            {
                "title": "Walk",
                "location": "Porto",
                "time": timezone.now().isoformat(),
                "category": "skydiving",
            },
            format="json",
        )
        assert res.status_code == 400
        assert "category" in res.data["errors"]

    def test_create_rejects_unknown_field(self):
        res = self.client.post(
            "/api/activities/",
            {
                "title": "Walk",
                "location": "Porto",
                "time": timezone.now().isoformat(),
                "category": "outdoor",
                "creator": 42,
            },
            format="json",
        )
        assert res.status_code == 400
        assert res.data["errors"] == {"creator": ["Unknown field."]}

    def test_list_filters_by_category(self):
        hike = make_activity(self.creator)
        make_activity(self.creator, title="Dinner", category=Activity.Category.DINNER)
        res = self.client.get("/api/activities/", {"category": "hiking"})
        assert res.status_code == 200
        assert [a["id"] for a in res.data] == [hike.pk]

    def test_retrieve_unknown(self):
        res = self.client.get("/api/activities/999999/")
        assert res.status_code == 404
        assert res.data["message"] == "Activity not found"

    def test_requires_authentication(self):
        res = APIClient().get("/api/activities/")
        assert res.status_code == 401


@pytest.mark.django_db
class TestJoinAndLeave:
    def setup_method(self):
        self.client = APIClient()
        self.creator = make_user("Creator")
        self.joiner = make_user("Joiner")
        self.activity = make_activity(self.creator, participant_limit=2)
        self.client.force_authenticate(user=self.joiner)

    def join(self, activity_id=None):
        return self.client.post(f"/api/activities/{activity_id or self.activity.pk}/join/")

    def leave(self):
        return self.client.post(f"/api/activities/{self.activity.pk}/leave/")

    def test_join_adds_participant_and_notifies_creator(self):
        res = self.join()
        assert res.status_code == 200
        assert res.data["participant_count"] == 2  # noqa: PLR2004
        assert res.data["is_full"] is True
        notification = Notification.objects.get(recipient=self.creator)
        assert notification.notification_type == Notification.Type.ACTIVITY_JOINED
        assert notification.sender == self.joiner
        assert notification.activity == self.activity

    def test_join_twice_keeps_one_membership(self):
        self.join()
        res = self.join()
        assert res.status_code == 400
        assert res.data["message"] == "Already joined this activity"
        assert participant_ids(self.activity.pk) == {self.creator.pk, self.joiner.pk}

    def test_join_full_activity(self):
        solo = make_activity(self.creator, participant_limit=1)
        res = self.join(solo.pk)
        assert res.status_code == 400
        assert res.data["message"] == "Activity is full"
        assert participant_ids(solo.pk) == {self.creator.pk}
        assert not Notification.objects.exists()

    def test_join_unknown_activity(self):
        res = self.join(999_999)
        assert res.status_code == 404

    def test_leave_after_join(self):
        self.join()
        res = self.leave()
        assert res.status_code == 200
        assert participant_ids(self.activity.pk) == {self.creator.pk}
        assert Notification.objects.filter(
            recipient=self.creator, notification_type=Notification.Type.ACTIVITY_LEFT
        ).exists()

    def test_leave_without_joining(self):
        res = self.leave()
        assert res.status_code == 400
        assert res.data["message"] == "Not joined this activity"

    def test_creator_cannot_leave(self):
        self.client.force_authenticate(user=self.creator)
        res = self.leave()
        assert res.status_code == 400
        assert res.data["message"] == "Creator cannot leave activity"
        assert self.creator.pk in participant_ids(self.activity.pk)


@pytest.mark.django_db
class TestCreatorOnlyOperations:
    def setup_method(self):
        self.client = APIClient()
        self.creator = make_user("Creator")
        self.other = make_user("Other")
        self.activity = make_activity(self.creator, participant_limit=5)
        self.activity.participants.add(self.other)
        self.url = f"/api/activities/{self.activity.pk}/"

    def test_update_by_creator_notifies_others(self):
        self.client.force_authenticate(user=self.creator)
        res = self.client.put(self.url, {"title": "Moonrise hike"}, format="json")
        assert res.status_code == 200
        assert res.data["title"] == "Moonrise hike"
        assert res.data["location"] == "Sintra"
        notifications = Notification.objects.filter(
            notification_type=Notification.Type.ACTIVITY_UPDATED
        )
        assert [n.recipient for n in notifications] == [self.other]

    def test_update_time_resets_reminder(self):
        Activity.objects.filter(pk=self.activity.pk).update(reminder_sent_at=timezone.now())
        self.client.force_authenticate(user=self.creator)
        new_time = timezone.now() + timedelta(days=5)
        res = self.client.patch(self.url, {"time": new_time.isoformat()}, format="json")
        assert res.status_code == 200
        self.activity.refresh_from_db()
        assert self.activity.reminder_sent_at is None

    def test_update_by_other_is_forbidden(self):
        self.client.force_authenticate(user=self.other)
        res = self.client.put(self.url, {"title": "Hijacked"}, format="json")
        assert res.status_code == 403
        assert res.data["message"] == "Only the creator can update this activity"
        self.activity.refresh_from_db()
        assert self.activity.title == "Sunset hike"

    def test_limit_cannot_drop_below_participants(self):
        self.client.force_authenticate(user=self.creator)
        res = self.client.put(self.url, {"participant_limit": 1}, format="json")
        assert res.status_code == 400
        assert "participant_limit" in res.data["errors"]
        self.activity.refresh_from_db()
        assert self.activity.participant_limit == 5  # noqa: PLR2004

    def test_update_rejects_category_change(self):
        self.client.force_authenticate(user=self.creator)
        res = self.client.put(self.url, {"category": "dinner"}, format="json")
        assert res.status_code == 400
        assert res.data["errors"] == {"category": ["Unknown field."]}

    def test_delete_by_other_is_forbidden(self):
        self.client.force_authenticate(user=self.other)
        res = self.client.delete(self.url)
        assert res.status_code == 403
        assert Activity.objects.filter(pk=self.activity.pk).exists()

    def test_delete_by_creator(self):
        self.client.force_authenticate(user=self.creator)
        res = self.client.delete(self.url)
        assert res.status_code == 204
        assert not Activity.objects.filter(pk=self.activity.pk).exists()

    def test_remove_participant(self):
        self.client.force_authenticate(user=self.creator)
        res = self.client.post(
            f"{self.url}remove/", {"user_id": self.other.pk}, format="json"
        )
        assert res.status_code == 200
        assert participant_ids(self.activity.pk) == {self.creator.pk}

    def test_remove_requires_creator(self):
        self.client.force_authenticate(user=self.other)
        res = self.client.post(
            f"{self.url}remove/", {"user_id": self.creator.pk}, format="json"
        )
        assert res.status_code == 403
        assert res.data["message"] == "Only the creator can remove participants"

    def test_creator_cannot_remove_self(self):
        self.client.force_authenticate(user=self.creator)
        res = self.client.post(
            f"{self.url}remove/", {"user_id": self.creator.pk}, format="json"
        )
        assert res.status_code == 400
        assert res.data["message"] == "Creator cannot remove themselves"

    def test_remove_non_participant(self):
        stranger = make_user("Stranger")
        self.client.force_authenticate(user=self.creator)
        res = self.client.post(
            f"{self.url}remove/", {"user_id": stranger.pk}, format="json"
        )
        assert res.status_code == 400
        assert res.data["message"] == "User is not a participant"


@pytest.mark.django_db
class TestSearchAndCatalog:
    def setup_method(self):
        self.client = APIClient()
        self.user = make_user("Seeker")
        self.client.force_authenticate(user=self.user)
        now = timezone.now()
        self.later = make_activity(
            self.user,
            title="Fado evening",
            location="Alfama",
            category=Activity.Category.CULTURAL,
            tags=["music"],
            time=now + timedelta(days=10),
        )
        self.soon = make_activity(
            self.user,
            title="Coastal walk",
            location="Cascais",
            category=Activity.Category.OUTDOOR,
            tags=["sea"],
            time=now + timedelta(days=1),
        )

    def search(self, **params):
        return self.client.get("/api/activities/search/", params)

    def test_results_sorted_by_start_time(self):
        res = self.search()
        assert [a["id"] for a in res.data] == [self.soon.pk, self.later.pk]

    def test_q_matches_title_location_and_tags(self):
        assert [a["id"] for a in self.search(q="fado").data] == [self.later.pk]
        assert [a["id"] for a in self.search(q="cascais").data] == [self.soon.pk]
        assert [a["id"] for a in self.search(q="music").data] == [self.later.pk]

    def test_category_all_disables_filter(self):
        assert len(self.search(category="all").data) == 2  # noqa: PLR2004
        assert [a["id"] for a in self.search(category="cultural").data] == [
            self.later.pk
        ]

    def test_date_range(self):
        cutoff = (timezone.now() + timedelta(days=5)).isoformat()
        assert [a["id"] for a in self.search(date_to=cutoff).data] == [self.soon.pk]
        assert [a["id"] for a in self.search(date_from=cutoff).data] == [
            self.later.pk
        ]

    def test_categories_catalog(self):
        res = self.client.get("/api/activities/categories/")
        assert res.status_code == 200
        assert len(res.data) == len(Activity.Category.choices)
        coworking = next(c for c in res.data if c["value"] == "coworking")
        assert coworking["label"] == "Co-working"
        assert coworking["icon"]

    def test_my_activities_partition(self):
        other = make_user("Host")
        joined = make_activity(other, title="Joined one")
        joined.participants.add(self.user)
        make_activity(other, title="Not mine")

        res = self.client.get("/api/activities/my-activities/")
        assert res.status_code == 200
        assert {a["id"] for a in res.data["created"]} == {self.later.pk, self.soon.pk}
        assert [a["id"] for a in res.data["joined"]] == [joined.pk]

    def test_user_activities_partition(self):
        res = self.client.get(f"/api/users/{self.user.pk}/activities/")
        assert res.status_code == 200
        assert len(res.data["created"]) == 2  # noqa: PLR2004
        assert res.data["joined"] == []
