import pytest
from rest_framework.test import APIClient

from travelbuddy.users.models import Follow
from travelbuddy.users.tests.factories import make_user

LISBON = {"longitude": -9.1393, "latitude": 38.7223}
# roughly 1.1 km east of LISBON
BAIXA = {"longitude": -9.1267, "latitude": 38.7223}
PORTO = {"longitude": -8.6291, "latitude": 41.1579}


@pytest.mark.django_db
class TestNearby:
    def setup_method(self):
        self.client = APIClient()
        self.me = make_user("Me", **LISBON)
        self.client.force_authenticate(user=self.me)

    def nearby(self, **params):
        return self.client.get("/api/users/nearby/", params)

    def test_requires_origin(self):
        res = self.nearby(lng=-9.1)
        assert res.status_code == 400
        assert res.data["message"] == "Longitude and latitude are required."

    def test_sorted_by_distance_within_radius(self):
        close = make_user("Close", **BAIXA)
        closer = make_user("Closer", longitude=-9.1380, latitude=38.7223)
        make_user("Far", **PORTO)

        res = self.nearby(lng=LISBON["longitude"], lat=LISBON["latitude"])
        assert res.status_code == 200
        assert [u["id"] for u in res.data] == [closer.pk, close.pk]
        distances = [u["distance"] for u in res.data]
        assert distances == sorted(distances)
        assert all(d <= 5000 for d in distances)  # noqa: PLR2004

    def test_radius_parameter(self):
        make_user("Close", **BAIXA)
        res = self.nearby(lng=LISBON["longitude"], lat=LISBON["latitude"], radius=500)
        assert res.data == []

    def test_users_at_default_origin_are_skipped(self):
        make_user("Nowhere")
        res = self.nearby(lng=0, lat=0, radius=1000)
        assert res.status_code == 200
        assert res.data == []

    def test_excludes_caller(self):
        res = self.nearby(lng=LISBON["longitude"], lat=LISBON["latitude"])
        assert self.me.pk not in [u["id"] for u in res.data]

    def test_full_scan_near_antimeridian(self):
        across = make_user("Across", longitude=-179.995, latitude=0.0)
        res = self.nearby(lng=179.995, lat=0.0, radius=5000)
        assert [u["id"] for u in res.data] == [across.pk]


@pytest.mark.django_db
class TestSearch:
    def setup_method(self):
        self.client = APIClient()
        self.me = make_user("Searcher", bio="hiking fan", interests=["hiking"])
        self.client.force_authenticate(user=self.me)
        self.ana = make_user(
            "Ana", bio="Loves hiking", location="Lisbon, Portugal", interests=["hiking", "food"]
        )
        self.ben = make_user(
            "Ben", bio="Coffee addict", location="Porto", interests=["coffee"]
        )

    def search(self, **params):
        return self.client.get("/api/users/search/", params)

    def test_q_matches_name_or_bio_case_insensitively(self):
        assert [u["id"] for u in self.search(q="ANA").data] == [self.ana.pk]
        assert [u["id"] for u in self.search(q="coffee").data] == [self.ben.pk]

    def test_location_substring(self):
        assert [u["id"] for u in self.search(location="lisbon").data] == [self.ana.pk]

    def test_interests_any_overlap(self):
        ids = {u["id"] for u in self.search(interests="coffee,food").data}
        assert ids == {self.ana.pk, self.ben.pk}

    def test_filters_are_anded(self):
        assert self.search(q="hiking", location="Porto").data == []

    def test_excludes_caller(self):
        ids = [u["id"] for u in self.search(q="hiking").data]
        assert self.me.pk not in ids
        assert ids == [self.ana.pk]

    def test_capped_at_twenty(self):
        for i in range(25):
            make_user(f"Extra{i}", bio="bulk")
        assert len(self.search(q="bulk").data) == 20  # noqa: PLR2004


@pytest.mark.django_db
class TestRecommendations:
    def setup_method(self):
        self.client = APIClient()
        self.me = make_user("Me", interests=["hiking", "food"])
        self.client.force_authenticate(user=self.me)

    def test_shared_interest_public_not_followed(self):
        match = make_user("Match", interests=["food"])
        make_user("Private", interests=["hiking"], is_public=False)
        make_user("Unrelated", interests=["chess"])
        followed = make_user("Followed", interests=["hiking"])
        Follow.objects.create(follower=self.me, followee=followed)

        res = self.client.get("/api/users/recommendations/")
        assert res.status_code == 200
        assert [u["id"] for u in res.data] == [match.pk]

    def test_capped_at_ten(self):
        for i in range(12):
            make_user(f"Hiker{i}", interests=["hiking"])
        res = self.client.get("/api/users/recommendations/")
        assert len(res.data) == 10  # noqa: PLR2004

    def test_no_interests_no_recommendations(self):
        self.me.interests = []
        self.me.save()
        make_user("Hiker", interests=["hiking"])
        assert self.client.get("/api/users/recommendations/").data == []


@pytest.mark.django_db
def test_last_active_is_bumped():
    client = APIClient()
    user = make_user("Alice")
    before = user.last_active
    client.force_authenticate(user=user)
    res = client.put("/api/users/last-active/")
    assert res.status_code == 200
    user.refresh_from_db()
    assert user.last_active >= before
