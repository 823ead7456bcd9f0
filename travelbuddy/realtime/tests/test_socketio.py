from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from rest_framework_simplejwt.tokens import AccessToken
from socketio.exceptions import ConnectionRefusedError as ConnectionRefused

from travelbuddy.activities.tests.factories import make_activity
from travelbuddy.realtime import socketio as handlers
from travelbuddy.users.tests.factories import make_user
from travelbuddy.users.tokens import issue_token


@pytest.fixture
def sessions(monkeypatch):
    store = {}

    async def get_session(sid, namespace=None):
        return store.get(sid, {})

    async def save_session(sid, session, namespace=None):
        store[sid] = session

    monkeypatch.setattr(handlers.sio, "get_session", get_session)
    monkeypatch.setattr(handlers.sio, "save_session", save_session)
    return store


def connect(sid, token=None, *, auth=None):
    environ = {"QUERY_STRING": f"token={token}" if token else ""}
    return async_to_sync(handlers.connect)(sid, environ, auth)


def emit(handler, sid, data=None):
    return async_to_sync(handler)(sid, data)


@pytest.mark.parametrize(
    ("environ", "auth", "expected"),
    [
        ({"QUERY_STRING": "EIO=4&token=abc"}, None, "abc"),
        ({"QUERY_STRING": "token=abc"}, {"token": "xyz"}, "abc"),
        ({"QUERY_STRING": "EIO=4"}, {"token": "xyz"}, "xyz"),
        ({}, {"token": 42}, None),
        ({"QUERY_STRING": "token="}, "xyz", None),
    ],
)
def test_extract_token(environ, auth, expected):
    assert handlers._extract_token(environ, auth) == expected  # noqa: SLF001


@pytest.mark.django_db
class TestConnect:
    def test_token_in_query_joins_personal_room(self, sessions, broker):
        user = make_user("Alice")
        connect("sid-1", issue_token(user))
        assert sessions["sid-1"] == {"user_id": user.pk, "name": "Alice"}
        assert broker.members(f"user-{user.pk}") == {"sid-1"}

    def test_token_in_auth_payload(self, sessions, broker):
        user = make_user("Alice")
        connect("sid-1", auth={"token": issue_token(user)})
        assert broker.members(f"user-{user.pk}") == {"sid-1"}

    def test_missing_token_refused(self, sessions):
        with pytest.raises(ConnectionRefused, match="unauthorized"):
            connect("sid-1")

    def test_garbage_token_refused(self, sessions):
        with pytest.raises(ConnectionRefused, match="unauthorized"):
            connect("sid-1", "not-a-jwt")

    def test_expired_token_refused(self, sessions):
        token = AccessToken.for_user(make_user("Alice"))
        token.set_exp(lifetime=-timedelta(minutes=1))
        with pytest.raises(ConnectionRefused, match="jwt_expired"):
            connect("sid-1", str(token))

    def test_inactive_user_refused(self, sessions):
        user = make_user("Alice", is_active=False)
        with pytest.raises(ConnectionRefused, match="unauthorized"):
            connect("sid-1", issue_token(user))

    def test_disconnect_leaves_every_room(self, sessions, broker):
        user = make_user("Alice")
        connect("sid-1", issue_token(user))
        async_to_sync(handlers.disconnect)("sid-1")
        assert broker.members(f"user-{user.pk}") == set()


@pytest.mark.django_db
class TestActivityRooms:
    def setup_method(self):
        self.alice = make_user("Alice")
        self.bob = make_user("Bob")
        self.activity = make_activity(self.alice)
        self.room = f"activity-{self.activity.pk}"

    def connect_both(self):
        connect("alice-sid", issue_token(self.alice))
        connect("bob-sid", issue_token(self.bob))

    def test_join_announces_to_others_only(self, sessions, broker):
        self.connect_both()
        emit(handlers.join_activity, "alice-sid", {"activityId": self.activity.pk})
        ack = emit(handlers.join_activity, "bob-sid", {"activityId": self.activity.pk})

        assert ack == {"ok": True, "room": self.room}
        assert broker.members(self.room) == {"alice-sid", "bob-sid"}
        [(event, payload)] = broker.inboxes["alice-sid"]
        assert event == "user-joined"
        assert payload["userId"] == self.bob.pk
        assert payload["message"] == "Bob joined the chat"
        assert payload["type"] == "system"
        assert "bob-sid" not in broker.inboxes

    def test_join_unknown_activity(self, sessions, broker):
        self.connect_both()
        ack = emit(handlers.join_activity, "alice-sid", {"activityId": 999_999})
        assert ack == {"ok": False, "error": "Activity not found"}
        assert broker.members("activity-999999") == set()

    def test_join_requires_activity_id(self, sessions):
        self.connect_both()
        ack = emit(handlers.join_activity, "alice-sid", {})
        assert ack == {"ok": False, "error": "activityId is required"}

    def test_leave_announces_and_unsubscribes(self, sessions, broker):
        self.connect_both()
        emit(handlers.join_activity, "alice-sid", {"activityId": self.activity.pk})
        emit(handlers.join_activity, "bob-sid", {"activityId": self.activity.pk})
        broker.inboxes.clear()

        emit(handlers.leave_activity, "bob-sid", {"activityId": self.activity.pk})

        assert broker.members(self.room) == {"alice-sid"}
        [(event, payload)] = broker.inboxes["alice-sid"]
        assert event == "user-left"
        assert payload["message"] == "Bob left the chat"

    def test_message_goes_to_whole_room_with_session_author(self, sessions, broker):
        self.connect_both()
        emit(handlers.join_activity, "alice-sid", {"activityId": self.activity.pk})
        emit(handlers.join_activity, "bob-sid", {"activityId": self.activity.pk})
        broker.inboxes.clear()

        ack = emit(
            handlers.send_message,
            "bob-sid",
            {
                "activityId": self.activity.pk,
                "message": "  hello  ",
                "userId": self.alice.pk,
                "userName": "Mallory",
            },
        )

        assert ack == {"ok": True}
        for sid in ("alice-sid", "bob-sid"):
            [(event, payload)] = broker.inboxes[sid]
            assert event == "new-message"
            assert payload["userId"] == self.bob.pk
            assert payload["userName"] == "Bob"
            assert payload["message"] == "hello"
            assert payload["activityId"] == self.activity.pk

    def test_empty_message_rejected(self, sessions, broker):
        self.connect_both()
        ack = emit(
            handlers.send_message,
            "bob-sid",
            {"activityId": self.activity.pk, "message": "   "},
        )
        assert ack == {"ok": False, "error": "Message is required."}
        assert broker.published == []

    def test_unauthenticated_socket_rejected(self, sessions):
        ack = emit(handlers.send_message, "ghost", {"activityId": 1, "message": "x"})
        assert ack == {"ok": False, "error": "unauthorized"}


@pytest.mark.django_db
class TestUserRoom:
    def test_only_own_room(self, sessions, broker):
        alice = make_user("Alice")
        bob = make_user("Bob")
        connect("alice-sid", issue_token(alice))

        ack = emit(handlers.join_user_room, "alice-sid", {"userId": bob.pk})
        assert ack == {"ok": False, "error": "forbidden"}
        assert "alice-sid" not in broker.members(f"user-{bob.pk}")

        ack = emit(handlers.join_user_room, "alice-sid", {"userId": alice.pk})
        assert ack == {"ok": True, "room": f"user-{alice.pk}"}
