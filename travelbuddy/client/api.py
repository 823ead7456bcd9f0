from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """Non-2xx answer (or no answer at all, status 0) from the API."""

    def __init__(self, status: int, message: str, payload: Any = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload


class TokenStore:
    """Where the bearer token lives between calls."""

    def get(self) -> str | None:
        raise NotImplementedError

    def set(self, token: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryTokenStore(TokenStore):
    def __init__(self, token: str | None = None):
        self._token = token

    def get(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class TravelBuddyClient:
    """Minimal JSON client for the REST API using urllib; no external deps.

    Any 401 drops the stored token so the caller falls back to logging in.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token_store: TokenStore | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.tokens = token_store or MemoryTokenStore()
        self.timeout = timeout

    # transport

    def _url(self, path: str, query: dict[str, Any] | None) -> str:
        url = f"{self.base_url}/api/{path.lstrip('/')}"
        if query:
            clean = {k: v for k, v in query.items() if v is not None and v != ""}
            if clean:
                url = f"{url}?{urllib.parse.urlencode(clean)}"
        return url

    def request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        token = self.tokens.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        req = urllib.request.Request(  # noqa: S310 - base URL by config
            self._url(path, query),
            data=data,
            headers=headers,
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310 - base URL by config
                raw = resp.read()
        except urllib.error.HTTPError as e:
            payload = _decode(e.read())
            if e.code == 401:  # noqa: PLR2004
                self.tokens.clear()
            message = (
                payload.get("message") if isinstance(payload, dict) else None
            ) or e.reason or "Request failed"
            logger.debug("%s %s -> %s %s", method, path, e.code, message)
            raise ApiError(e.code, str(message), payload) from e
        except (urllib.error.URLError, TimeoutError) as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(0, f"Network error: {e}") from e
        return _decode(raw)

    # auth

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        result = self.request(
            "POST", "register/", body={"name": name, "email": email, "password": password}
        )
        self.tokens.set(result["token"])
        return result

    def login(self, email: str, password: str) -> dict[str, Any]:
        result = self.request("POST", "login/", body={"email": email, "password": password})
        self.tokens.set(result["token"])
        return result

    def logout(self) -> None:
        self.tokens.clear()

    # profile and users

    def get_profile(self) -> dict[str, Any]:
        return self.request("GET", "profile/")

    def update_profile(self, **changes: Any) -> dict[str, Any]:
        return self.request("PUT", "profile/", body=changes)

    def search_users(
        self,
        q: str | None = None,
        *,
        location: str | None = None,
        interests: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        query = {
            "q": q,
            "location": location,
            "interests": ",".join(interests) if interests else None,
        }
        return self.request("GET", "users/search/", query=query)

    def nearby_users(
        self, lng: float, lat: float, radius: float | None = None
    ) -> list[dict[str, Any]]:
        return self.request(
            "GET", "users/nearby/", query={"lng": lng, "lat": lat, "radius": radius}
        )

    def recommendations(self) -> list[dict[str, Any]]:
        return self.request("GET", "users/recommendations/")

    def touch_last_active(self) -> dict[str, Any]:
        return self.request("PUT", "users/last-active/")

    def get_user(self, user_id: int) -> dict[str, Any]:
        return self.request("GET", f"users/{user_id}/")

    def follow(self, user_id: int) -> dict[str, Any]:
        return self.request("POST", f"users/{user_id}/follow/")

    def unfollow(self, user_id: int) -> dict[str, Any]:
        return self.request("POST", f"users/{user_id}/unfollow/")

    def followers(self, user_id: int) -> list[dict[str, Any]]:
        return self.request("GET", f"users/{user_id}/followers/")

    def following(self, user_id: int) -> list[dict[str, Any]]:
        return self.request("GET", f"users/{user_id}/following/")

    def user_activities(self, user_id: int) -> dict[str, Any]:
        return self.request("GET", f"users/{user_id}/activities/")

    # activities

    def list_activities(self, category: str | None = None) -> list[dict[str, Any]]:
        return self.request("GET", "activities/", query={"category": category})

    def search_activities(self, **filters: Any) -> list[dict[str, Any]]:
        return self.request("GET", "activities/search/", query=filters)

    def categories(self) -> list[dict[str, str]]:
        return self.request("GET", "activities/categories/")

    def my_activities(self) -> dict[str, Any]:
        return self.request("GET", "activities/my-activities/")

    def create_activity(self, **fields: Any) -> dict[str, Any]:
        return self.request("POST", "activities/", body=fields)

    def get_activity(self, activity_id: int) -> dict[str, Any]:
        return self.request("GET", f"activities/{activity_id}/")

    def update_activity(self, activity_id: int, **changes: Any) -> dict[str, Any]:
        return self.request("PUT", f"activities/{activity_id}/", body=changes)

    def delete_activity(self, activity_id: int) -> None:
        self.request("DELETE", f"activities/{activity_id}/")

    def join_activity(self, activity_id: int) -> dict[str, Any]:
        return self.request("POST", f"activities/{activity_id}/join/")

    def leave_activity(self, activity_id: int) -> dict[str, Any]:
        return self.request("POST", f"activities/{activity_id}/leave/")

    def remove_participant(self, activity_id: int, user_id: int) -> dict[str, Any]:
        return self.request(
            "POST", f"activities/{activity_id}/remove/", body={"user_id": user_id}
        )

    # chat

    def chat_history(self, activity_id: int) -> list[dict[str, Any]]:
        return self.request("GET", f"activities/{activity_id}/chat/")

    def post_message(self, activity_id: int, message: str) -> dict[str, Any]:
        return self.request(
            "POST", f"activities/{activity_id}/chat/", body={"message": message}
        )

    # notifications

    def notifications(self) -> list[dict[str, Any]]:
        return self.request("GET", "notifications/")

    def unread_count(self) -> int:
        return self.request("GET", "notifications/unread-count/")["count"]

    def mark_read(self, notification_id: int) -> dict[str, Any]:
        return self.request("PUT", f"notifications/{notification_id}/read/")

    def mark_all_read(self) -> dict[str, Any]:
        return self.request("PUT", "notifications/read-all/")


def _decode(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError:
        return {"message": raw.decode("utf-8", "ignore")}
