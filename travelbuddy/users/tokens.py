"""Bearer token issue/verify on top of simplejwt access tokens.

Tokens are self-contained (user id + expiry), signed with SECRET_KEY and valid
for ``SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]``. There is no refresh flow.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

if TYPE_CHECKING:  # import for type checking only
    from travelbuddy.users.models import User


class InvalidTokenError(Exception):
    """Token has a bad signature, is malformed or has expired."""

    def __init__(self, message: str, *, expired: bool = False):
        super().__init__(message)
        self.expired = expired


def issue_token(user: User) -> str:
    return str(AccessToken.for_user(user))


def verify_token(token: str) -> int:
    try:
        validated = AccessToken(token)
    except TokenError as exc:
        raise InvalidTokenError(str(exc), expired=_is_expired(token)) from exc
    try:
        return int(validated[api_settings.USER_ID_CLAIM])
    except (KeyError, TypeError, ValueError) as exc:
        msg = "Token has no user id"
        raise InvalidTokenError(msg) from exc


def _is_expired(token: str) -> bool:
    # Well formed, correctly signed or not, and past its exp claim
    try:
        unverified = AccessToken(token, verify=False)
    except TokenError:
        return False
    exp = unverified.get("exp")
    return exp is not None and exp < timezone.now().timestamp()
