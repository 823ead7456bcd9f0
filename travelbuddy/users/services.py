"""User-side operations: registration, the follow graph and discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from travelbuddy.core.exceptions import Conflict
from travelbuddy.notifications.models import Notification
from travelbuddy.notifications.services import create_notification
from travelbuddy.users.geo import bounding_box
from travelbuddy.users.geo import haversine_distance
from travelbuddy.users.models import Follow
from travelbuddy.users.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NearbyUser:
    user: User
    distance: float


def register_user(*, name: str, email: str, password: str) -> User:
    email = User.objects.normalize_email(email)
    if User.objects.filter(email__iexact=email).exists():
        msg = "User already exists"
        raise Conflict(msg)
    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, password=password, name=name)
    except IntegrityError as exc:
        msg = "User already exists"
        raise Conflict(msg) from exc
    logger.info("Registered user %s", user.pk)
    return user


def get_user_or_404(user_id: int) -> User:
    try:
        return User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist as exc:
        msg = "User not found"
        raise NotFound(msg) from exc


def follow_user(actor: User, target_id: int) -> User:
    """Add the actor -> target edge and notify the target.

    The edge and the notification are written in one transaction, so a failure
    leaves neither behind.
    """
    if actor.pk == target_id:
        msg = "Cannot follow yourself"
        raise Conflict(msg)
    target = get_user_or_404(target_id)
    if Follow.objects.filter(follower=actor, followee=target).exists():
        msg = "Already following this user"
        raise Conflict(msg)

    try:
        with transaction.atomic():
            Follow.objects.create(follower=actor, followee=target)
            create_notification(
                recipient=target,
                sender=actor,
                notification_type=Notification.Type.NEW_FOLLOWER,
                title="New Follower",
                message=f"{actor.name or actor.email} started following you",
            )
    except IntegrityError as exc:
        msg = "Already following this user"
        raise Conflict(msg) from exc

    logger.info("User %s followed %s", actor.pk, target.pk)
    return target


def unfollow_user(actor: User, target_id: int) -> User:
    if actor.pk == target_id:
        msg = "Cannot unfollow yourself"
        raise Conflict(msg)
    target = get_user_or_404(target_id)
    deleted, _ = Follow.objects.filter(follower=actor, followee=target).delete()
    if not deleted:
        msg = "Not following this user"
        raise Conflict(msg)
    logger.info("User %s unfollowed %s", actor.pk, target.pk)
    return target


def nearby_users(
    actor: User, *, longitude: float, latitude: float, radius: float
) -> list[NearbyUser]:
    """Users within ``radius`` meters of the origin, nearest first.

    Users still at the (0, 0) default are never returned. A latitude/longitude
    bounding box narrows the scan through the coordinates index; when no box can
    be built (poles, antimeridian) every user with coordinates is scanned.
    """
    candidates = (
        User.objects.filter(is_active=True)
        .exclude(pk=actor.pk)
        .exclude(longitude=0, latitude=0)
    )
    box = bounding_box(latitude, longitude, radius)
    if box is None:
        logger.info(
            "Nearby lookup at (%s, %s) r=%s cannot use the index, scanning all users",
            latitude,
            longitude,
            radius,
        )
    else:
        min_lat, max_lat, min_lon, max_lon = box
        candidates = candidates.filter(
            latitude__range=(min_lat, max_lat),
            longitude__range=(min_lon, max_lon),
        )

    results: list[NearbyUser] = []
    for user in candidates.iterator():
        distance = haversine_distance(latitude, longitude, user.latitude, user.longitude)
        if distance <= radius:
            results.append(NearbyUser(user=user, distance=distance))
    results.sort(key=lambda item: item.distance)
    return results


def recommend_users(actor: User, *, limit: int | None = None) -> list[User]:
    """Public users sharing at least one interest who are not followed yet."""
    limit = limit or settings.USER_RECOMMENDATION_LIMIT
    interests = set(actor.interests or [])
    if not interests:
        return []
    followed_ids = actor.following.values_list("id", flat=True)
    candidates = (
        User.objects.filter(is_public=True, is_active=True)
        .exclude(pk=actor.pk)
        .exclude(pk__in=followed_ids)
        .order_by("-last_active")
    )
    picked: list[User] = []
    for user in candidates.iterator():
        if interests.intersection(user.interests or []):
            picked.append(user)
            if len(picked) >= limit:
                break
    return picked


def touch_last_active(user: User) -> None:
    user.last_active = timezone.now()
    user.save(update_fields=["last_active", "updated_at"])
