from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import CharField
from django.db.models import EmailField
from django.db.models import F
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .managers import UserManager


class User(AbstractUser):
    """
    Default custom user model for TravelBuddy.
    Identity is the email address; there is no username.
    """

    # First and last name do not cover name patterns around the globe
    name = CharField(_("Display Name"), blank=True, max_length=255)
    email = EmailField(_("email address"), unique=True)
    username = None  # type: ignore[assignment]
    first_name = None  # type: ignore[assignment]
    last_name = None  # type: ignore[assignment]

    bio = models.TextField(blank=True, default="")
    # Free-text location shown on the profile ("Lisbon, Portugal")
    location = models.CharField(max_length=255, blank=True, default="")
    # (0, 0) is the "not set" origin and is skipped by nearby lookups
    longitude = models.FloatField(default=0.0)
    latitude = models.FloatField(default=0.0)
    interests = models.JSONField(default=list, blank=True)
    profile_picture = models.CharField(max_length=500, blank=True, default="")
    is_public = models.BooleanField(default=True)
    following = models.ManyToManyField(
        "self",
        through="Follow",
        through_fields=("follower", "followee"),
        symmetrical=False,
        related_name="followers",
        blank=True,
    )
    last_active = models.DateTimeField(default=timezone.now)

    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        indexes = [
            models.Index(fields=["latitude", "longitude"], name="users_user_coords_idx"),
        ]

    def __str__(self) -> str:
        return self.name or self.email

    @property
    def has_coordinates(self) -> bool:
        return not (self.longitude == 0 and self.latitude == 0)


class Follow(models.Model):
    """Directed edge: ``follower`` follows ``followee``."""

    follower = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="following_edges"
    )
    followee = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="follower_edges"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["follower", "followee"], name="users_follow_unique_edge"
            ),
            models.CheckConstraint(
                condition=~Q(follower=F("followee")), name="users_follow_not_self"
            ),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.follower_id} -> {self.followee_id}"


class FutureDestination(models.Model):
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="future_destinations"
    )
    location = models.CharField(max_length=255)
    latitude = models.FloatField()
    longitude = models.FloatField()
    date = models.DateField()

    class Meta:
        ordering = ["date"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.location} ({self.date})"
