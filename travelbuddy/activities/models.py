from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


def default_participant_limit() -> int:
    return settings.ACTIVITY_DEFAULT_PARTICIPANT_LIMIT


class Activity(models.Model):
    class Category(models.TextChoices):
        DINNER = "dinner", _("Dinner")
        HIKING = "hiking", _("Hiking")
        COWORKING = "coworking", _("Co-working")
        SIGHTSEEING = "sightseeing", _("Sightseeing")
        SPORTS = "sports", _("Sports")
        CULTURAL = "cultural", _("Cultural")
        NIGHTLIFE = "nightlife", _("Nightlife")
        OUTDOOR = "outdoor", _("Outdoor")
        INDOOR = "indoor", _("Indoor")
        OTHER = "other", _("Other")

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    location = models.CharField(max_length=255)
    time = models.DateTimeField()
    category = models.CharField(max_length=20, choices=Category.choices)
    tags = models.JSONField(default=list, blank=True)
    # Never reassigned after creation
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_activities",
    )
    # Always contains the creator
    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL, related_name="joined_activities", blank=True
    )
    participant_limit = models.PositiveIntegerField(
        default=default_participant_limit, validators=[MinValueValidator(1)]
    )
    reminder_sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "activities"
        indexes = [
            models.Index(fields=["time"], name="activities_time_idx"),
            models.Index(fields=["category"], name="activities_category_idx"),
        ]

    def __str__(self):
        return self.title

    def is_creator(self, user) -> bool:
        return self.creator_id == getattr(user, "pk", None)

    def has_participant(self, user) -> bool:
        return self.participants.filter(pk=user.pk).exists()


CATEGORY_ICONS = {
    Activity.Category.DINNER: "🍽️",
    Activity.Category.HIKING: "🏔️",
    Activity.Category.COWORKING: "💼",
    Activity.Category.SIGHTSEEING: "🏛️",
    Activity.Category.SPORTS: "⚽",
    Activity.Category.CULTURAL: "🎭",
    Activity.Category.NIGHTLIFE: "🌙",
    Activity.Category.OUTDOOR: "🌲",
    Activity.Category.INDOOR: "🏠",
    Activity.Category.OTHER: "📌",
}


def category_catalog() -> list[dict[str, str]]:
    """The fixed value/label/icon list offered to clients."""
    return [
        {"value": value, "label": str(label), "icon": CATEGORY_ICONS[value]}
        for value, label in Activity.Category.choices
    ]
