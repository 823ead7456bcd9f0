from django.conf import settings
from django.db import models
from django.utils import timezone


class ChatMessage(models.Model):
    """One line in an activity's chat. Append-only."""

    class Kind(models.TextChoices):
        USER_MESSAGE = "user-message", "User message"

    activity = models.ForeignKey(
        "activities.Activity", on_delete=models.CASCADE, related_name="messages"
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="chat_messages",
    )
    # Copied at write time; later renames do not rewrite history
    author_name = models.CharField(max_length=255)
    text = models.TextField()
    kind = models.CharField(
        max_length=20, choices=Kind.choices, default=Kind.USER_MESSAGE
    )
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["timestamp", "id"]
        indexes = [
            models.Index(fields=["activity", "timestamp"], name="chat_activity_ts_idx"),
        ]

    def __str__(self):
        return f"{self.author_name}: {self.text[:40]}"
