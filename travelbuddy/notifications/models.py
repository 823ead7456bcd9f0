from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):
    class Type(models.TextChoices):
        NEW_FOLLOWER = "new_follower", _("New Follower")
        ACTIVITY_JOINED = "activity_joined", _("Activity Joined")
        ACTIVITY_LEFT = "activity_left", _("Activity Left")
        ACTIVITY_UPDATED = "activity_updated", _("Activity Updated")
        NEW_PARTICIPANT = "new_participant", _("New Participant")
        ACTIVITY_REMINDER = "activity_reminder", _("Activity Reminder")
        MESSAGE_RECEIVED = "message_received", _("Message Received")

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_notifications",
    )
    activity = models.ForeignKey(
        "activities.Activity",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    notification_type = models.CharField(max_length=50, choices=Type.choices)
    title = models.CharField(max_length=255)
    message = models.TextField()
    # unread -> read is the only transition
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["recipient", "is_read"], name="notif_recipient_read_idx"
            ),
        ]

    def __str__(self):
        return f"{self.title} - {self.recipient}"
