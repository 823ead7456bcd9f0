from __future__ import annotations

from rest_framework import serializers

from travelbuddy.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Read serializer for notifications."""

    type = serializers.CharField(source="notification_type", read_only=True)
    sender = serializers.SerializerMethodField()
    activity = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = (
            "id",
            "type",
            "title",
            "message",
            "sender",
            "activity",
            "is_read",
            "created_at",
        )
        read_only_fields = fields

    def get_sender(self, obj: Notification) -> dict | None:
        if obj.sender_id is None:
            return None
        return {"id": obj.sender_id, "name": obj.sender.name}

    def get_activity(self, obj: Notification) -> dict | None:
        if obj.activity_id is None:
            return None
        return {"id": obj.activity_id, "title": obj.activity.title}


class UnreadCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()
