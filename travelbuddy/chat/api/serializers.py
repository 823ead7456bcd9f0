from rest_framework import serializers

from travelbuddy.chat.models import ChatMessage
from travelbuddy.core.serializers import StrictFieldsMixin


class ChatMessageSerializer(serializers.ModelSerializer[ChatMessage]):
    activity_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(source="author_id", read_only=True)
    user_name = serializers.CharField(source="author_name", read_only=True)
    message = serializers.CharField(source="text", read_only=True)
    type = serializers.CharField(source="kind", read_only=True)

    class Meta:
        model = ChatMessage
        fields = ["id", "activity_id", "user_id", "user_name", "message", "timestamp", "type"]
        read_only_fields = fields


class PostMessageSerializer(StrictFieldsMixin, serializers.Serializer):
    message = serializers.CharField(
        max_length=2000,
        trim_whitespace=True,
        error_messages={
            "required": "Message is required.",
            "blank": "Message is required.",
            "null": "Message is required.",
        },
    )
