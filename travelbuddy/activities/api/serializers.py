from rest_framework import serializers

from travelbuddy.activities.models import Activity
from travelbuddy.core.serializers import StrictFieldsMixin
from travelbuddy.core.serializers import StringListField
from travelbuddy.users.api.serializers import UserSummarySerializer


class ActivitySerializer(serializers.ModelSerializer[Activity]):
    creator = UserSummarySerializer(read_only=True)
    participants = UserSummarySerializer(many=True, read_only=True)
    participant_count = serializers.SerializerMethodField()
    is_full = serializers.SerializerMethodField()

    class Meta:
        model = Activity
        fields = [
            "id",
            "title",
            "description",
            "location",
            "time",
            "category",
            "tags",
            "creator",
            "participants",
            "participant_limit",
            "participant_count",
            "is_full",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_participant_count(self, obj: Activity) -> int:
        annotated = getattr(obj, "participant_count", None)
        if annotated is not None:
            return annotated
        return obj.participants.count()

    def get_is_full(self, obj: Activity) -> bool:
        return self.get_participant_count(obj) >= obj.participant_limit


class ActivityCreateSerializer(StrictFieldsMixin, serializers.ModelSerializer[Activity]):
    tags = StringListField(required=False)
    participant_limit = serializers.IntegerField(min_value=1, required=False)

    class Meta:
        model = Activity
        fields = [
            "title",
            "description",
            "location",
            "time",
            "category",
            "tags",
            "participant_limit",
        ]


class ActivityUpdateSerializer(StrictFieldsMixin, serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(allow_blank=True, required=False)
    location = serializers.CharField(max_length=255, required=False)
    time = serializers.DateTimeField(required=False)
    participant_limit = serializers.IntegerField(min_value=1, required=False)


class RemoveParticipantSerializer(StrictFieldsMixin, serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)


class ActivityPartitionSerializer(serializers.Serializer):
    created = ActivitySerializer(many=True, read_only=True)
    joined = ActivitySerializer(many=True, read_only=True)


class CategorySerializer(serializers.Serializer):
    value = serializers.CharField(read_only=True)
    label = serializers.CharField(read_only=True)
    icon = serializers.CharField(read_only=True)
