from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import serializers

from travelbuddy.core.serializers import CoordinatesField
from travelbuddy.core.serializers import StrictFieldsMixin
from travelbuddy.core.serializers import StringListField
from travelbuddy.users.models import FutureDestination
from travelbuddy.users.models import User

CREDENTIAL_FIELDS = ("email", "password")


class UserSummarySerializer(serializers.ModelSerializer[User]):
    class Meta:
        model = User
        fields = ["id", "name"]
        read_only_fields = fields


class AuthUserSerializer(serializers.ModelSerializer[User]):
    class Meta:
        model = User
        fields = ["id", "name", "email"]
        read_only_fields = fields


class AuthResponseSerializer(serializers.Serializer):
    token = serializers.CharField(read_only=True)
    user = AuthUserSerializer(read_only=True)


class RegisterSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        candidate = User(name=attrs["name"], email=attrs["email"])
        try:
            validate_password(attrs["password"], user=candidate)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)}) from exc
        return attrs


class LoginSerializer(StrictFieldsMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class FutureDestinationSerializer(serializers.ModelSerializer[FutureDestination]):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)

    class Meta:
        model = FutureDestination
        fields = ["location", "latitude", "longitude", "date"]


class UserCardSerializer(serializers.ModelSerializer[User]):
    """Compact user shape for lists (search, followers, recommendations)."""

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "bio",
            "location",
            "interests",
            "profile_picture",
            "is_public",
            "last_active",
        ]
        read_only_fields = fields


class ProfileSerializer(StrictFieldsMixin, serializers.ModelSerializer[User]):
    """The caller's own profile. Credentials are not editable here."""

    coordinates = CoordinatesField(required=False)
    interests = StringListField(required=False)
    future_destinations = FutureDestinationSerializer(many=True, required=False)
    followers_count = serializers.SerializerMethodField()
    following_count = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "email",
            "bio",
            "location",
            "coordinates",
            "interests",
            "profile_picture",
            "is_public",
            "future_destinations",
            "followers_count",
            "following_count",
            "last_active",
            "created_at",
        ]
        read_only_fields = ["id", "email", "last_active", "created_at"]

    def to_internal_value(self, data):
        if hasattr(data, "keys"):
            attempted = [field for field in CREDENTIAL_FIELDS if field in data]
            if attempted:
                raise serializers.ValidationError(
                    {field: ["This field cannot be changed."] for field in attempted}
                )
        return super().to_internal_value(data)

    def get_followers_count(self, obj: User) -> int:
        return obj.follower_edges.count()

    def get_following_count(self, obj: User) -> int:
        return obj.following_edges.count()

    @transaction.atomic
    def update(self, instance, validated_data):
        destinations = validated_data.pop("future_destinations", None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()
        if destinations is not None:
            # Replaced as a whole, never merged
            instance.future_destinations.all().delete()
            FutureDestination.objects.bulk_create(
                FutureDestination(user=instance, **item) for item in destinations
            )
        return instance


class PublicUserSerializer(serializers.ModelSerializer[User]):
    coordinates = CoordinatesField(read_only=True)
    future_destinations = FutureDestinationSerializer(many=True, read_only=True)
    followers_count = serializers.SerializerMethodField()
    following_count = serializers.SerializerMethodField()
    is_following = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "bio",
            "location",
            "coordinates",
            "interests",
            "profile_picture",
            "is_public",
            "future_destinations",
            "followers_count",
            "following_count",
            "is_following",
            "last_active",
            "created_at",
        ]
        read_only_fields = fields

    def get_followers_count(self, obj: User) -> int:
        return obj.follower_edges.count()

    def get_following_count(self, obj: User) -> int:
        return obj.following_edges.count()

    def get_is_following(self, obj: User) -> bool:
        request = self.context.get("request")
        viewer = getattr(request, "user", None)
        if viewer is None or not viewer.is_authenticated:
            return False
        return obj.follower_edges.filter(follower=viewer).exists()


class NearbyUserSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="user.id", read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)
    bio = serializers.CharField(source="user.bio", read_only=True)
    location = serializers.CharField(source="user.location", read_only=True)
    interests = serializers.ListField(source="user.interests", read_only=True)
    profile_picture = serializers.CharField(source="user.profile_picture", read_only=True)
    coordinates = serializers.SerializerMethodField()
    distance = serializers.SerializerMethodField()

    def get_coordinates(self, obj) -> list[float]:
        return [obj.user.longitude, obj.user.latitude]

    def get_distance(self, obj) -> float:
        # meters
        return round(obj.distance, 1)


class NearbyQuerySerializer(serializers.Serializer):
    lng = serializers.FloatField(required=False, min_value=-180, max_value=180)
    lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    radius = serializers.FloatField(required=False, min_value=1)

    def validate(self, attrs):
        if attrs.get("lng") is None or attrs.get("lat") is None:
            msg = "Longitude and latitude are required."
            raise serializers.ValidationError(msg)
        return attrs
