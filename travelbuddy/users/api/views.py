import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from travelbuddy.activities.api.serializers import ActivityPartitionSerializer
from travelbuddy.activities.services import partition_activities
from travelbuddy.core.exceptions import InvalidCredentials
from travelbuddy.users import services
from travelbuddy.users.models import User
from travelbuddy.users.tokens import issue_token

from .filters import UserFilter
from .serializers import AuthResponseSerializer
from .serializers import AuthUserSerializer
from .serializers import LoginSerializer
from .serializers import NearbyQuerySerializer
from .serializers import NearbyUserSerializer
from .serializers import ProfileSerializer
from .serializers import PublicUserSerializer
from .serializers import RegisterSerializer
from .serializers import UserCardSerializer

logger = logging.getLogger(__name__)


def _auth_payload(user: User) -> dict:
    return {"token": issue_token(user), "user": AuthUserSerializer(user).data}


class RegisterView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: AuthResponseSerializer},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.register_user(**serializer.validated_data)
        return Response(_auth_payload(user), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        tags=["Auth"],
        request=LoginSerializer,
        responses=AuthResponseSerializer,
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = authenticate(
            request,
            email=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )
        if user is None:
            logger.warning("Failed login for %s", serializer.validated_data["email"])
            raise InvalidCredentials
        services.touch_last_active(user)
        return Response(_auth_payload(user))


class ProfileView(APIView):
    """The caller's own profile."""

    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Profile"], responses=ProfileSerializer)
    def get(self, request):
        return Response(ProfileSerializer(request.user).data)

    @extend_schema(tags=["Profile"], request=ProfileSerializer, responses=ProfileSerializer)
    def put(self, request):
        serializer = ProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info("User %s updated profile", request.user.pk)
        return Response(serializer.data)

    @extend_schema(tags=["Profile"], request=ProfileSerializer, responses=ProfileSerializer)
    def patch(self, request):
        return self.put(request)


@extend_schema_view(retrieve=extend_schema(tags=["Users"]))
class UserViewSet(RetrieveModelMixin, GenericViewSet):
    """Discovery and the follow graph.

    Detail routes take a numeric user id; collection routes are fixed names.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = PublicUserSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = UserFilter
    pagination_class = None
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return User.objects.filter(is_active=True).prefetch_related(
            "future_destinations"
        )

    def get_object(self):
        return services.get_user_or_404(int(self.kwargs["pk"]))

    @extend_schema(
        tags=["Users"],
        parameters=[
            OpenApiParameter("q", str, description="Matches name or bio"),
            OpenApiParameter("location", str),
            OpenApiParameter("interests", str, description="Comma separated"),
        ],
        responses=UserCardSerializer(many=True),
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        queryset = self.filter_queryset(
            self.get_queryset().exclude(pk=request.user.pk)
        ).order_by("-last_active", "id")[: settings.USER_SEARCH_LIMIT]
        return Response(UserCardSerializer(queryset, many=True).data)

    @extend_schema(
        tags=["Users"],
        parameters=[
            OpenApiParameter("lng", float, required=True),
            OpenApiParameter("lat", float, required=True),
            OpenApiParameter("radius", float, description="Meters, default 5000"),
        ],
        responses=NearbyUserSerializer(many=True),
    )
    @action(detail=False, methods=["get"], filter_backends=[])
    def nearby(self, request):
        query = NearbyQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        results = services.nearby_users(
            request.user,
            longitude=query.validated_data["lng"],
            latitude=query.validated_data["lat"],
            radius=query.validated_data.get("radius")
            or settings.NEARBY_DEFAULT_RADIUS_METERS,
        )
        return Response(NearbyUserSerializer(results, many=True).data)

    @extend_schema(tags=["Users"], responses=UserCardSerializer(many=True))
    @action(detail=False, methods=["get"], filter_backends=[])
    def recommendations(self, request):
        users = services.recommend_users(request.user)
        return Response(UserCardSerializer(users, many=True).data)

    @extend_schema(tags=["Users"], request=None)
    @action(detail=False, methods=["put"], url_path="last-active", filter_backends=[])
    def last_active(self, request):
        services.touch_last_active(request.user)
        return Response({"message": "Last active updated"})

    @extend_schema(tags=["Users"], request=None)
    @action(detail=True, methods=["post"], filter_backends=[])
    def follow(self, request, pk=None):
        target = services.follow_user(request.user, int(pk))
        return Response({"message": f"Now following {target.name or target.email}"})

    @extend_schema(tags=["Users"], request=None)
    @action(detail=True, methods=["post"], filter_backends=[])
    def unfollow(self, request, pk=None):
        target = services.unfollow_user(request.user, int(pk))
        return Response({"message": f"Unfollowed {target.name or target.email}"})

    @extend_schema(tags=["Users"], responses=UserCardSerializer(many=True))
    @action(detail=True, methods=["get"], filter_backends=[])
    def followers(self, request, pk=None):
        user = self.get_object()
        users = User.objects.filter(following_edges__followee=user).order_by(
            "-following_edges__created_at"
        )
        return Response(UserCardSerializer(users, many=True).data)

    @extend_schema(tags=["Users"], responses=UserCardSerializer(many=True))
    @action(detail=True, methods=["get"], filter_backends=[])
    def following(self, request, pk=None):
        user = self.get_object()
        users = User.objects.filter(follower_edges__follower=user).order_by(
            "-follower_edges__created_at"
        )
        return Response(UserCardSerializer(users, many=True).data)

    @extend_schema(tags=["Users"], responses=ActivityPartitionSerializer)
    @action(detail=True, methods=["get"], filter_backends=[])
    def activities(self, request, pk=None):
        user = self.get_object()
        return Response(ActivityPartitionSerializer(partition_activities(user)).data)
