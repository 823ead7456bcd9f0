import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from travelbuddy.activities import services
from travelbuddy.activities.models import category_catalog

from .filters import ActivityFilter
from .serializers import ActivityCreateSerializer
from .serializers import ActivityPartitionSerializer
from .serializers import ActivitySerializer
from .serializers import ActivityUpdateSerializer
from .serializers import CategorySerializer
from .serializers import RemoveParticipantSerializer

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        tags=["Activities"],
        parameters=[OpenApiParameter("category", str, description="Category value")],
    ),
    retrieve=extend_schema(tags=["Activities"]),
    create=extend_schema(
        tags=["Activities"],
        request=ActivityCreateSerializer,
        responses={201: ActivitySerializer},
    ),
    update=extend_schema(
        tags=["Activities"],
        request=ActivityUpdateSerializer,
        responses=ActivitySerializer,
    ),
    partial_update=extend_schema(
        tags=["Activities"],
        request=ActivityUpdateSerializer,
        responses=ActivitySerializer,
    ),
    destroy=extend_schema(tags=["Activities"]),
)
class ActivityViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    GenericViewSet,
):
    """Activities any authenticated user can browse and join.

    Only the creator may edit, delete or remove participants.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ActivitySerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ActivityFilter
    pagination_class = None
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return services.activity_queryset()

    def retrieve(self, request, *args, **kwargs):
        activity = services.get_activity(int(kwargs["pk"]))
        return Response(ActivitySerializer(activity).data)

    def create(self, request, *args, **kwargs):
        serializer = ActivityCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        activity = services.create_activity(request.user, **serializer.validated_data)
        return Response(
            ActivitySerializer(activity).data, status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        # PUT and PATCH both patch: absent fields stay untouched
        serializer = ActivityUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        activity = services.update_activity(
            request.user, int(kwargs["pk"]), serializer.validated_data
        )
        return Response(ActivitySerializer(activity).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        services.delete_activity(request.user, int(kwargs["pk"]))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Activities"], request=None, responses=ActivitySerializer)
    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        activity = services.join_activity(request.user, int(pk))
        return Response(ActivitySerializer(activity).data)

    @extend_schema(tags=["Activities"], request=None, responses=ActivitySerializer)
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        activity = services.leave_activity(request.user, int(pk))
        return Response(ActivitySerializer(activity).data)

    @extend_schema(
        tags=["Activities"],
        request=RemoveParticipantSerializer,
        responses=ActivitySerializer,
    )
    @action(detail=True, methods=["post"])
    def remove(self, request, pk=None):
        serializer = RemoveParticipantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        activity = services.remove_participant(
            request.user, int(pk), serializer.validated_data["user_id"]
        )
        return Response(ActivitySerializer(activity).data)

    @extend_schema(
        tags=["Activities"],
        parameters=[
            OpenApiParameter("q", str),
            OpenApiParameter("category", str, description='"all" disables the filter'),
            OpenApiParameter("date_from", str),
            OpenApiParameter("date_to", str),
        ],
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        queryset = self.filter_queryset(self.get_queryset()).order_by("time", "id")
        return Response(ActivitySerializer(queryset, many=True).data)

    @extend_schema(tags=["Activities"], responses=CategorySerializer(many=True))
    @action(detail=False, methods=["get"], filter_backends=[])
    def categories(self, request):
        return Response(CategorySerializer(category_catalog(), many=True).data)

    @extend_schema(tags=["Activities"], responses=ActivityPartitionSerializer)
    @action(
        detail=False, methods=["get"], url_path="my-activities", filter_backends=[]
    )
    def my_activities(self, request):
        partition = services.partition_activities(request.user)
        return Response(ActivityPartitionSerializer(partition).data)
