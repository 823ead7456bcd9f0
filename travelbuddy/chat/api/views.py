from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from travelbuddy.activities.models import Activity
from travelbuddy.chat import services

from .serializers import ChatMessageSerializer
from .serializers import PostMessageSerializer


class ActivityChatView(APIView):
    """History and posting for one activity's chat.

    Live delivery goes over the socket; this endpoint only stores and replays.
    """

    permission_classes = [IsAuthenticated]

    def get_activity(self, activity_id: int) -> Activity:
        try:
            return Activity.objects.get(pk=activity_id)
        except Activity.DoesNotExist as exc:
            msg = "Activity not found"
            raise NotFound(msg) from exc

    @extend_schema(tags=["Chat"], responses=ChatMessageSerializer(many=True))
    def get(self, request, activity_id: int):
        activity = self.get_activity(activity_id)
        messages = services.recent_messages(activity)
        return Response(ChatMessageSerializer(messages, many=True).data)

    @extend_schema(
        tags=["Chat"],
        request=PostMessageSerializer,
        responses={201: ChatMessageSerializer},
    )
    def post(self, request, activity_id: int):
        activity = self.get_activity(activity_id)
        serializer = PostMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = services.post_message(
            activity, request.user, serializer.validated_data["message"]
        )
        return Response(
            ChatMessageSerializer(message).data, status=status.HTTP_201_CREATED
        )
