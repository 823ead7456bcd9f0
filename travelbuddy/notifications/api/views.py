from __future__ import annotations

import logging

from django.conf import settings
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from travelbuddy.notifications import services
from travelbuddy.notifications.models import Notification

from .serializers import NotificationSerializer
from .serializers import UnreadCountSerializer

logger = logging.getLogger(__name__)


@extend_schema_view(list=extend_schema(tags=["Notifications"]))
class NotificationViewSet(mixins.ListModelMixin, GenericViewSet):
    """Notifications for the authenticated user.

    - list: newest first, capped at NOTIFICATION_LIST_LIMIT
    - unread_count
    - mark_read / mark_all_read (unread -> read only)
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    pagination_class = None
    filter_backends = []
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user).select_related(
            "sender", "activity"
        )

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()[: settings.NOTIFICATION_LIST_LIMIT]
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @extend_schema(tags=["Notifications"], responses=UnreadCountSerializer)
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        return Response({"count": services.unread_count(request.user)})

    @extend_schema(tags=["Notifications"], request=None)
    @action(detail=True, methods=["put"], url_path="read")
    def mark_read(self, request, pk=None):
        # Scoped to the caller: someone else's notification is indistinguishable
        # from a missing one.
        notification = self.get_queryset().filter(pk=pk).first()
        if notification is None:
            msg = "Notification not found"
            raise NotFound(msg)
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return Response(self.get_serializer(notification).data)

    @extend_schema(tags=["Notifications"], request=None)
    @action(detail=False, methods=["put"], url_path="read-all")
    def mark_all_read(self, request):
        updated = services.mark_all_read(request.user)
        logger.debug("Marked %s notifications read for user %s", updated, request.user.pk)
        return Response(
            {"message": "All notifications marked as read", "updated": updated},
            status=status.HTTP_200_OK,
        )
