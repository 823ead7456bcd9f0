from django.conf import settings
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from travelbuddy.activities.api.views import ActivityViewSet
from travelbuddy.chat.api.views import ActivityChatView
from travelbuddy.notifications.api.views import NotificationViewSet
from travelbuddy.users.api.views import LoginView
from travelbuddy.users.api.views import ProfileView
from travelbuddy.users.api.views import RegisterView
from travelbuddy.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet, basename="users")
router.register("activities", ActivityViewSet, basename="activities")
router.register("notifications", NotificationViewSet, basename="notifications")


app_name = "api"
urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path(
        "activities/<int:activity_id>/chat/",
        ActivityChatView.as_view(),
        name="activity-chat",
    ),
    *router.urls,
]
