from django.contrib import admin
from django.contrib.auth import admin as auth_admin
from django.utils.translation import gettext_lazy as _

from .models import Follow
from .models import FutureDestination
from .models import User


class FutureDestinationInline(admin.TabularInline):
    model = FutureDestination
    extra = 0


@admin.register(User)
class UserAdmin(auth_admin.UserAdmin):
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            _("Profile"),
            {
                "fields": (
                    "name",
                    "bio",
                    "location",
                    "longitude",
                    "latitude",
                    "interests",
                    "profile_picture",
                    "is_public",
                )
            },
        ),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "last_active", "date_joined")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "password1", "password2")}),
    )
    list_display = ["email", "name", "location", "is_public", "is_superuser"]
    search_fields = ["name", "email", "location"]
    ordering = ["id"]
    inlines = [FutureDestinationInline]


@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    list_display = ("follower", "followee", "created_at")
    raw_id_fields = ("follower", "followee")
