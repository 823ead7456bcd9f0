from django.contrib import admin

from travelbuddy.notifications import models


@admin.register(models.Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "recipient", "title", "notification_type", "is_read"]
    search_fields = ["title", "message", "notification_type"]
    list_filter = ["notification_type", "is_read", "created_at"]
    raw_id_fields = ["recipient", "sender", "activity"]
