from django.contrib import admin

from .models import Activity


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "creator", "time", "participant_limit")
    list_filter = ("category",)
    search_fields = ("title", "location", "description", "creator__email")
    date_hierarchy = "time"
    raw_id_fields = ("creator",)
    filter_horizontal = ("participants",)
