from django.contrib import admin

from .models import ChatMessage


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ("activity", "author_name", "timestamp", "kind")
    list_filter = ("kind",)
    search_fields = ("text", "author_name")
    raw_id_fields = ("activity", "author")
