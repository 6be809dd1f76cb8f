from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("notice_id", "recipient_id", "title", "category",
                    "case_id", "is_read", "published_at")
    list_filter = ("category", "is_read", "case_type")
    search_fields = ("notice_id", "recipient_id", "title", "case_id")
    readonly_fields = ("notice_id", "published_at", "read_at")
