from django.contrib import admin

from .models import ReviewCase


@admin.register(ReviewCase)
class ReviewCaseAdmin(admin.ModelAdmin):
    list_display = ("case_id", "case_type", "subject_id", "overall_status",
                    "version", "updated_at")
    list_filter = ("case_type", "overall_status")
    search_fields = ("case_id", "subject_id")
    readonly_fields = ("version", "created_at", "updated_at")
