"""Django admin for activities."""
from django.contrib import admin

from activities.models import ActivityRecord, ActivityType


@admin.register(ActivityType)
class ActivityTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "agency", "is_active")
    list_filter = ("is_active", "agency")
    search_fields = ("name",)


@admin.register(ActivityRecord)
class ActivityRecordAdmin(admin.ModelAdmin):
    list_display = ("occurred_on", "person", "activity_type", "count")
    list_filter = ("activity_type",)
    search_fields = ("person__full_name", "activity_type__name")
    date_hierarchy = "occurred_on"
    raw_id_fields = ("person",)
