"""Django admin for the organisation module."""
from django.contrib import admin

from org.models import Agency, Person, Role, Team


class TeamInline(admin.TabularInline):
    model = Team
    extra = 0
    fields = ("name", "team_type")


@admin.register(Agency)
class AgencyAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    inlines = [TeamInline]


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "team")
    search_fields = ("name", "team__name")


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ("full_name", "primary_agency", "team", "role", "team_type", "is_active")
    list_filter = ("team_type", "is_active", "primary_agency")
    search_fields = ("full_name", "email")
    raw_id_fields = ("user",)
