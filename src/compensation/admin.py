"""Django admin for compensation plans and statements."""
from django.contrib import admin

from compensation.models import (
    CompensationStatement,
    CompPlan,
    PlanAssignment,
    PlanGate,
    RuleBlock,
)


class RuleBlockInline(admin.TabularInline):
    model = RuleBlock
    extra = 0
    fields = ("display_order", "name", "component_type", "config", "enabled")
    ordering = ("display_order",)


class PlanGateInline(admin.TabularInline):
    model = PlanGate
    extra = 0
    fields = ("name", "gate_type", "threshold", "bucket", "scope", "enabled")


@admin.register(CompPlan)
class CompPlanAdmin(admin.ModelAdmin):
    list_display = ("name", "scope", "scope_target", "effective_from", "is_default_for_team_type", "is_active")
    list_filter = ("scope", "team_type", "is_active", "is_default_for_team_type")
    search_fields = ("name", "description")
    raw_id_fields = ("person", "role", "team", "agency")
    inlines = [RuleBlockInline, PlanGateInline]


@admin.register(PlanAssignment)
class PlanAssignmentAdmin(admin.ModelAdmin):
    list_display = ("person", "plan", "effective_from", "created_at")
    list_filter = ("plan",)
    search_fields = ("person__full_name", "plan__name")
    date_hierarchy = "effective_from"
    raw_id_fields = ("person",)


@admin.register(CompensationStatement)
class CompensationStatementAdmin(admin.ModelAdmin):
    list_display = ("person", "period_start", "period_end", "plan", "total", "trigger", "is_final", "computed_at")
    list_filter = ("is_final", "trigger", "period_start")
    search_fields = ("person__full_name",)
    list_select_related = ("person", "plan")
    readonly_fields = ("breakdown", "bucket_values", "computed_at")
