"""Admin configuration for the sales app."""
from django.contrib import admin

from sales.models import SoldProduct


@admin.register(SoldProduct)
class SoldProductAdmin(admin.ModelAdmin):
    list_display = (
        "date_sold",
        "sold_by",
        "product",
        "premium",
        "status",
        "is_value_health",
        "is_value_life",
    )
    list_filter = ("status", "agency", "product__line_of_business", "is_value_health", "is_value_life")
    search_fields = ("policy_number", "sold_by__full_name", "product__name")
    date_hierarchy = "date_sold"
    list_select_related = ("sold_by", "product")
    raw_id_fields = ("sold_by", "product")
