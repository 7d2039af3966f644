"""Admin configuration for the catalog app."""
from django.contrib import admin

from .models import LineOfBusiness, PremiumBucket, Product


class ProductInline(admin.TabularInline):
    model = Product
    extra = 0
    fields = ("name", "product_type", "is_active")


@admin.register(LineOfBusiness)
class LineOfBusinessAdmin(admin.ModelAdmin):
    list_display = ("name", "agency", "premium_category")
    list_filter = ("premium_category", "agency")
    search_fields = ("name",)
    inlines = [ProductInline]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "line_of_business", "product_type", "is_active")
    list_filter = ("product_type", "is_active", "line_of_business__premium_category")
    search_fields = ("name", "line_of_business__name")
    list_select_related = ("line_of_business",)


@admin.register(PremiumBucket)
class PremiumBucketAdmin(admin.ModelAdmin):
    list_display = ("key", "name", "agency", "measure")
    list_filter = ("measure", "agency")
    search_fields = ("key", "name")
    readonly_fields = ("id", "created_at", "updated_at")
