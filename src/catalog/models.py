"""Models for the catalog app (lines of business, products, premium buckets)."""
from django.core.exceptions import ValidationError
from django.db import models

from core.models import TimeStampedModel


class PremiumCategory(models.TextChoices):
    PC = "PC", "Property & casualty"
    FS = "FS", "Financial services"
    IPS = "IPS", "Investment products"


class ProductType(models.TextChoices):
    PERSONAL = "PERSONAL", "Personal"
    BUSINESS = "BUSINESS", "Business"


# ---------------------------------------------------------------------------
# Line of business
# ---------------------------------------------------------------------------

class LineOfBusiness(TimeStampedModel):
    agency = models.ForeignKey(
        "org.Agency",
        on_delete=models.CASCADE,
        related_name="lines_of_business",
        verbose_name="agency",
    )
    name = models.CharField("name", max_length=120)
    premium_category = models.CharField(
        "premium category",
        max_length=5,
        choices=PremiumCategory.choices,
        default=PremiumCategory.PC,
    )

    class Meta:
        verbose_name = "line of business"
        verbose_name_plural = "lines of business"
        ordering = ["name"]
        unique_together = [["agency", "name"]]

    def __str__(self):
        return self.name


# ---------------------------------------------------------------------------
# Product
# ---------------------------------------------------------------------------

class Product(TimeStampedModel):
    line_of_business = models.ForeignKey(
        LineOfBusiness,
        on_delete=models.CASCADE,
        related_name="products",
        verbose_name="line of business",
    )
    name = models.CharField("name", max_length=120)
    product_type = models.CharField(
        "product type",
        max_length=10,
        choices=ProductType.choices,
        default=ProductType.PERSONAL,
    )
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "product"
        verbose_name_plural = "products"
        ordering = ["line_of_business__name", "name"]
        unique_together = [["line_of_business", "name"]]

    def __str__(self):
        return f"{self.name} ({self.line_of_business.name})"


# ---------------------------------------------------------------------------
# Premium bucket
# ---------------------------------------------------------------------------

class PremiumBucket(TimeStampedModel):
    """Agency-defined named metric: the union of the included LoBs/products.

    Members are referenced by id or by name. Excludes always win over includes.
    A bucket whose key matches a built-in bucket replaces it for the agency.
    """

    class Measure(models.TextChoices):
        PREMIUM = "PREMIUM", "Premium sum"
        APPS = "APPS", "Application count"

    agency = models.ForeignKey(
        "org.Agency",
        on_delete=models.CASCADE,
        related_name="premium_buckets",
        verbose_name="agency",
    )
    key = models.SlugField("key", max_length=80)
    name = models.CharField("name", max_length=120)
    measure = models.CharField(
        "measure",
        max_length=10,
        choices=Measure.choices,
        default=Measure.PREMIUM,
    )
    includes_lobs = models.JSONField("included lines of business", default=list, blank=True)
    includes_products = models.JSONField("included products", default=list, blank=True)
    excludes_lobs = models.JSONField("excluded lines of business", default=list, blank=True)
    excludes_products = models.JSONField("excluded products", default=list, blank=True)
    description = models.TextField("description", blank=True, default="")

    class Meta:
        verbose_name = "premium bucket"
        verbose_name_plural = "premium buckets"
        ordering = ["key"]
        unique_together = [["agency", "key"]]

    def __str__(self):
        return f"{self.name} [{self.key}]"

    def clean(self):
        for field in ("includes_lobs", "includes_products", "excludes_lobs", "excludes_products"):
            value = getattr(self, field)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValidationError({field: "Expected a list of ids or names."})
        if not self.includes_lobs and not self.includes_products:
            raise ValidationError("A bucket must include at least one line of business or product.")
