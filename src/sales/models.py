"""Models for the sales app."""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class PolicyStatus(models.TextChoices):
    WRITTEN = "WRITTEN", "Written"
    ISSUED = "ISSUED", "Issued"
    PAID = "PAID", "Paid"
    STATUS_CHECK = "STATUS_CHECK", "Status check"
    CANCELLED = "CANCELLED", "Cancelled"


# ---------------------------------------------------------------------------
# Sold product
# ---------------------------------------------------------------------------

class SoldProduct(TimeStampedModel):
    """One policy sold by a person. Raw input for compensation buckets."""

    # Boolean value flags a rule can override the rate for.
    FLAG_FIELDS = ("is_value_health", "is_value_life")

    agency = models.ForeignKey(
        "org.Agency",
        on_delete=models.PROTECT,
        related_name="sold_products",
        verbose_name="agency",
    )
    sold_by = models.ForeignKey(
        "org.Person",
        on_delete=models.PROTECT,
        related_name="sold_products",
        verbose_name="sold by",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="sales",
        verbose_name="product",
    )
    date_sold = models.DateField("date sold", db_index=True)
    premium = models.DecimalField(
        "premium",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=PolicyStatus.choices,
        default=PolicyStatus.WRITTEN,
        db_index=True,
    )
    policy_number = models.CharField("policy number", max_length=60, blank=True)
    is_value_health = models.BooleanField("value health policy", default=False)
    is_value_life = models.BooleanField("value life policy", default=False)
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "sold product"
        verbose_name_plural = "sold products"
        ordering = ["-date_sold", "-created_at"]
        indexes = [
            models.Index(fields=["sold_by", "date_sold"], name="sold_person_date_idx"),
        ]

    def __str__(self):
        return f"{self.product.name} {self.date_sold:%Y-%m-%d} ({self.sold_by})"

    @property
    def flags(self) -> frozenset:
        return frozenset(name for name in self.FLAG_FIELDS if getattr(self, name))
