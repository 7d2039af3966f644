"""Models for activity logging (appointments, line bonuses, ...)."""
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class ActivityType(TimeStampedModel):
    agency = models.ForeignKey(
        "org.Agency",
        on_delete=models.CASCADE,
        related_name="activity_types",
        verbose_name="agency",
    )
    name = models.CharField("name", max_length=120)
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "activity type"
        verbose_name_plural = "activity types"
        ordering = ["name"]
        unique_together = [["agency", "name"]]

    def __str__(self):
        return self.name


class ActivityRecord(TimeStampedModel):
    """A count of one activity logged by a person on a given day."""

    person = models.ForeignKey(
        "org.Person",
        on_delete=models.CASCADE,
        related_name="activity_records",
        verbose_name="person",
    )
    activity_type = models.ForeignKey(
        ActivityType,
        on_delete=models.PROTECT,
        related_name="records",
        verbose_name="activity",
    )
    occurred_on = models.DateField("date", db_index=True)
    count = models.PositiveIntegerField("count", default=1, validators=[MinValueValidator(1)])
    notes = models.CharField("notes", max_length=255, blank=True)

    class Meta:
        verbose_name = "activity record"
        verbose_name_plural = "activity records"
        ordering = ["-occurred_on", "-created_at"]

    def __str__(self):
        return f"{self.activity_type.name} x{self.count} ({self.person}, {self.occurred_on})"
