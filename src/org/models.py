"""Organisation models: Agency -> Team -> Role, and the people in them."""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from core.models import TimeStampedModel


class TeamType(models.TextChoices):
    SALES = "SALES", "Sales"
    CS = "CS", "Customer service"


class Agency(TimeStampedModel):
    """An insurance agency office."""

    name = models.CharField("name", max_length=160)
    code = models.SlugField("code", max_length=40, unique=True)
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "agency"
        verbose_name_plural = "agencies"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Team(TimeStampedModel):
    agency = models.ForeignKey(
        Agency,
        on_delete=models.CASCADE,
        related_name="teams",
        verbose_name="agency",
    )
    name = models.CharField("name", max_length=120)
    team_type = models.CharField(
        "team type",
        max_length=10,
        choices=TeamType.choices,
        default=TeamType.SALES,
    )

    class Meta:
        verbose_name = "team"
        verbose_name_plural = "teams"
        ordering = ["agency__name", "name"]
        unique_together = [["agency", "name"]]

    def __str__(self):
        return f"{self.name} ({self.agency})"


class Role(TimeStampedModel):
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name="roles",
        verbose_name="team",
    )
    name = models.CharField("name", max_length=120)

    class Meta:
        verbose_name = "role"
        verbose_name_plural = "roles"
        ordering = ["team__name", "name"]
        unique_together = [["team", "name"]]

    def __str__(self):
        return f"{self.name} / {self.team.name}"


class Person(TimeStampedModel):
    """A producer or service rep whose compensation is evaluated."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="person",
        verbose_name="login",
    )
    full_name = models.CharField("full name", max_length=160)
    email = models.EmailField("email", blank=True)
    primary_agency = models.ForeignKey(
        Agency,
        on_delete=models.PROTECT,
        related_name="people",
        verbose_name="primary agency",
    )
    team = models.ForeignKey(
        Team,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
        verbose_name="team",
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
        verbose_name="role",
    )
    team_type = models.CharField(
        "team type",
        max_length=10,
        choices=TeamType.choices,
        default=TeamType.SALES,
    )
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "person"
        verbose_name_plural = "people"
        ordering = ["full_name"]

    def __str__(self):
        return self.full_name

    def clean(self):
        if self.role_id and self.team_id and self.role.team_id != self.team_id:
            raise ValidationError({"role": "The role must belong to the person's team."})
        if self.team_id and self.primary_agency_id and self.team.agency_id != self.primary_agency_id:
            raise ValidationError({"team": "The team must belong to the primary agency."})
