"""Models for compensation plans, rule blocks, gates, assignments and statements."""
from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from compensation import components
from compensation.exceptions import ConfigurationError
from core.models import TimeStampedModel
from org.models import TeamType
from sales.models import PolicyStatus


def default_status_eligibility():
    return [PolicyStatus.ISSUED.value, PolicyStatus.PAID.value]


class PlanScope(models.TextChoices):
    PERSON = "PERSON", "Person"
    ROLE = "ROLE", "Role"
    TEAM = "TEAM", "Team"
    AGENCY = "AGENCY", "Agency"
    TEAM_TYPE = "TEAM_TYPE", "Team type"


class ComponentType(models.TextChoices):
    FLAT_PER_UNIT = components.FLAT_PER_UNIT, "Flat per app"
    TIERED_PER_UNIT = components.TIERED_PER_UNIT, "Tiered per app"
    PERCENT_FLAT = components.PERCENT_FLAT, "Percent of premium"
    PERCENT_TIER = components.PERCENT_TIER, "Tiered percent of premium"
    LUMP_SUM = components.LUMP_SUM, "Lump sum"
    TIERED_LUMP_SUM = components.TIERED_LUMP_SUM, "Tiered lump sum"
    ACTIVITY_PAY = components.ACTIVITY_PAY, "Activity pay"
    BONUS_VOLUME = components.BONUS_VOLUME, "Volume bonus"


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

class CompPlan(TimeStampedModel):
    """A compensation plan scoped to exactly one target.

    Only the target field matching ``scope`` may be set; ``clean`` rejects
    any other combination.
    """

    SCOPE_TARGETS = {
        PlanScope.PERSON: "person",
        PlanScope.ROLE: "role",
        PlanScope.TEAM: "team",
        PlanScope.AGENCY: "agency",
        PlanScope.TEAM_TYPE: "team_type",
    }

    name = models.CharField("name", max_length=160)
    description = models.TextField("description", blank=True, default="")
    scope = models.CharField("scope", max_length=12, choices=PlanScope.choices)
    person = models.ForeignKey(
        "org.Person",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="scoped_plans",
        verbose_name="person",
    )
    role = models.ForeignKey(
        "org.Role",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="scoped_plans",
        verbose_name="role",
    )
    team = models.ForeignKey(
        "org.Team",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="scoped_plans",
        verbose_name="team",
    )
    agency = models.ForeignKey(
        "org.Agency",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="scoped_plans",
        verbose_name="agency",
    )
    team_type = models.CharField("team type", max_length=10, choices=TeamType.choices, blank=True)
    is_default_for_team_type = models.BooleanField("default plan for team type", default=False)
    effective_from = models.DateField("effective from")
    is_active = models.BooleanField("active", default=True)
    default_status_eligibility = models.JSONField(
        "eligible policy statuses",
        default=default_status_eligibility,
        blank=True,
    )
    payout_cap = models.DecimalField(
        "payout cap",
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
    )

    class Meta:
        verbose_name = "compensation plan"
        verbose_name_plural = "compensation plans"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_scope_display()})"

    def clean(self) -> None:
        target_field = self.SCOPE_TARGETS.get(self.scope)
        if target_field is None:
            raise ValidationError({"scope": "Unknown plan scope."})

        errors = {}
        for field_name in self.SCOPE_TARGETS.values():
            value = self.team_type if field_name == "team_type" else getattr(self, f"{field_name}_id")
            if field_name == target_field and not value:
                errors[field_name] = f"Required for {self.get_scope_display().lower()} scope."
            elif field_name != target_field and value:
                errors[field_name] = f"Must be empty for {self.get_scope_display().lower()} scope."
        if self.is_default_for_team_type and self.scope != PlanScope.TEAM_TYPE:
            errors["is_default_for_team_type"] = "Only team-type plans can be team-type defaults."

        statuses = self.default_status_eligibility or []
        if not isinstance(statuses, list) or any(s not in PolicyStatus.values for s in statuses):
            errors["default_status_eligibility"] = "Expected a list of policy statuses."
        if errors:
            raise ValidationError(errors)

    @property
    def scope_target(self):
        field_name = self.SCOPE_TARGETS.get(self.scope)
        return getattr(self, field_name) if field_name else None

    def targets(self, person) -> bool:
        """True when this plan's scope selects ``person`` (an org.Person)."""
        from compensation.scope import matches
        from compensation.sources import person_snapshot, plan_snapshot

        return matches(plan_snapshot(self, include_rules=False), person_snapshot(person))


# ---------------------------------------------------------------------------
# Rule blocks
# ---------------------------------------------------------------------------

class RuleBlock(TimeStampedModel):
    """One payout rule within a plan, evaluated in ``display_order``."""

    plan = models.ForeignKey(
        CompPlan,
        on_delete=models.CASCADE,
        related_name="rule_blocks",
        verbose_name="plan",
    )
    name = models.CharField("name", max_length=160)
    display_order = models.PositiveIntegerField("display order")
    component_type = models.CharField("component type", max_length=20, choices=ComponentType.choices)
    config = models.JSONField("configuration", default=dict, blank=True)
    enabled = models.BooleanField("enabled", default=True)

    class Meta:
        verbose_name = "rule block"
        verbose_name_plural = "rule blocks"
        ordering = ["plan", "display_order"]
        constraints = [
            models.UniqueConstraint(
                fields=["plan", "display_order"],
                name="uniq_rule_block_order_per_plan",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.display_order}. {self.name}"

    def clean(self) -> None:
        self.component_type = components.canonical_type(self.component_type)
        try:
            self.parse()
        except ConfigurationError as exc:
            raise ValidationError({"config": str(exc)})

    def parse(self):
        return components.parse_component(self.component_type, self.config)


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------

class PlanGate(TimeStampedModel):
    """Minimum a plan (or some of its rule blocks) must reach to pay at all."""

    class GateType(models.TextChoices):
        MIN_APPS = "MIN_APPS", "Minimum apps"
        MIN_PREMIUM = "MIN_PREMIUM", "Minimum premium"
        MIN_BUCKET = "MIN_BUCKET", "Minimum bucket value"

    class Scope(models.TextChoices):
        PLAN = "PLAN", "Whole plan"
        RULE_BLOCKS = "RULE_BLOCKS", "Selected rule blocks"

    plan = models.ForeignKey(
        CompPlan,
        on_delete=models.CASCADE,
        related_name="gates",
        verbose_name="plan",
    )
    name = models.CharField("name", max_length=160)
    gate_type = models.CharField("gate type", max_length=12, choices=GateType.choices)
    threshold = models.DecimalField(
        "threshold",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    bucket = models.CharField("bucket key", max_length=80, blank=True)
    scope = models.CharField("applies to", max_length=12, choices=Scope.choices, default=Scope.PLAN)
    rule_blocks = models.ManyToManyField(
        RuleBlock,
        blank=True,
        related_name="gates",
        verbose_name="gated rule blocks",
    )
    enabled = models.BooleanField("enabled", default=True)

    class Meta:
        verbose_name = "plan gate"
        verbose_name_plural = "plan gates"
        ordering = ["plan", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.plan.name})"

    def clean(self) -> None:
        if self.gate_type == self.GateType.MIN_BUCKET and not self.bucket:
            raise ValidationError({"bucket": "A bucket key is required for bucket gates."})
        if self.gate_type != self.GateType.MIN_BUCKET and self.bucket:
            raise ValidationError({"bucket": "Only bucket gates take a bucket key."})


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

class PlanAssignment(TimeStampedModel):
    """Dated link between a person and a plan."""

    person = models.ForeignKey(
        "org.Person",
        on_delete=models.CASCADE,
        related_name="plan_assignments",
        verbose_name="person",
    )
    plan = models.ForeignKey(
        CompPlan,
        on_delete=models.CASCADE,
        related_name="assignments",
        verbose_name="plan",
    )
    effective_from = models.DateField("effective from")
    notes = models.CharField("notes", max_length=255, blank=True)

    class Meta:
        verbose_name = "plan assignment"
        verbose_name_plural = "plan assignments"
        ordering = ["person", "-effective_from"]
        constraints = [
            models.UniqueConstraint(
                fields=["person", "plan", "effective_from"],
                name="uniq_plan_assignment_date",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.person} -> {self.plan.name} from {self.effective_from}"

    def clean(self) -> None:
        if self.person_id and self.plan_id and not self.plan.targets(self.person):
            raise ValidationError({"plan": "This plan's scope does not cover the person."})


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

class CompensationStatement(TimeStampedModel):
    """Persisted snapshot of one evaluation for a person and period."""

    class Trigger(models.TextChoices):
        MANUAL = "MANUAL", "Manual"
        SIGNAL = "SIGNAL", "Data change"
        SCHEDULED = "SCHEDULED", "Scheduled"
        CLOSE = "CLOSE", "Period close"

    person = models.ForeignKey(
        "org.Person",
        on_delete=models.CASCADE,
        related_name="compensation_statements",
        verbose_name="person",
    )
    plan = models.ForeignKey(
        CompPlan,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="statements",
        verbose_name="plan",
    )
    period_start = models.DateField("period start")
    period_end = models.DateField("period end")
    total = models.DecimalField("total", max_digits=14, decimal_places=2, default=Decimal("0.00"))
    breakdown = models.JSONField("breakdown", default=list, blank=True)
    bucket_values = models.JSONField("bucket values", default=dict, blank=True)
    note = models.CharField("note", max_length=255, blank=True)
    trigger = models.CharField("trigger", max_length=12, choices=Trigger.choices, default=Trigger.MANUAL)
    is_final = models.BooleanField("final", default=False)
    computed_at = models.DateTimeField("computed at", null=True, blank=True)

    class Meta:
        verbose_name = "compensation statement"
        verbose_name_plural = "compensation statements"
        ordering = ["-period_start", "person__full_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["person", "period_start", "period_end"],
                name="uniq_statement_person_period",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.person} {self.period_start}..{self.period_end}: {self.total}"
