import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import compensation.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("org", "0001_initial"),
        ("catalog", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CompPlan",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("name", models.CharField(max_length=160, verbose_name="name")),
                ("description", models.TextField(blank=True, default="", verbose_name="description")),
                (
                    "scope",
                    models.CharField(
                        choices=[
                            ("PERSON", "Person"),
                            ("ROLE", "Role"),
                            ("TEAM", "Team"),
                            ("AGENCY", "Agency"),
                            ("TEAM_TYPE", "Team type"),
                        ],
                        max_length=12,
                        verbose_name="scope",
                    ),
                ),
                (
                    "team_type",
                    models.CharField(
                        blank=True,
                        choices=[("SALES", "Sales"), ("CS", "Customer service")],
                        max_length=10,
                        verbose_name="team type",
                    ),
                ),
                (
                    "is_default_for_team_type",
                    models.BooleanField(default=False, verbose_name="default plan for team type"),
                ),
                ("effective_from", models.DateField(verbose_name="effective from")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                (
                    "default_status_eligibility",
                    models.JSONField(
                        blank=True,
                        default=compensation.models.default_status_eligibility,
                        verbose_name="eligible policy statuses",
                    ),
                ),
                (
                    "payout_cap",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=14,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="payout cap",
                    ),
                ),
                (
                    "agency",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scoped_plans",
                        to="org.agency",
                        verbose_name="agency",
                    ),
                ),
                (
                    "person",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scoped_plans",
                        to="org.person",
                        verbose_name="person",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scoped_plans",
                        to="org.role",
                        verbose_name="role",
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scoped_plans",
                        to="org.team",
                        verbose_name="team",
                    ),
                ),
            ],
            options={
                "verbose_name": "compensation plan",
                "verbose_name_plural": "compensation plans",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RuleBlock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("name", models.CharField(max_length=160, verbose_name="name")),
                ("display_order", models.PositiveIntegerField(verbose_name="display order")),
                (
                    "component_type",
                    models.CharField(
                        choices=[
                            ("FLAT_PER_UNIT", "Flat per app"),
                            ("TIERED_PER_UNIT", "Tiered per app"),
                            ("PERCENT_FLAT", "Percent of premium"),
                            ("PERCENT_TIER", "Tiered percent of premium"),
                            ("LUMP_SUM", "Lump sum"),
                            ("TIERED_LUMP_SUM", "Tiered lump sum"),
                            ("ACTIVITY_PAY", "Activity pay"),
                            ("BONUS_VOLUME", "Volume bonus"),
                        ],
                        max_length=20,
                        verbose_name="component type",
                    ),
                ),
                ("config", models.JSONField(blank=True, default=dict, verbose_name="configuration")),
                ("enabled", models.BooleanField(default=True, verbose_name="enabled")),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rule_blocks",
                        to="compensation.compplan",
                        verbose_name="plan",
                    ),
                ),
            ],
            options={
                "verbose_name": "rule block",
                "verbose_name_plural": "rule blocks",
                "ordering": ["plan", "display_order"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("plan", "display_order"),
                        name="uniq_rule_block_order_per_plan",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PlanGate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("name", models.CharField(max_length=160, verbose_name="name")),
                (
                    "gate_type",
                    models.CharField(
                        choices=[
                            ("MIN_APPS", "Minimum apps"),
                            ("MIN_PREMIUM", "Minimum premium"),
                            ("MIN_BUCKET", "Minimum bucket value"),
                        ],
                        max_length=12,
                        verbose_name="gate type",
                    ),
                ),
                (
                    "threshold",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="threshold",
                    ),
                ),
                ("bucket", models.CharField(blank=True, max_length=80, verbose_name="bucket key")),
                (
                    "scope",
                    models.CharField(
                        choices=[("PLAN", "Whole plan"), ("RULE_BLOCKS", "Selected rule blocks")],
                        default="PLAN",
                        max_length=12,
                        verbose_name="applies to",
                    ),
                ),
                ("enabled", models.BooleanField(default=True, verbose_name="enabled")),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="gates",
                        to="compensation.compplan",
                        verbose_name="plan",
                    ),
                ),
                (
                    "rule_blocks",
                    models.ManyToManyField(
                        blank=True,
                        related_name="gates",
                        to="compensation.ruleblock",
                        verbose_name="gated rule blocks",
                    ),
                ),
            ],
            options={
                "verbose_name": "plan gate",
                "verbose_name_plural": "plan gates",
                "ordering": ["plan", "name"],
            },
        ),
        migrations.CreateModel(
            name="PlanAssignment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("effective_from", models.DateField(verbose_name="effective from")),
                ("notes", models.CharField(blank=True, max_length=255, verbose_name="notes")),
                (
                    "person",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="plan_assignments",
                        to="org.person",
                        verbose_name="person",
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="compensation.compplan",
                        verbose_name="plan",
                    ),
                ),
            ],
            options={
                "verbose_name": "plan assignment",
                "verbose_name_plural": "plan assignments",
                "ordering": ["person", "-effective_from"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("person", "plan", "effective_from"),
                        name="uniq_plan_assignment_date",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CompensationStatement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("period_start", models.DateField(verbose_name="period start")),
                ("period_end", models.DateField(verbose_name="period end")),
                (
                    "total",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        verbose_name="total",
                    ),
                ),
                ("breakdown", models.JSONField(blank=True, default=list, verbose_name="breakdown")),
                ("bucket_values", models.JSONField(blank=True, default=dict, verbose_name="bucket values")),
                ("note", models.CharField(blank=True, max_length=255, verbose_name="note")),
                (
                    "trigger",
                    models.CharField(
                        choices=[
                            ("MANUAL", "Manual"),
                            ("SIGNAL", "Data change"),
                            ("SCHEDULED", "Scheduled"),
                            ("CLOSE", "Period close"),
                        ],
                        default="MANUAL",
                        max_length=12,
                        verbose_name="trigger",
                    ),
                ),
                ("is_final", models.BooleanField(default=False, verbose_name="final")),
                ("computed_at", models.DateTimeField(blank=True, null=True, verbose_name="computed at")),
                (
                    "person",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="compensation_statements",
                        to="org.person",
                        verbose_name="person",
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="statements",
                        to="compensation.compplan",
                        verbose_name="plan",
                    ),
                ),
            ],
            options={
                "verbose_name": "compensation statement",
                "verbose_name_plural": "compensation statements",
                "ordering": ["-period_start", "person__full_name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("person", "period_start", "period_end"),
                        name="uniq_statement_person_period",
                    ),
                ],
            },
        ),
    ]
