"""Compensation services: evaluation entry point, statements, reorder, seeding."""
from __future__ import annotations

import calendar
import logging
from datetime import date

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from compensation.engine import DEFAULT_STATUSES, CompensationEngine, EvaluationResult
from compensation.models import (
    CompensationStatement,
    CompPlan,
    PlanAssignment,
    PlanScope,
    RuleBlock,
)
from compensation.payout import PayoutEvaluator
from compensation.sources import DatabaseSource
from org.models import Person, TeamType

logger = logging.getLogger("agencydesk")


def month_bounds(period: str | date) -> tuple[date, date]:
    """Return (first day, last day) of a ``YYYY-MM`` period or of a date's month."""
    if isinstance(period, date):
        year, month = period.year, period.month
    else:
        try:
            year_str, month_str = str(period).split("-", 1)
            year, month = int(year_str), int(month_str)
        except ValueError:
            raise ValueError(f"Invalid period '{period}', expected YYYY-MM") from None
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid period '{period}', expected YYYY-MM")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def build_engine(source=None) -> CompensationEngine:
    evaluator = PayoutEvaluator(
        currency_symbol=getattr(settings, "COMPENSATION_CURRENCY_SYMBOL", "$"),
    )
    statuses = getattr(settings, "COMPENSATION_DEFAULT_STATUSES", None) or DEFAULT_STATUSES
    return CompensationEngine(source or DatabaseSource(), evaluator=evaluator, default_statuses=statuses)


def evaluate_person(person_id, period_start: date, period_end: date) -> EvaluationResult:
    """Evaluate ``person_id`` over the inclusive period against the database."""
    return build_engine().evaluate(person_id, period_start, period_end)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

def record_statement(
    person_id,
    period_start: date,
    period_end: date,
    trigger: str = CompensationStatement.Trigger.MANUAL,
    *,
    finalize: bool = False,
) -> CompensationStatement | None:
    """Evaluate and persist the result as the person's statement for the period.

    Final statements are frozen: they are returned untouched. Returns None
    when the person does not exist.
    """
    if not Person.objects.filter(pk=person_id).exists():
        logger.warning("record_statement: unknown person=%s", person_id)
        return None

    existing = CompensationStatement.objects.filter(
        person_id=person_id,
        period_start=period_start,
        period_end=period_end,
    ).first()
    if existing is not None and existing.is_final:
        logger.info(
            "Statement for person=%s period=%s..%s is final, skipping",
            person_id,
            period_start,
            period_end,
        )
        return existing

    result = evaluate_person(person_id, period_start, period_end)
    with transaction.atomic():
        statement, _ = CompensationStatement.objects.update_or_create(
            person_id=person_id,
            period_start=period_start,
            period_end=period_end,
            defaults={
                "plan_id": result.plan_id,
                "total": result.total,
                "breakdown": [line.as_dict() for line in result.breakdown],
                "bucket_values": dict(result.bucket_values),
                "note": result.note[:255],
                "trigger": trigger,
                "is_final": finalize,
                "computed_at": timezone.now(),
            },
        )
    logger.info(
        "Statement recorded person=%s period=%s..%s total=%s trigger=%s",
        person_id,
        period_start,
        period_end,
        statement.total,
        trigger,
    )
    return statement


# ---------------------------------------------------------------------------
# Rule block ordering
# ---------------------------------------------------------------------------

# Rows move above this offset first so the (plan, display_order) unique
# constraint never sees two blocks on the same order mid-rewrite.
_REORDER_OFFSET = 100000


def reorder_rule_blocks(plan: CompPlan, ordered_ids) -> list[RuleBlock]:
    """Rewrite ``display_order`` of every block of ``plan`` to match ``ordered_ids``.

    ``ordered_ids`` must list each of the plan's rule blocks exactly once.
    """
    ordered_ids = [str(pk) for pk in ordered_ids]
    with transaction.atomic():
        blocks = {
            str(block.pk): block
            for block in RuleBlock.objects.select_for_update().filter(plan=plan)
        }
        if len(ordered_ids) != len(set(ordered_ids)) or set(ordered_ids) != set(blocks):
            raise ValueError("ordered_ids must list every rule block of the plan exactly once")

        for index, pk in enumerate(ordered_ids):
            RuleBlock.objects.filter(pk=pk).update(display_order=_REORDER_OFFSET + index)
        for index, pk in enumerate(ordered_ids):
            RuleBlock.objects.filter(pk=pk).update(display_order=index)

    logger.info("Reordered %d rule blocks on plan=%s", len(ordered_ids), plan.pk)
    return list(RuleBlock.objects.filter(plan=plan).order_by("display_order"))


# ---------------------------------------------------------------------------
# Default plans
# ---------------------------------------------------------------------------

_PERCENT_TIERS_COMMERCIAL = [
    {"min": 0, "max": 50000, "percent": 0.02},
    {"min": 50000.01, "percent": 0.03},
]

SALES_RULE_BLOCKS = [
    {
        "name": "Auto Personal Raw New",
        "component_type": "TIERED_PER_UNIT",
        "config": {
            "bucket": "auto_personal_raw_new_apps",
            "tiers": [
                {"min": 0, "max": 19, "rate": 10},
                {"min": 20, "max": 30, "rate": 25},
                {"min": 31, "rate": 40},
            ],
        },
    },
    {
        "name": "Auto Personal Adds",
        "component_type": "FLAT_PER_UNIT",
        "config": {"bucket": "auto_personal_adds_apps", "rate": 5},
    },
    {
        "name": "Business Auto Premium",
        "component_type": "PERCENT_TIER",
        "config": {"bucket": "business_auto_premium", "tiers": _PERCENT_TIERS_COMMERCIAL},
    },
    {
        "name": "Business Auto Adds",
        "component_type": "PERCENT_FLAT",
        "config": {"bucket": "business_auto_adds_premium", "percent": 0.005},
    },
    {
        "name": "Fire Personal",
        "component_type": "PERCENT_FLAT",
        "config": {"bucket": "fire_personal_premium", "percent": 0.03},
    },
    {
        "name": "Business Fire Premium",
        "component_type": "PERCENT_TIER",
        "config": {"bucket": "business_fire_premium", "tiers": _PERCENT_TIERS_COMMERCIAL},
    },
    {
        "name": "Health Premium",
        "component_type": "PERCENT_TIER",
        "config": {
            "bucket": "health_premium",
            "tiers": [
                {"min": 0, "max": 400, "percent": 0.10},
                {"min": 401, "max": 800, "percent": 0.14},
                {"min": 801, "percent": 0.18},
            ],
            "flag_overrides": [{"flag": "is_value_health", "percent": 0.20}],
        },
    },
    {
        "name": "Life Premium",
        "component_type": "PERCENT_TIER",
        "config": {
            "bucket": "life_premium",
            "tiers": [
                {"min": 0, "max": 3000, "percent": 0.10},
                {"min": 3001, "max": 6000, "percent": 0.14},
                {"min": 6001, "percent": 0.18},
            ],
            "flag_overrides": [{"flag": "is_value_life", "percent": 0.20}],
        },
    },
    {
        "name": "Sales Activity Pay",
        "component_type": "ACTIVITY_PAY",
        "config": {
            "activities": [
                {"activity": "FS Appointment Scheduled & Held", "amount": 10},
                {"activity": "3 Line Bonus", "amount": 7},
                {"activity": "4 Line Bonus", "amount": 10},
            ],
        },
    },
]

CS_RULE_BLOCKS = [block for block in SALES_RULE_BLOCKS if block["name"] != "Sales Activity Pay"] + [
    {
        "name": "Large Bonus (P&C + FS)",
        "component_type": "BONUS_VOLUME",
        "config": {
            "requirements": [
                {"bucket": "pc_apps_total", "min": 20},
                {"bucket": "fs_apps_total", "min": 12},
            ],
            "payouts": [
                {"bucket": "pc_premium", "percent": 0.02},
                {"bucket": "fs_premium", "percent": 0.04},
            ],
        },
    },
    {
        "name": "CS Activity Pay",
        "component_type": "ACTIVITY_PAY",
        "config": {"activities": [{"activity": "FS Appointment Scheduled & Held", "amount": 10}]},
    },
]

DEFAULT_PLANS = {
    TeamType.SALES: ("Sales Default Plan", SALES_RULE_BLOCKS),
    TeamType.CS: ("Customer Service Default Plan", CS_RULE_BLOCKS),
}

DEFAULT_PLAN_EFFECTIVE_FROM = date(2000, 1, 1)


def _sync_rule_blocks(plan: CompPlan, definitions) -> int:
    """Upsert ``definitions`` by name in list order; returns how many were created."""
    wanted = [d["name"] for d in definitions]
    existing = {block.name: block for block in plan.rule_blocks.all()}

    # Park every kept block on a free order before renumbering.
    for offset, block in enumerate(existing.values()):
        RuleBlock.objects.filter(pk=block.pk).update(display_order=_REORDER_OFFSET + offset)

    created = 0
    for index, definition in enumerate(definitions):
        block = existing.get(definition["name"])
        if block is None:
            block = RuleBlock(plan=plan, name=definition["name"])
            created += 1
        block.display_order = index
        block.component_type = definition["component_type"]
        block.config = definition["config"]
        block.full_clean()
        block.save()

    # Blocks an administrator added to a default plan are kept after the defaults.
    extras = [block for name, block in existing.items() if name not in wanted]
    for offset, block in enumerate(sorted(extras, key=lambda b: b.created_at), start=len(definitions)):
        RuleBlock.objects.filter(pk=block.pk).update(display_order=offset)
    return created


@transaction.atomic
def seed_default_plans(effective_from: date | None = None) -> dict:
    """Create or refresh the SALES and CS default plans and assign them.

    Idempotent: rule blocks are matched by name, assignments are only added
    for people who do not have one on the default plan yet.
    """
    effective_from = effective_from or DEFAULT_PLAN_EFFECTIVE_FROM
    summary = {"plans_created": 0, "rule_blocks_created": 0, "assignments_created": 0}

    for team_type, (name, definitions) in DEFAULT_PLANS.items():
        plan = CompPlan.objects.filter(
            scope=PlanScope.TEAM_TYPE,
            team_type=team_type,
            is_default_for_team_type=True,
        ).first()
        if plan is None:
            plan = CompPlan.objects.create(
                name=name,
                scope=PlanScope.TEAM_TYPE,
                team_type=team_type,
                is_default_for_team_type=True,
                effective_from=effective_from,
            )
            summary["plans_created"] += 1

        summary["rule_blocks_created"] += _sync_rule_blocks(plan, definitions)

        for person in Person.objects.filter(team_type=team_type, is_active=True):
            if PlanAssignment.objects.filter(person=person, plan=plan).exists():
                continue
            PlanAssignment.objects.create(person=person, plan=plan, effective_from=plan.effective_from)
            summary["assignments_created"] += 1

    logger.info(
        "Default plans seeded (%d plans, %d rule blocks, %d assignments created)",
        summary["plans_created"],
        summary["rule_blocks_created"],
        summary["assignments_created"],
    )
    return summary
