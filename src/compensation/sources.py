"""ORM loader: copies the rows an evaluation needs into engine snapshots."""
from __future__ import annotations

import logging
from datetime import date

from django.core.exceptions import ValidationError
from django.db.models import Sum

from compensation.buckets import BUILTIN_BUCKETS, BucketDefinition
from compensation.snapshots import (
    AssignmentSnapshot,
    Catalog,
    GateSnapshot,
    PersonSnapshot,
    PlanSnapshot,
    ProductInfo,
    RuleSnapshot,
    SoldRecord,
)

logger = logging.getLogger(__name__)


def _sid(value) -> str | None:
    return None if value is None else str(value)


def person_snapshot(person) -> PersonSnapshot:
    return PersonSnapshot(
        id=str(person.pk),
        full_name=person.full_name,
        agency_id=_sid(person.primary_agency_id),
        team_id=_sid(person.team_id),
        role_id=_sid(person.role_id),
        team_type=person.team_type,
    )


def rule_snapshot(rule) -> RuleSnapshot:
    return RuleSnapshot(
        id=str(rule.pk),
        name=rule.name,
        display_order=rule.display_order,
        component_type=rule.component_type,
        config=rule.config or {},
        enabled=rule.enabled,
    )


def gate_snapshot(gate) -> GateSnapshot:
    return GateSnapshot(
        id=str(gate.pk),
        name=gate.name,
        gate_type=gate.gate_type,
        threshold=gate.threshold,
        scope=gate.scope,
        bucket=gate.bucket,
        rule_ids=frozenset(str(rule.pk) for rule in gate.rule_blocks.all()),
        enabled=gate.enabled,
    )


def plan_snapshot(plan, include_rules: bool = True) -> PlanSnapshot:
    rules = ()
    gates = ()
    if include_rules and plan.pk:
        rules = tuple(rule_snapshot(rule) for rule in plan.rule_blocks.all())
        gates = tuple(gate_snapshot(gate) for gate in plan.gates.all())
    return PlanSnapshot(
        id=str(plan.pk),
        name=plan.name,
        scope=plan.scope,
        effective_from=plan.effective_from,
        person_id=_sid(plan.person_id),
        role_id=_sid(plan.role_id),
        team_id=_sid(plan.team_id),
        agency_id=_sid(plan.agency_id),
        team_type=plan.team_type or "",
        is_active=plan.is_active,
        default_statuses=tuple(plan.default_status_eligibility or ()),
        payout_cap=plan.payout_cap,
        rules=rules,
        gates=gates,
    )


def bucket_definition(bucket) -> BucketDefinition:
    return BucketDefinition(
        key=bucket.key,
        name=bucket.name,
        measure=bucket.measure,
        includes_lobs=bucket.includes_lobs or (),
        includes_products=bucket.includes_products or (),
        excludes_lobs=bucket.excludes_lobs or (),
        excludes_products=bucket.excludes_products or (),
    )


class DatabaseSource:
    """Engine source backed by the Django ORM."""

    def get_person(self, person_id) -> PersonSnapshot | None:
        from org.models import Person

        try:
            person = Person.objects.get(pk=person_id)
        except (Person.DoesNotExist, ValidationError, ValueError):
            return None
        return person_snapshot(person)

    def get_catalog(self, agency_id) -> Catalog:
        from catalog.models import PremiumBucket, Product

        products = {}
        for product in Product.objects.filter(line_of_business__agency_id=agency_id).select_related(
            "line_of_business"
        ):
            lob = product.line_of_business
            products[str(product.pk)] = ProductInfo(
                id=str(product.pk),
                name=product.name,
                product_type=product.product_type,
                lob_id=str(lob.pk),
                lob_name=lob.name,
                premium_category=lob.premium_category,
            )

        buckets = dict(BUILTIN_BUCKETS)
        for bucket in PremiumBucket.objects.filter(agency_id=agency_id):
            buckets[bucket.key] = bucket_definition(bucket)
        return Catalog(products=products, buckets=buckets)

    def sold_records(self, person_id, period_start: date, period_end: date) -> list:
        from sales.models import SoldProduct

        queryset = SoldProduct.objects.filter(
            sold_by_id=person_id,
            date_sold__gte=period_start,
            date_sold__lte=period_end,
        ).order_by("date_sold", "id")
        return [
            SoldRecord(
                id=str(sold.pk),
                product_id=str(sold.product_id),
                date_sold=sold.date_sold,
                premium=sold.premium,
                status=sold.status,
                flags=sold.flags,
            )
            for sold in queryset
        ]

    def activity_counts(self, person_id, period_start: date, period_end: date) -> dict:
        from activities.models import ActivityRecord

        rows = (
            ActivityRecord.objects.filter(
                person_id=person_id,
                occurred_on__gte=period_start,
                occurred_on__lte=period_end,
            )
            .values("activity_type__name")
            .annotate(total=Sum("count"))
        )
        return {row["activity_type__name"]: row["total"] or 0 for row in rows}

    def assignments_for(self, person_id) -> list:
        from compensation.models import PlanAssignment

        queryset = (
            PlanAssignment.objects.filter(person_id=person_id)
            .select_related("plan")
            .prefetch_related("plan__rule_blocks", "plan__gates__rule_blocks")
        )
        return [
            AssignmentSnapshot(
                id=str(assignment.pk),
                person_id=str(assignment.person_id),
                plan=plan_snapshot(assignment.plan),
                effective_from=assignment.effective_from,
                created_at=assignment.created_at,
            )
            for assignment in queryset
        ]
