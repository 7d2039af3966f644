from datetime import date
from decimal import Decimal

import pytest

from activities.models import ActivityRecord, ActivityType
from activities.services import ensure_default_activity_types
from compensation.models import CompPlan
from compensation.services import seed_default_plans
from sales.models import PolicyStatus, SoldProduct


@pytest.fixture
def default_plans(person, catalog):
    """Seeded SALES/CS default plans with ``person`` assigned to the sales one."""
    seed_default_plans()
    return {plan.team_type: plan for plan in CompPlan.objects.filter(is_default_for_team_type=True)}


@pytest.fixture
def record_sales(agency, catalog):
    def _record(seller, product_name, count, *, day=date(2026, 3, 12), premium="500",
                status=PolicyStatus.ISSUED, **flags):
        return [
            SoldProduct.objects.create(
                agency=agency,
                sold_by=seller,
                product=catalog[product_name],
                date_sold=day,
                premium=Decimal(premium),
                status=status,
                **flags,
            )
            for _ in range(count)
        ]

    return _record


@pytest.fixture
def record_activity(agency):
    ensure_default_activity_types(agency)

    def _record(who, name, count, day=date(2026, 3, 12)):
        return ActivityRecord.objects.create(
            person=who,
            activity_type=ActivityType.objects.get(agency=agency, name=name),
            occurred_on=day,
            count=count,
        )

    return _record
