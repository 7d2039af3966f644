import uuid
from datetime import date

import pytest
from django.urls import reverse

from compensation.models import CompensationStatement, CompPlan, PlanScope, RuleBlock


@pytest.fixture
def plan(db):
    return CompPlan.objects.create(
        name="Producer plan",
        scope=PlanScope.TEAM_TYPE,
        team_type="SALES",
        effective_from=date(2026, 1, 1),
    )


def _block_payload(plan, **overrides):
    payload = {
        "plan": str(plan.pk),
        "name": "Auto Adds",
        "component_type": "FLAT_PER_UNIT",
        "config": {"bucket": "auto_personal_adds_apps", "rate": 5},
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestPlanPermissions:
    def test_authenticated_user_can_list(self, user_client, plan):
        response = user_client.get(reverse("api:comp-plan-list"))
        assert response.status_code == 200
        assert response.data["results"][0]["name"] == "Producer plan"

    def test_non_staff_cannot_write(self, user_client):
        response = user_client.post(
            reverse("api:comp-plan-list"),
            {"name": "Mine", "scope": "TEAM_TYPE", "team_type": "SALES", "effective_from": "2026-01-01"},
            format="json",
        )
        assert response.status_code == 403

    def test_anonymous_is_rejected(self, client, plan):
        response = client.get(reverse("api:comp-plan-list"))
        assert response.status_code == 403


@pytest.mark.django_db
class TestPlanValidation:
    def test_scope_target_must_match(self, staff_client):
        response = staff_client.post(
            reverse("api:comp-plan-list"),
            {"name": "Role plan", "scope": "ROLE", "effective_from": "2026-01-01"},
            format="json",
        )
        assert response.status_code == 400
        assert "role" in response.data

    def test_create_team_type_plan(self, staff_client):
        response = staff_client.post(
            reverse("api:comp-plan-list"),
            {"name": "CS plan", "scope": "TEAM_TYPE", "team_type": "CS", "effective_from": "2026-01-01"},
            format="json",
        )
        assert response.status_code == 201
        assert response.data["default_status_eligibility"] == ["ISSUED", "PAID"]


@pytest.mark.django_db
class TestRuleBlockApi:
    def test_rejects_invalid_config(self, staff_client, plan):
        payload = _block_payload(
            plan,
            component_type="TIERED_PER_UNIT",
            config={
                "bucket": "pc_apps_total",
                "tiers": [{"min": 0, "max": 10, "rate": 1}, {"min": 5, "rate": 2}],
            },
        )
        response = staff_client.post(reverse("api:comp-rule-block-list"), payload, format="json")
        assert response.status_code == 400
        assert "overlaps" in str(response.data["config"])
        assert not RuleBlock.objects.exists()

    def test_rejects_malformed_legacy_bonus_config(self, staff_client, plan):
        payload = _block_payload(
            plan,
            component_type="BONUS_VOLUME",
            config={"requirements": {"pc_apps": 20}, "bonus_percents": {"pc": 0.02}, "buckets": ["pc_apps_total"]},
        )
        response = staff_client.post(reverse("api:comp-rule-block-list"), payload, format="json")
        assert response.status_code == 400
        assert "buckets must be an object" in str(response.data["config"])

    def test_display_order_appends_when_omitted(self, staff_client, plan):
        url = reverse("api:comp-rule-block-list")
        first = staff_client.post(url, _block_payload(plan), format="json")
        second = staff_client.post(url, _block_payload(plan, name="Second"), format="json")
        assert first.status_code == 201
        assert second.status_code == 201
        assert (first.data["display_order"], second.data["display_order"]) == (0, 1)

    def test_display_order_clash(self, staff_client, plan):
        url = reverse("api:comp-rule-block-list")
        staff_client.post(url, _block_payload(plan, display_order=3), format="json")
        response = staff_client.post(url, _block_payload(plan, name="Other", display_order=3), format="json")
        assert response.status_code == 400
        assert "display_order" in response.data

    def test_legacy_component_type_is_stored_canonically(self, staff_client, plan):
        response = staff_client.post(
            reverse("api:comp-rule-block-list"),
            _block_payload(plan, component_type="FLAT_PER_APP"),
            format="json",
        )
        assert response.status_code == 201
        assert response.data["component_type"] == "FLAT_PER_UNIT"

    def test_reorder(self, staff_client, plan):
        blocks = [
            RuleBlock.objects.create(plan=plan, name=name, display_order=index,
                                     component_type="LUMP_SUM", config={"amount": 1})
            for index, name in enumerate(["A", "B"])
        ]
        response = staff_client.post(
            reverse("api:comp-plan-reorder", args=[plan.pk]),
            {"ordered_ids": [str(blocks[1].pk), str(blocks[0].pk)]},
            format="json",
        )
        assert response.status_code == 200
        assert [row["name"] for row in response.data] == ["B", "A"]

    def test_reorder_rejects_partial_list(self, staff_client, plan):
        block = RuleBlock.objects.create(plan=plan, name="A", display_order=0,
                                         component_type="LUMP_SUM", config={"amount": 1})
        RuleBlock.objects.create(plan=plan, name="B", display_order=1,
                                 component_type="LUMP_SUM", config={"amount": 1})
        response = staff_client.post(
            reverse("api:comp-rule-block-reorder"),
            {"plan": str(plan.pk), "ordered_ids": [str(block.pk)]},
            format="json",
        )
        assert response.status_code == 400
        assert "ordered_ids" in response.data


@pytest.mark.django_db
class TestGateAndAssignmentApi:
    def test_rule_block_gate_needs_blocks(self, staff_client, plan):
        response = staff_client.post(
            reverse("api:comp-plan-gate-list"),
            {"plan": str(plan.pk), "name": "Floor", "gate_type": "MIN_APPS", "threshold": "10",
             "scope": "RULE_BLOCKS", "rule_blocks": []},
            format="json",
        )
        assert response.status_code == 400
        assert "rule_blocks" in response.data

    def test_bucket_gate_needs_bucket(self, staff_client, plan):
        response = staff_client.post(
            reverse("api:comp-plan-gate-list"),
            {"plan": str(plan.pk), "name": "Fire floor", "gate_type": "MIN_BUCKET", "threshold": "1000"},
            format="json",
        )
        assert response.status_code == 400
        assert "bucket" in response.data

    def test_assignment_outside_plan_scope(self, staff_client, plan, cs_person):
        response = staff_client.post(
            reverse("api:comp-assignment-list"),
            {"person": str(cs_person.pk), "plan": str(plan.pk), "effective_from": "2026-01-01"},
            format="json",
        )
        assert response.status_code == 400
        assert "plan" in response.data


@pytest.mark.django_db
class TestEvaluateAndStatements:
    def test_evaluate(self, user_client, person, default_plans, record_sales, march):
        record_sales(person, "Auto Raw New", 25)
        response = user_client.get(
            reverse("api:compensation-evaluate"),
            {"person": str(person.pk), "start": "2026-03-01", "end": "2026-03-31"},
        )
        assert response.status_code == 200
        assert response.data["total"] == "625.00"
        assert response.data["plan_name"] == "Sales Default Plan"
        assert not CompensationStatement.objects.exists()

    def test_evaluate_rejects_reversed_period(self, user_client, person):
        response = user_client.get(
            reverse("api:compensation-evaluate"),
            {"person": str(person.pk), "start": "2026-03-31", "end": "2026-03-01"},
        )
        assert response.status_code == 400

    def test_recompute_stores_statement(self, staff_client, person, default_plans, record_sales):
        record_sales(person, "Auto Raw New", 25)
        response = staff_client.post(
            reverse("api:comp-statement-recompute"),
            {"person": str(person.pk), "start": "2026-03-01", "end": "2026-03-31"},
            format="json",
        )
        assert response.status_code == 200
        assert response.data["total"] == "625.00"
        assert response.data["trigger"] == "MANUAL"

    def test_recompute_unknown_person(self, staff_client):
        response = staff_client.post(
            reverse("api:comp-statement-recompute"),
            {"person": str(uuid.uuid4()), "start": "2026-03-01", "end": "2026-03-31"},
            format="json",
        )
        assert response.status_code == 404

    def test_recompute_is_staff_only(self, user_client, person):
        response = user_client.post(
            reverse("api:comp-statement-recompute"),
            {"person": str(person.pk), "start": "2026-03-01", "end": "2026-03-31"},
            format="json",
        )
        assert response.status_code == 403

    def test_export_csv(self, user_client, person, default_plans, record_sales, march):
        from compensation.services import record_statement

        record_sales(person, "Auto Raw New", 25)
        record_statement(person.pk, *march)

        response = user_client.get(reverse("api:comp-statement-export-csv"))

        assert response.status_code == 200
        assert response["Content-Type"].startswith("text/csv")
        body = response.content.decode("utf-8-sig")
        assert body.splitlines()[0].startswith("Person,Plan,Period start")
        assert "Dana Reyes,Sales Default Plan,2026-03-01,2026-03-31,625.00,MANUAL,no" in body
