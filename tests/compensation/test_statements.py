import uuid
from datetime import date
from decimal import Decimal

import pytest

from compensation.models import CompensationStatement
from compensation.services import evaluate_person, month_bounds, record_statement
from compensation.sources import DatabaseSource
from sales.models import PolicyStatus


class TestMonthBounds:
    def test_period_string(self):
        assert month_bounds("2026-02") == (date(2026, 2, 1), date(2026, 2, 28))

    def test_date_in_month(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    @pytest.mark.parametrize("bad", ["2026", "2026-13", "march"])
    def test_rejects_malformed_period(self, bad):
        with pytest.raises(ValueError):
            month_bounds(bad)


@pytest.mark.django_db
class TestDatabaseSource:
    def test_catalog_exposes_builtin_buckets_and_agency_products(self, person, catalog):
        snapshot = DatabaseSource().get_catalog(str(person.primary_agency_id))
        assert "auto_personal_raw_new_apps" in snapshot.buckets
        assert snapshot.product(str(catalog["Homeowners"].pk)).lob_name == "Fire"

    def test_unknown_or_malformed_person_is_none(self, db):
        source = DatabaseSource()
        assert source.get_person(uuid.uuid4()) is None
        assert source.get_person("not-a-uuid") is None

    def test_activity_counts_sum_per_type(self, person, record_activity, march):
        record_activity(person, "3 Line Bonus", 2)
        record_activity(person, "3 Line Bonus", 1)
        record_activity(person, "4 Line Bonus", 1, day=date(2026, 4, 1))
        assert DatabaseSource().activity_counts(person.pk, *march) == {"3 Line Bonus": 3}


@pytest.mark.django_db
class TestEvaluatePerson:
    def test_default_sales_plan(self, person, default_plans, record_sales, record_activity, march):
        record_sales(person, "Auto Raw New", 25)
        record_sales(person, "Auto Raw New", 4, status=PolicyStatus.WRITTEN)
        record_activity(person, "FS Appointment Scheduled & Held", 2)

        result = evaluate_person(person.pk, *march)

        assert result.plan_id == str(default_plans["SALES"].pk)
        assert result.total == Decimal("645.00")
        lines = {line.rule_name: line for line in result.breakdown}
        assert lines["Auto Personal Raw New"].payout == Decimal("625.00")
        assert lines["Sales Activity Pay"].payout == Decimal("20.00")

    def test_health_value_flag_pays_override_rate(self, person, default_plans, record_sales, march):
        record_sales(person, "Hospital Indemnity", 1, premium="300")
        record_sales(person, "Hospital Indemnity", 1, premium="200", is_value_health=True)

        result = evaluate_person(person.pk, *march)

        line = next(line for line in result.breakdown if line.rule_name == "Health Premium")
        assert line.payout == Decimal("82.00")

    def test_person_without_assignment(self, person, march):
        result = evaluate_person(person.pk, *march)
        assert result.total == Decimal("0.00")
        assert result.note == "no effective plan"


@pytest.mark.django_db
class TestRecordStatement:
    def test_persists_result(self, person, default_plans, record_sales, march):
        record_sales(person, "Auto Raw New", 25)

        statement = record_statement(person.pk, *march)

        assert statement.total == Decimal("625.00")
        assert statement.plan == default_plans["SALES"]
        assert statement.trigger == CompensationStatement.Trigger.MANUAL
        assert statement.bucket_values["auto_personal_raw_new_apps"] == "25"
        assert statement.breakdown[0]["payout"] == "625.00"
        assert statement.computed_at is not None

    def test_recompute_updates_same_row(self, person, default_plans, record_sales, march):
        record_sales(person, "Auto Raw New", 10)
        first = record_statement(person.pk, *march)
        record_sales(person, "Auto Raw New", 10)
        second = record_statement(person.pk, *march)

        assert first.pk == second.pk
        assert second.total == Decimal("500.00")
        assert CompensationStatement.objects.count() == 1

    def test_final_statement_is_frozen(self, person, default_plans, record_sales, march):
        record_sales(person, "Auto Raw New", 10)
        record_statement(person.pk, *march, finalize=True)
        record_sales(person, "Auto Raw New", 10)

        statement = record_statement(person.pk, *march)

        assert statement.is_final is True
        assert statement.total == Decimal("100.00")

    def test_unknown_person(self, db, march):
        assert record_statement(uuid.uuid4(), *march) is None
        assert not CompensationStatement.objects.exists()
