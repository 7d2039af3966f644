"""Signal and Celery task dispatch for statement recomputes."""
from datetime import date
from decimal import Decimal

import pytest

import compensation.tasks as compensation_tasks
from compensation.models import CompensationStatement
from compensation.tasks import close_previous_month, recompute_agency_period, recompute_person_statement


def _capture_delay(monkeypatch):
    calls = []

    def fake_delay(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr(compensation_tasks.recompute_person_statement, "delay", fake_delay)
    return calls


@pytest.mark.django_db
class TestSoldProductSignals:
    def test_new_sale_queues_its_month(self, monkeypatch, person, record_sales, django_capture_on_commit_callbacks):
        calls = _capture_delay(monkeypatch)
        with django_capture_on_commit_callbacks(execute=True):
            record_sales(person, "Auto Raw New", 1, day=date(2026, 3, 31))
        assert calls == [{"person_id": str(person.pk), "period": "2026-03"}]

    def test_moving_a_sale_refreshes_both_months(
        self, monkeypatch, person, record_sales, django_capture_on_commit_callbacks
    ):
        (sale,) = record_sales(person, "Auto Raw New", 1, day=date(2026, 3, 31))
        calls = _capture_delay(monkeypatch)
        with django_capture_on_commit_callbacks(execute=True):
            sale.date_sold = date(2026, 4, 1)
            sale.save()
        assert {call["period"] for call in calls} == {"2026-04", "2026-03"}

    def test_delete_queues_recompute(self, monkeypatch, person, record_sales, django_capture_on_commit_callbacks):
        (sale,) = record_sales(person, "Auto Raw New", 1)
        calls = _capture_delay(monkeypatch)
        with django_capture_on_commit_callbacks(execute=True):
            sale.delete()
        assert calls == [{"person_id": str(person.pk), "period": "2026-03"}]

    def test_nothing_queued_before_commit(self, monkeypatch, person, record_sales, django_capture_on_commit_callbacks):
        calls = _capture_delay(monkeypatch)
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            record_sales(person, "Auto Raw New", 1)
        assert calls == []
        assert len(callbacks) == 1

    def test_eager_task_writes_statement(self, person, default_plans, record_sales, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            record_sales(person, "Auto Raw New", 20)
        statement = CompensationStatement.objects.get(person=person)
        assert statement.trigger == CompensationStatement.Trigger.SIGNAL
        assert statement.total == Decimal("500.00")

    def test_falls_back_to_inline_recompute_when_queueing_fails(
        self, monkeypatch, person, default_plans, record_sales, django_capture_on_commit_callbacks
    ):
        def broken_delay(**kwargs):
            raise ConnectionError("broker down")

        monkeypatch.setattr(compensation_tasks.recompute_person_statement, "delay", broken_delay)
        with django_capture_on_commit_callbacks(execute=True):
            record_sales(person, "Auto Raw New", 20)
        assert CompensationStatement.objects.get(person=person).total == Decimal("500.00")


@pytest.mark.django_db
class TestActivitySignals:
    def test_activity_queues_its_month(self, monkeypatch, person, record_activity, django_capture_on_commit_callbacks):
        calls = _capture_delay(monkeypatch)
        with django_capture_on_commit_callbacks(execute=True):
            record_activity(person, "3 Line Bonus", 1, day=date(2026, 2, 3))
        assert calls == [{"person_id": str(person.pk), "period": "2026-02"}]


@pytest.mark.django_db
class TestTasks:
    def test_recompute_person_statement(self, person, default_plans, record_sales):
        record_sales(person, "Auto Raw New", 25)
        assert recompute_person_statement(person_id=str(person.pk), period="2026-03") == "625.00"

    def test_recompute_agency_period_fans_out(self, monkeypatch, agency, person, cs_person):
        calls = _capture_delay(monkeypatch)
        cs_person.is_active = False
        cs_person.save()

        assert recompute_agency_period(agency_id=str(agency.pk), period="2026-03") == 1
        assert calls == [{"person_id": str(person.pk), "period": "2026-03", "trigger": "SCHEDULED"}]

    def test_close_previous_month_skips_other_days(self, monkeypatch, person):
        monkeypatch.setattr(compensation_tasks, "date", _fixed_today(date(2026, 4, 2)))
        assert close_previous_month() == 0
        assert not CompensationStatement.objects.exists()

    def test_close_previous_month_finalizes(self, monkeypatch, person, default_plans, record_sales):
        record_sales(person, "Auto Raw New", 25)
        monkeypatch.setattr(compensation_tasks, "date", _fixed_today(date(2026, 4, 1)))

        assert close_previous_month() == 1

        statement = CompensationStatement.objects.get(person=person)
        assert statement.is_final is True
        assert statement.trigger == CompensationStatement.Trigger.CLOSE
        assert (statement.period_start, statement.period_end) == (date(2026, 3, 1), date(2026, 3, 31))
        assert statement.total == Decimal("625.00")


def _fixed_today(today):
    class FixedDate(date):
        @classmethod
        def today(cls):
            return today

    return FixedDate
