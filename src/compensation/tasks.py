"""Celery tasks for compensation statements."""
from __future__ import annotations

import logging
from datetime import date, timedelta

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def recompute_person_statement(self, *, person_id: str, period: str, trigger: str = "SIGNAL"):
    """Re-evaluate one person's statement for a ``YYYY-MM`` period."""
    try:
        from compensation.services import month_bounds, record_statement

        period_start, period_end = month_bounds(period)
        statement = record_statement(person_id, period_start, period_end, trigger)
        logger.info("Recomputed compensation for person=%s period=%s", person_id, period)
        return str(statement.total) if statement is not None else None
    except Exception as exc:
        logger.exception("recompute_person_statement failed: %s", exc)
        raise self.retry(exc=exc)


@shared_task
def recompute_agency_period(*, agency_id: str, period: str, trigger: str = "SCHEDULED"):
    """Queue a statement recompute for every active person of an agency."""
    from org.models import Person

    person_ids = list(
        Person.objects.filter(primary_agency_id=agency_id, is_active=True).values_list("id", flat=True)
    )
    for person_id in person_ids:
        recompute_person_statement.delay(person_id=str(person_id), period=period, trigger=trigger)
    logger.info(
        "Queued compensation recompute agency=%s period=%s (%d people)",
        agency_id,
        period,
        len(person_ids),
    )
    return len(person_ids)


@shared_task
def close_previous_month():
    """
    Scheduled daily (Celery Beat). Only runs logic on the 1st of each month.
    Writes a final statement for every active person for the previous month.
    """
    from compensation.models import CompensationStatement
    from compensation.services import month_bounds, record_statement
    from org.models import Person

    today = date.today()
    # Guard: only run on day 1 of month
    if today.day != 1:
        logger.debug("close_previous_month: skipping (today is day %d)", today.day)
        return 0

    period_start, period_end = month_bounds(today - timedelta(days=1))
    closed = 0
    for person_id in Person.objects.filter(is_active=True).values_list("id", flat=True):
        try:
            record_statement(
                person_id,
                period_start,
                period_end,
                CompensationStatement.Trigger.CLOSE,
                finalize=True,
            )
            closed += 1
        except Exception:
            logger.exception("close_previous_month failed for person=%s", person_id)
    logger.info("Closed compensation period %s..%s (%d statements)", period_start, period_end, closed)
    return closed
