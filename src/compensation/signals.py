"""Signals: refresh compensation statements when sales or activities change."""
from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


def _get_period(day) -> str:
    return day.strftime("%Y-%m")


def _recompute_now(*, person_id, period: str) -> None:
    """Best-effort local recompute so statements are fresh without a worker."""
    from compensation.models import CompensationStatement
    from compensation.services import month_bounds, record_statement

    period_start, period_end = month_bounds(period)
    record_statement(person_id, period_start, period_end, CompensationStatement.Trigger.SIGNAL)


def _queue_recompute(*, person_id, period: str) -> None:
    sync_recompute = getattr(settings, "COMPENSATION_SYNC_RECOMPUTE", False)

    def _dispatch() -> None:
        queued = False
        try:
            from compensation.tasks import recompute_person_statement

            recompute_person_statement.delay(person_id=str(person_id), period=period)
            queued = True
        except Exception as exc:
            logger.warning("compensation async dispatch failed: %s", exc, exc_info=True)

        if sync_recompute or not queued:
            try:
                _recompute_now(person_id=person_id, period=period)
            except Exception as exc:
                level = logger.warning if queued else logger.error
                level("compensation sync recompute failed: %s", exc, exc_info=True)

    # Run after commit so the worker reads the committed sale/activity.
    try:
        transaction.on_commit(_dispatch)
    except Exception:
        _dispatch()


@receiver(pre_save, sender="sales.SoldProduct")
def on_sold_product_pre_save(sender, instance, **kwargs):
    """Capture the previous seller and date so a move refreshes both months."""
    if not getattr(instance, "pk", None):
        instance._previous_key = None
        return
    previous = sender.objects.filter(pk=instance.pk).only("sold_by_id", "date_sold").first()
    instance._previous_key = (previous.sold_by_id, previous.date_sold) if previous else None


@receiver(post_save, sender="sales.SoldProduct")
def on_sold_product_saved(sender, instance, **kwargs):
    current = (instance.sold_by_id, _get_period(instance.date_sold))
    _queue_recompute(person_id=current[0], period=current[1])
    previous_key = getattr(instance, "_previous_key", None)
    if previous_key is not None:
        previous = (previous_key[0], _get_period(previous_key[1]))
        if previous != current:
            _queue_recompute(person_id=previous[0], period=previous[1])


@receiver(post_delete, sender="sales.SoldProduct")
def on_sold_product_deleted(sender, instance, **kwargs):
    _queue_recompute(person_id=instance.sold_by_id, period=_get_period(instance.date_sold))


@receiver(post_save, sender="activities.ActivityRecord")
def on_activity_saved(sender, instance, **kwargs):
    _queue_recompute(person_id=instance.person_id, period=_get_period(instance.occurred_on))


@receiver(post_delete, sender="activities.ActivityRecord")
def on_activity_deleted(sender, instance, **kwargs):
    _queue_recompute(person_id=instance.person_id, period=_get_period(instance.occurred_on))
