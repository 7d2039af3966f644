"""Celery configuration."""
import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings.dev"),
)

app = Celery("agencydesk")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Beat schedule
app.conf.beat_schedule = {
    "compensation-close-month": {
        "task": "compensation.tasks.close_previous_month",
        "schedule": crontab(minute=30, hour=0),  # Daily at 00:30, acts on the 1st
    },
}
