"""Activity services."""
from __future__ import annotations

from activities.models import ActivityType

DEFAULT_ACTIVITY_NAMES = (
    "FS Appointment Scheduled & Held",
    "3 Line Bonus",
    "4 Line Bonus",
)


def ensure_default_activity_types(agency) -> int:
    """Create the activity types the default compensation plans pay on."""
    created_count = 0
    for name in DEFAULT_ACTIVITY_NAMES:
        _, created = ActivityType.objects.get_or_create(agency=agency, name=name)
        created_count += int(created)
    return created_count
