"""Point-in-time plan assignment precedence."""
from __future__ import annotations

import logging
from datetime import date

from compensation.scope import (
    PLAN_SCOPE_AGENCY,
    PLAN_SCOPE_PERSON,
    PLAN_SCOPE_ROLE,
    PLAN_SCOPE_TEAM,
    PLAN_SCOPE_TEAM_TYPE,
    matches,
)

logger = logging.getLogger(__name__)

# Most specific first.
SCOPE_PRECEDENCE = (
    PLAN_SCOPE_PERSON,
    PLAN_SCOPE_ROLE,
    PLAN_SCOPE_TEAM,
    PLAN_SCOPE_AGENCY,
    PLAN_SCOPE_TEAM_TYPE,
)
_RANK = {scope: rank for rank, scope in enumerate(SCOPE_PRECEDENCE)}


def select_assignment(assignments, person, as_of: date):
    """Pick the single assignment in force for ``person`` on ``as_of``.

    Assignments starting after ``as_of`` are ignored, as are those whose plan
    is inactive or no longer targets the person. The most specific scope
    wins; within a scope the latest ``effective_from`` wins, and the most
    recently created assignment breaks a tie on the same date.
    """
    live = [
        a for a in assignments
        if a.effective_from <= as_of
        and a.plan.is_active
        and a.plan.scope in _RANK
        and matches(a.plan, person)
    ]
    if not live:
        return None
    best_rank = min(_RANK[a.plan.scope] for a in live)
    level = [a for a in live if _RANK[a.plan.scope] == best_rank]
    return max(
        level,
        key=lambda a: (
            a.effective_from,
            a.created_at.timestamp() if a.created_at else 0.0,
            str(a.id),
        ),
    )


class PlanAssignmentResolver:
    """Resolve the effective plan for a person, loading assignments from a source."""

    def __init__(self, source):
        self.source = source

    def effective_plan(self, person_id, as_of: date):
        person = self.source.get_person(person_id)
        if person is None:
            return None
        return self.resolve_for(person, as_of)

    def resolve_for(self, person, as_of: date):
        assignment = select_assignment(self.source.assignments_for(person.id), person, as_of)
        if assignment is None:
            logger.debug("No effective plan for person=%s as of %s", person.id, as_of)
            return None
        return assignment.plan
