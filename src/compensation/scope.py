"""Scope resolution: which people a plan covers, which products a rule covers."""
from __future__ import annotations

from compensation.components import (
    SCOPE_ALL,
    SCOPE_BUCKET,
    SCOPE_LOB,
    SCOPE_PREMIUM_CATEGORY,
    SCOPE_PRODUCT_TYPE,
    RuleTarget,
)
from compensation.exceptions import ConfigurationError

PLAN_SCOPE_PERSON = "PERSON"
PLAN_SCOPE_ROLE = "ROLE"
PLAN_SCOPE_TEAM = "TEAM"
PLAN_SCOPE_AGENCY = "AGENCY"
PLAN_SCOPE_TEAM_TYPE = "TEAM_TYPE"

# plan.scope -> (plan target attribute, person attribute)
_PLAN_SCOPE_FIELDS = {
    PLAN_SCOPE_PERSON: ("person_id", "id"),
    PLAN_SCOPE_ROLE: ("role_id", "role_id"),
    PLAN_SCOPE_TEAM: ("team_id", "team_id"),
    PLAN_SCOPE_AGENCY: ("agency_id", "agency_id"),
    PLAN_SCOPE_TEAM_TYPE: ("team_type", "team_type"),
}


def matches(plan, person) -> bool:
    """True when ``plan`` targets ``person``.

    Exactly one comparison runs, chosen by ``plan.scope``; a plan never
    falls back to a broader scope.
    """
    fields = _PLAN_SCOPE_FIELDS.get(plan.scope)
    if fields is None:
        return False
    plan_attr, person_attr = fields
    target = getattr(plan, plan_attr, None)
    if target in (None, ""):
        return False
    return str(target) == str(getattr(person, person_attr, None))


def _lob_selected(product, selected: frozenset) -> bool:
    lowered = {s.lower() for s in selected}
    return str(product.lob_id).lower() in lowered or product.lob_name.lower() in lowered


def applicable_products(target: RuleTarget, catalog) -> frozenset:
    """Product ids a rule applies to: explicit products UNION the apply-scope match.

    Raises ConfigurationError when nothing in the catalog is selected or
    when a referenced bucket does not exist.
    """
    selected = {pid for pid in target.products if catalog.product(pid) is not None}
    products = catalog.products.values()

    if target.bucket:
        definition = catalog.bucket(target.bucket)
        selected.update(p.id for p in products if definition.contains(p))
    elif target.apply_scope == SCOPE_ALL:
        selected.update(p.id for p in products)
    elif target.apply_scope == SCOPE_LOB:
        selected.update(p.id for p in products if _lob_selected(p, target.lines_of_business))
    elif target.apply_scope == SCOPE_PRODUCT_TYPE:
        selected.update(p.id for p in products if p.product_type in target.product_types)
    elif target.apply_scope == SCOPE_PREMIUM_CATEGORY:
        selected.update(p.id for p in products if p.premium_category in target.premium_categories)
    elif target.apply_scope == SCOPE_BUCKET:
        definition = catalog.bucket(target.scope_bucket)
        selected.update(p.id for p in products if definition.contains(p))

    if not selected:
        label = target.bucket or target.apply_scope
        raise ConfigurationError(f"scope {label} selects no products")
    return frozenset(selected)
