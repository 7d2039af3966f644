"""Immutable inputs the engine evaluates against.

The ORM never reaches the engine: ``compensation.sources`` copies what an
evaluation needs into these value objects, and tests build them directly.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping

from compensation.exceptions import ConfigurationError


@dataclass(frozen=True)
class PersonSnapshot:
    id: str
    full_name: str
    agency_id: str | None
    team_id: str | None
    role_id: str | None
    team_type: str


@dataclass(frozen=True)
class ProductInfo:
    id: str
    name: str
    product_type: str
    lob_id: str
    lob_name: str
    premium_category: str


@dataclass(frozen=True)
class SoldRecord:
    id: str
    product_id: str
    date_sold: date
    premium: Decimal
    status: str
    flags: frozenset = frozenset()

    def has_flag(self, name: str) -> bool:
        return name in self.flags


@dataclass(frozen=True)
class Catalog:
    """Products and bucket definitions visible to one agency."""

    products: Mapping[str, ProductInfo]
    buckets: Mapping = field(default_factory=dict)

    def product(self, product_id: str) -> ProductInfo | None:
        return self.products.get(product_id)

    def bucket(self, key: str):
        try:
            return self.buckets[key]
        except KeyError:
            raise ConfigurationError(f"unknown bucket '{key}'") from None


@dataclass(frozen=True)
class RuleSnapshot:
    id: str
    name: str
    display_order: int
    component_type: str
    config: Mapping
    enabled: bool = True


@dataclass(frozen=True)
class GateSnapshot:
    id: str
    name: str
    gate_type: str
    threshold: Decimal
    scope: str
    bucket: str = ""
    rule_ids: frozenset = frozenset()
    enabled: bool = True


@dataclass(frozen=True)
class PlanSnapshot:
    id: str
    name: str
    scope: str
    effective_from: date
    person_id: str | None = None
    role_id: str | None = None
    team_id: str | None = None
    agency_id: str | None = None
    team_type: str = ""
    is_active: bool = True
    default_statuses: tuple = ()
    payout_cap: Decimal | None = None
    rules: tuple = ()
    gates: tuple = ()


@dataclass(frozen=True)
class AssignmentSnapshot:
    id: str
    person_id: str
    plan: PlanSnapshot
    effective_from: date
    created_at: datetime | None = None
