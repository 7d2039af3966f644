"""Bucket aggregation: raw sold products and activities -> named metrics."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from compensation.exceptions import ConfigurationError
from compensation.snapshots import ProductInfo

logger = logging.getLogger(__name__)

APPS = "APPS"
PREMIUM = "PREMIUM"
ACTIVITY_PREFIX = "activity:"


def _refs(values) -> frozenset:
    return frozenset(str(v).strip().lower() for v in values or () if str(v).strip())


def _member(ident: str, name: str, refs: frozenset) -> bool:
    return str(ident).lower() in refs or name.lower() in refs


@dataclass(frozen=True)
class BucketDefinition:
    """Membership test over products plus a measure (app count or premium sum).

    Included LoBs and products form a union; product type and premium
    category narrow it further; excludes always win. Lines of business and
    products are matched by id or case-insensitive name.
    """

    key: str
    name: str
    measure: str = PREMIUM
    includes_lobs: frozenset = frozenset()
    includes_products: frozenset = frozenset()
    product_types: frozenset = frozenset()
    premium_categories: frozenset = frozenset()
    excludes_lobs: frozenset = frozenset()
    excludes_products: frozenset = frozenset()

    def __post_init__(self):
        for attr in ("includes_lobs", "includes_products", "excludes_lobs", "excludes_products"):
            object.__setattr__(self, attr, _refs(getattr(self, attr)))
        object.__setattr__(self, "product_types", frozenset(self.product_types))
        object.__setattr__(self, "premium_categories", frozenset(self.premium_categories))

    def contains(self, product: ProductInfo) -> bool:
        if _member(product.id, product.name, self.excludes_products):
            return False
        if _member(product.lob_id, product.lob_name, self.excludes_lobs):
            return False
        if self.includes_lobs or self.includes_products:
            included = _member(product.lob_id, product.lob_name, self.includes_lobs) or _member(
                product.id, product.name, self.includes_products
            )
            if not included:
                return False
        if self.product_types and product.product_type not in self.product_types:
            return False
        if self.premium_categories and product.premium_category not in self.premium_categories:
            return False
        return True


def _builtin(key, name, measure, **criteria) -> tuple[str, BucketDefinition]:
    return key, BucketDefinition(key=key, name=name, measure=measure, **criteria)


BUILTIN_BUCKETS = dict([
    _builtin("auto_personal_raw_new_apps", "Auto Raw New (apps)", APPS,
             includes_products={"Auto Raw New"}),
    _builtin("auto_personal_adds_apps", "Auto Adds (apps)", APPS,
             includes_products={"Auto Added"}),
    _builtin("business_auto_premium", "Business Auto Premium", PREMIUM,
             includes_products={"Business Raw Auto"}),
    _builtin("business_auto_adds_premium", "Business Auto Adds Premium", PREMIUM,
             includes_products={"Business Added Auto"}),
    _builtin("fire_personal_premium", "Fire Personal Premium", PREMIUM,
             includes_lobs={"Fire"}, product_types={"PERSONAL"}),
    _builtin("business_fire_premium", "Business Fire Premium", PREMIUM,
             includes_lobs={"Fire"}, product_types={"BUSINESS"}),
    _builtin("health_premium", "Health Premium", PREMIUM, includes_lobs={"Health"}),
    _builtin("life_premium", "Life Premium", PREMIUM, includes_lobs={"Life"}),
    _builtin("pc_premium", "P&C Premium", PREMIUM, premium_categories={"PC"}),
    _builtin("fs_premium", "Financial Services Premium", PREMIUM, premium_categories={"FS"}),
    _builtin("pc_apps_total", "P&C Apps (total)", APPS, premium_categories={"PC"}),
    _builtin("fs_apps_total", "FS Apps (total)", APPS, premium_categories={"FS"}),
    _builtin("ips_premium", "IPS Premium", PREMIUM, premium_categories={"IPS"}),
    _builtin("business_premium", "Business Premium (all)", PREMIUM, product_types={"BUSINESS"}),
])


class BucketSnapshot(Mapping):
    """Read-only ``{bucket key: value}`` map that also keeps contributing records.

    Activity counts are exposed under ``activity:<name>`` keys.
    """

    def __init__(self, records, values, members, activity_counts):
        self.records = tuple(records)
        self._values = dict(values)
        self._members = dict(members)
        self._activities = dict(activity_counts)

    def __getitem__(self, key):
        if key in self._values:
            return self._values[key]
        if key.startswith(ACTIVITY_PREFIX):
            name = key[len(ACTIVITY_PREFIX):]
            if name in self._activities:
                return Decimal(self._activities[name])
        raise KeyError(key)

    def __iter__(self):
        yield from self._values
        for name in self._activities:
            yield f"{ACTIVITY_PREFIX}{name}"

    def __len__(self):
        return len(self._values) + len(self._activities)

    def value(self, key: str) -> Decimal:
        try:
            return self[key]
        except KeyError:
            raise ConfigurationError(f"unknown bucket '{key}'") from None

    def records_for(self, key: str) -> tuple:
        try:
            return self._members[key]
        except KeyError:
            raise ConfigurationError(f"unknown bucket '{key}'") from None

    def activity_count(self, name: str) -> int:
        return self._activities.get(name, 0)

    @property
    def app_count(self) -> int:
        return len(self.records)

    @property
    def premium_total(self) -> Decimal:
        return sum((r.premium for r in self.records), Decimal("0"))

    def as_dict(self) -> dict:
        return {key: str(self[key]) for key in self}


class BucketAggregator:
    """Turns a person's records for a period into a BucketSnapshot.

    ``build`` is the pure path used by the engine, which loads the records
    once and reuses them for every status set it needs. ``aggregate`` loads
    through a source for callers that only hold a person id.
    """

    def __init__(self, catalog, source=None):
        self.catalog = catalog
        self.source = source

    def aggregate(self, person_id, period_start, period_end, statuses=None) -> BucketSnapshot:
        if self.source is None:
            raise RuntimeError("BucketAggregator.aggregate() needs a source")
        records = self.source.sold_records(person_id, period_start, period_end)
        activity_counts = self.source.activity_counts(person_id, period_start, period_end)
        records = [r for r in records if period_start <= r.date_sold <= period_end]
        return self.build(records, activity_counts, statuses)

    def build(self, records, activity_counts=None, statuses=None) -> BucketSnapshot:
        if statuses:
            allowed = frozenset(statuses)
            records = [r for r in records if r.status in allowed]
        records = sorted(records, key=lambda r: (r.date_sold, str(r.id)))

        values = {}
        members = {}
        for key, definition in self.catalog.buckets.items():
            matched = []
            for record in records:
                product = self.catalog.product(record.product_id)
                if product is not None and definition.contains(product):
                    matched.append(record)
            members[key] = tuple(matched)
            if definition.measure == APPS:
                values[key] = Decimal(len(matched))
            else:
                values[key] = sum((r.premium for r in matched), Decimal("0"))

        unknown = sum(1 for r in records if self.catalog.product(r.product_id) is None)
        if unknown:
            logger.warning("%d sold record(s) reference products outside the catalog", unknown)

        return BucketSnapshot(records, values, members, activity_counts or {})
