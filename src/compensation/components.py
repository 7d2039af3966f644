"""Rule-block configuration parsed into one immutable variant per payout shape.

A stored rule block is a ``component_type`` tag plus a JSON ``config``. The
parser turns that pair into exactly one of the dataclasses below so the
evaluator never has to guess which optional fields apply. Anything that
cannot be represented raises ConfigurationError; the same parser backs
save-time validation and evaluation.

Config documents use snake_case keys. Documents exported from the previous
plan builder (camelCase keys, ``ratePerApp``, ``flagField`` ...) are accepted
and normalised on the way in.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from compensation.exceptions import ConfigurationError
from compensation.tiers import Tier, validate_tiers

# Component types
FLAT_PER_UNIT = "FLAT_PER_UNIT"
TIERED_PER_UNIT = "TIERED_PER_UNIT"
PERCENT_FLAT = "PERCENT_FLAT"
PERCENT_TIER = "PERCENT_TIER"
LUMP_SUM = "LUMP_SUM"
TIERED_LUMP_SUM = "TIERED_LUMP_SUM"
ACTIVITY_PAY = "ACTIVITY_PAY"
BONUS_VOLUME = "BONUS_VOLUME"

LEGACY_TYPES = {
    "FLAT_PER_APP": FLAT_PER_UNIT,
    "TIERED_PER_APP": TIERED_PER_UNIT,
}

# Payout shapes
PER_UNIT = "FLAT_PER_UNIT"
PERCENT_OF_METRIC = "PERCENT_OF_METRIC"
FLAT_LUMP_SUM = "FLAT_LUMP_SUM"

# Rule apply-scopes
SCOPE_ALL = "ALL"
SCOPE_PRODUCT = "PRODUCT"
SCOPE_LOB = "LOB"
SCOPE_PRODUCT_TYPE = "PRODUCT_TYPE"
SCOPE_PREMIUM_CATEGORY = "PREMIUM_CATEGORY"
SCOPE_BUCKET = "BUCKET"
APPLY_SCOPES = (
    SCOPE_ALL,
    SCOPE_PRODUCT,
    SCOPE_LOB,
    SCOPE_PRODUCT_TYPE,
    SCOPE_PREMIUM_CATEGORY,
    SCOPE_BUCKET,
)

# Tier bases other than a bucket key
APP_COUNT = "APP_COUNT"
PREMIUM_SUM = "PREMIUM_SUM"

# Mirrors sales.PolicyStatus and SoldProduct.FLAG_FIELDS
POLICY_STATUSES = ("WRITTEN", "ISSUED", "PAID", "STATUS_CHECK", "CANCELLED")
KNOWN_FLAGS = ("is_value_health", "is_value_life")
PRODUCT_TYPES = ("PERSONAL", "BUSINESS")
PREMIUM_CATEGORIES = ("PC", "FS", "IPS")


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleTarget:
    """What a rule measures: one bucket, or an apply-scope over the catalog."""

    bucket: str = ""
    apply_scope: str = ""
    products: frozenset = frozenset()
    lines_of_business: frozenset = frozenset()
    product_types: frozenset = frozenset()
    premium_categories: frozenset = frozenset()
    scope_bucket: str = ""


@dataclass(frozen=True)
class FlagOverride:
    flag: str
    percent: Decimal


@dataclass(frozen=True)
class ActivityRate:
    activity: str
    amount: Decimal


@dataclass(frozen=True)
class BonusRequirement:
    bucket: str
    minimum: Decimal


@dataclass(frozen=True)
class BonusPayout:
    bucket: str
    percent: Decimal


@dataclass(frozen=True)
class FlatPerUnit:
    component_type: ClassVar[str] = FLAT_PER_UNIT
    payout_type: ClassVar[str] = PER_UNIT
    tiered: ClassVar[bool] = False

    target: RuleTarget
    rate: Decimal
    min_threshold: Decimal | None = None
    statuses: tuple = ()


@dataclass(frozen=True)
class TieredPerUnit:
    component_type: ClassVar[str] = TIERED_PER_UNIT
    payout_type: ClassVar[str] = PER_UNIT
    tiered: ClassVar[bool] = True

    target: RuleTarget
    tiers: tuple
    tier_basis: str = ""
    min_threshold: Decimal | None = None
    statuses: tuple = ()


@dataclass(frozen=True)
class PercentFlat:
    component_type: ClassVar[str] = PERCENT_FLAT
    payout_type: ClassVar[str] = PERCENT_OF_METRIC
    tiered: ClassVar[bool] = False

    target: RuleTarget
    percent: Decimal
    flag_overrides: tuple = ()
    min_threshold: Decimal | None = None
    statuses: tuple = ()


@dataclass(frozen=True)
class PercentTier:
    component_type: ClassVar[str] = PERCENT_TIER
    payout_type: ClassVar[str] = PERCENT_OF_METRIC
    tiered: ClassVar[bool] = True

    target: RuleTarget
    tiers: tuple
    tier_basis: str = ""
    flag_overrides: tuple = ()
    min_threshold: Decimal | None = None
    statuses: tuple = ()


@dataclass(frozen=True)
class LumpSum:
    component_type: ClassVar[str] = LUMP_SUM
    payout_type: ClassVar[str] = FLAT_LUMP_SUM
    tiered: ClassVar[bool] = False

    target: RuleTarget | None
    amount: Decimal
    min_threshold: Decimal | None = None
    statuses: tuple = ()


@dataclass(frozen=True)
class TieredLumpSum:
    component_type: ClassVar[str] = TIERED_LUMP_SUM
    payout_type: ClassVar[str] = FLAT_LUMP_SUM
    tiered: ClassVar[bool] = True

    target: RuleTarget | None
    tiers: tuple
    tier_basis: str = ""
    min_threshold: Decimal | None = None
    statuses: tuple = ()


@dataclass(frozen=True)
class ActivityPay:
    component_type: ClassVar[str] = ACTIVITY_PAY
    payout_type: ClassVar[str] = PER_UNIT
    tiered: ClassVar[bool] = False

    activities: tuple

    target = None
    statuses = ()


@dataclass(frozen=True)
class BonusVolume:
    component_type: ClassVar[str] = BONUS_VOLUME
    payout_type: ClassVar[str] = PERCENT_OF_METRIC
    tiered: ClassVar[bool] = False

    requirements: tuple
    payouts: tuple
    statuses: tuple = ()

    target = None


COMPONENT_TYPES = (
    FLAT_PER_UNIT,
    TIERED_PER_UNIT,
    PERCENT_FLAT,
    PERCENT_TIER,
    LUMP_SUM,
    TIERED_LUMP_SUM,
    ACTIVITY_PAY,
    BONUS_VOLUME,
)


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_KEY_ALIASES = {
    "rate_per_app": "rate",
    "flag_field": "flag",
    "activity_name": "activity",
    "status_eligibility_override": "status_eligibility",
}


def _snake(key: str) -> str:
    key = _CAMEL_BOUNDARY.sub("_", key).lower()
    return _KEY_ALIASES.get(key, key)


# Legacy bonus mappings are keyed by bucket key; those keys stay verbatim.
_BUCKET_KEYED = frozenset({"requirements", "bonus_percents", "buckets"})


def _normalize(value):
    if isinstance(value, Mapping):
        normalized = {}
        for k, v in value.items():
            key = _snake(str(k))
            if key in _BUCKET_KEYED and isinstance(v, Mapping):
                normalized[key] = {str(name): _normalize(item) for name, item in v.items()}
            else:
                normalized[key] = _normalize(v)
        return normalized
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def _decimal(value, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ConfigurationError(f"{field} must be a number")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ConfigurationError(f"{field} must be a number") from None
    if not result.is_finite():
        raise ConfigurationError(f"{field} must be a finite number")
    return result


def _amount(value, field: str) -> Decimal:
    result = _decimal(value, field)
    if result < 0:
        raise ConfigurationError(f"{field} must be >= 0")
    return result


def _percent(value, field: str) -> Decimal:
    result = _decimal(value, field)
    if not Decimal("0") <= result <= Decimal("1"):
        raise ConfigurationError(f"{field} must be a fraction between 0 and 1")
    return result


def _optional_amount(config, key: str) -> Decimal | None:
    value = config.get(key)
    if value in (None, ""):
        return None
    return _amount(value, key)


def _strings(value, field: str, allowed=None) -> frozenset:
    if value in (None, ""):
        return frozenset()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{field} must be a list")
    items = frozenset(str(v).strip() for v in value if str(v).strip())
    if allowed is not None:
        unknown = sorted(items - set(allowed))
        if unknown:
            raise ConfigurationError(f"{field}: unknown value(s) {', '.join(unknown)}")
    return items


def _statuses(config) -> tuple:
    statuses = _strings(config.get("status_eligibility"), "status_eligibility", POLICY_STATUSES)
    return tuple(sorted(statuses))


def _tiers(config, percent: bool) -> tuple:
    raw = config.get("tiers")
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ConfigurationError("tiers must be a non-empty list")
    tiers = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"tier {index} must be an object")
        rate_value = item.get("rate", item.get("percent", item.get("amount")))
        if percent:
            rate = _percent(rate_value, f"tier {index} rate")
        else:
            rate = _decimal(rate_value, f"tier {index} rate")
        maximum = item.get("max")
        tiers.append(
            Tier(
                min=_decimal(item.get("min", 0), f"tier {index} min"),
                max=None if maximum in (None, "") else _decimal(maximum, f"tier {index} max"),
                rate=rate,
            )
        )
    validate_tiers(tiers)
    return tuple(tiers)


def _tier_basis(config) -> str:
    basis = config.get("tier_basis") or ""
    if not isinstance(basis, str):
        raise ConfigurationError("tier_basis must be a bucket key, APP_COUNT or PREMIUM_SUM")
    return basis.strip()


def _flag_overrides(config) -> tuple:
    raw = config.get("flag_overrides") or []
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError("flag_overrides must be a list")
    overrides = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"flag override {index} must be an object")
        flag = _snake(str(item.get("flag") or ""))
        if flag not in KNOWN_FLAGS:
            raise ConfigurationError(f"flag override {index}: unknown flag '{item.get('flag')}'")
        overrides.append(FlagOverride(flag=flag, percent=_percent(item.get("percent"), f"flag override {index} percent")))
    return tuple(overrides)


def _no_flag_overrides(config) -> None:
    if config.get("flag_overrides"):
        raise ConfigurationError("flag_overrides are only supported on percent components")


_SCOPE_SELECTORS = {
    SCOPE_PRODUCT: "products",
    SCOPE_LOB: "lines_of_business",
    SCOPE_PRODUCT_TYPE: "product_types",
    SCOPE_PREMIUM_CATEGORY: "premium_categories",
    SCOPE_BUCKET: "scope_bucket",
}


def _target(config, required: bool = True) -> RuleTarget | None:
    bucket = config.get("bucket") or ""
    apply_scope = config.get("apply_scope") or ""
    if bucket and apply_scope:
        raise ConfigurationError("set either bucket or apply_scope, not both")
    if bucket:
        if not isinstance(bucket, str):
            raise ConfigurationError("bucket must be a bucket key")
        return RuleTarget(bucket=bucket.strip())
    if not apply_scope:
        if required:
            raise ConfigurationError("a bucket or an apply_scope is required")
        return None
    if apply_scope not in APPLY_SCOPES:
        raise ConfigurationError(f"unknown apply_scope '{apply_scope}'")

    target = RuleTarget(
        apply_scope=apply_scope,
        products=_strings(config.get("products"), "products"),
        lines_of_business=_strings(config.get("lines_of_business"), "lines_of_business"),
        product_types=_strings(config.get("product_types"), "product_types", PRODUCT_TYPES),
        premium_categories=_strings(
            config.get("premium_categories"), "premium_categories", PREMIUM_CATEGORIES
        ),
        scope_bucket=str(config.get("scope_bucket") or "").strip(),
    )
    selector = _SCOPE_SELECTORS.get(apply_scope)
    if selector and not getattr(target, selector):
        raise ConfigurationError(f"apply_scope {apply_scope} needs a non-empty {selector}")
    return target


# ---------------------------------------------------------------------------
# Parsers per component type
# ---------------------------------------------------------------------------

def _parse_flat_per_unit(config):
    _no_flag_overrides(config)
    return FlatPerUnit(
        target=_target(config),
        rate=_amount(config.get("rate"), "rate"),
        min_threshold=_optional_amount(config, "min_threshold"),
        statuses=_statuses(config),
    )


def _parse_tiered_per_unit(config):
    _no_flag_overrides(config)
    return TieredPerUnit(
        target=_target(config),
        tiers=_tiers(config, percent=False),
        tier_basis=_tier_basis(config),
        min_threshold=_optional_amount(config, "min_threshold"),
        statuses=_statuses(config),
    )


def _parse_percent_flat(config):
    return PercentFlat(
        target=_target(config),
        percent=_percent(config.get("percent", config.get("rate")), "percent"),
        flag_overrides=_flag_overrides(config),
        min_threshold=_optional_amount(config, "min_threshold"),
        statuses=_statuses(config),
    )


def _parse_percent_tier(config):
    return PercentTier(
        target=_target(config),
        tiers=_tiers(config, percent=True),
        tier_basis=_tier_basis(config),
        flag_overrides=_flag_overrides(config),
        min_threshold=_optional_amount(config, "min_threshold"),
        statuses=_statuses(config),
    )


def _parse_lump_sum(config):
    _no_flag_overrides(config)
    return LumpSum(
        target=_target(config, required=False),
        amount=_amount(config.get("amount", config.get("rate")), "amount"),
        min_threshold=_optional_amount(config, "min_threshold"),
        statuses=_statuses(config),
    )


def _parse_tiered_lump_sum(config):
    _no_flag_overrides(config)
    return TieredLumpSum(
        target=_target(config, required=False),
        tiers=_tiers(config, percent=False),
        tier_basis=_tier_basis(config),
        min_threshold=_optional_amount(config, "min_threshold"),
        statuses=_statuses(config),
    )


def _parse_activity_pay(config):
    _no_flag_overrides(config)
    raw = config.get("activities")
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ConfigurationError("activities must be a non-empty list")
    rates = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"activity {index} must be an object")
        name = str(item.get("activity") or "").strip()
        if not name:
            raise ConfigurationError(f"activity {index} needs a name")
        rates.append(ActivityRate(activity=name, amount=_amount(item.get("amount"), f"activity {index} amount")))
    return ActivityPay(activities=tuple(rates))


def _parse_bonus_volume(config):
    _no_flag_overrides(config)
    requirements = config.get("requirements")
    payouts = config.get("payouts")
    aliases = config.get("buckets") or {}
    if not isinstance(aliases, Mapping):
        raise ConfigurationError("buckets must be an object")
    # Previous builder shape: {"requirements": {"pc_apps": 20}, "bonus_percents": {...}, "buckets": {...}}
    if isinstance(requirements, Mapping):
        requirements = [{"bucket": aliases.get(k, k), "min": v} for k, v in requirements.items()]
    if payouts is None and isinstance(config.get("bonus_percents"), Mapping):
        payouts = [{"bucket": aliases.get(k, k), "percent": v} for k, v in config["bonus_percents"].items()]

    if not isinstance(requirements, (list, tuple)) or not requirements:
        raise ConfigurationError("requirements must be a non-empty list")
    if not isinstance(payouts, (list, tuple)) or not payouts:
        raise ConfigurationError("payouts must be a non-empty list")

    parsed_requirements = []
    for index, item in enumerate(requirements, start=1):
        bucket = str(item.get("bucket") or "").strip() if isinstance(item, Mapping) else ""
        if not bucket:
            raise ConfigurationError(f"requirement {index} needs a bucket")
        parsed_requirements.append(
            BonusRequirement(bucket=bucket, minimum=_amount(item.get("min"), f"requirement {index} min"))
        )
    parsed_payouts = []
    for index, item in enumerate(payouts, start=1):
        bucket = str(item.get("bucket") or "").strip() if isinstance(item, Mapping) else ""
        if not bucket:
            raise ConfigurationError(f"payout {index} needs a bucket")
        parsed_payouts.append(
            BonusPayout(bucket=bucket, percent=_percent(item.get("percent"), f"payout {index} percent"))
        )
    return BonusVolume(
        requirements=tuple(parsed_requirements),
        payouts=tuple(parsed_payouts),
        statuses=_statuses(config),
    )


_PARSERS = {
    FLAT_PER_UNIT: _parse_flat_per_unit,
    TIERED_PER_UNIT: _parse_tiered_per_unit,
    PERCENT_FLAT: _parse_percent_flat,
    PERCENT_TIER: _parse_percent_tier,
    LUMP_SUM: _parse_lump_sum,
    TIERED_LUMP_SUM: _parse_tiered_lump_sum,
    ACTIVITY_PAY: _parse_activity_pay,
    BONUS_VOLUME: _parse_bonus_volume,
}


def canonical_type(component_type: str) -> str:
    return LEGACY_TYPES.get(component_type, component_type)


def parse_component(component_type: str, config):
    """Return the variant for ``component_type``/``config`` or raise ConfigurationError."""
    parser = _PARSERS.get(canonical_type(component_type))
    if parser is None:
        raise ConfigurationError(f"unsupported component type '{component_type}'")
    if not isinstance(config, Mapping):
        raise ConfigurationError("config must be an object")
    return parser(_normalize(config))
