"""Per-rule payout evaluation with auditable detail strings."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from compensation.buckets import BucketSnapshot
from compensation.components import (
    APP_COUNT,
    FLAT_LUMP_SUM,
    PER_UNIT,
    PERCENT_OF_METRIC,
    PREMIUM_SUM,
    ActivityPay,
    BonusVolume,
    FlatPerUnit,
    LumpSum,
    PercentFlat,
)
from compensation.tiers import resolve

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_number(value: Decimal) -> str:
    value = Decimal(value)
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_percent(rate: Decimal) -> str:
    return f"{(Decimal(rate) * 100).normalize():f}%"


@dataclass(frozen=True)
class RuleMetrics:
    """What one rule sees: the records in its scope plus the shared snapshot."""

    records: tuple
    snapshot: BucketSnapshot
    bucket_value: Decimal | None = None

    @property
    def units(self) -> Decimal:
        return Decimal(len(self.records))

    @property
    def premium(self) -> Decimal:
        return sum((r.premium for r in self.records), Decimal("0"))


@dataclass(frozen=True)
class RulePayout:
    payout: Decimal
    detail: str


class PayoutEvaluator:
    """Compute one rule's payout from its parsed component and metrics."""

    def __init__(self, currency_symbol: str = "$", unit_label: str = "app"):
        self.currency_symbol = currency_symbol
        self.unit_label = unit_label

    def money(self, value) -> str:
        return f"{self.currency_symbol}{quantize_money(value):,.2f}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(self, component, metrics: RuleMetrics) -> RulePayout:
        if isinstance(component, ActivityPay):
            return self._activity_pay(component, metrics.snapshot)
        if isinstance(component, BonusVolume):
            return self._bonus_volume(component, metrics.snapshot)

        basis = self.basis_value(component, metrics)
        if component.min_threshold is not None and basis < component.min_threshold:
            return RulePayout(
                ZERO,
                f"gated: {format_number(basis)} below minimum {format_number(component.min_threshold)}",
            )

        if component.tiered:
            tier = resolve(component.tiers, basis)
            if tier is None:
                return RulePayout(ZERO, f"no tier matches {format_number(basis)}")
            rate = tier.rate
            prefix = f"Tier {tier.label} at "
        else:
            rate = self._flat_rate(component)
            prefix = ""

        if component.payout_type == PER_UNIT:
            return self._per_unit(rate, metrics, prefix)
        if component.payout_type == PERCENT_OF_METRIC:
            return self._percent(component, rate, metrics, prefix)
        if component.tiered:
            return RulePayout(
                quantize_money(rate),
                f"Tier {tier.label} ({format_number(basis)}) lump sum = {self.money(rate)}",
            )
        return RulePayout(quantize_money(rate), f"Lump sum = {self.money(rate)}")

    def basis_value(self, component, metrics: RuleMetrics) -> Decimal:
        """Value the tier lookup and the minimum threshold are checked against."""
        basis = getattr(component, "tier_basis", "")
        if basis == APP_COUNT:
            return metrics.units
        if basis == PREMIUM_SUM:
            return metrics.premium
        if basis:
            return metrics.snapshot.value(basis)
        if metrics.bucket_value is not None:
            return metrics.bucket_value
        if component.payout_type == PERCENT_OF_METRIC:
            return metrics.premium
        return metrics.units

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _flat_rate(self, component) -> Decimal:
        if isinstance(component, FlatPerUnit):
            return component.rate
        if isinstance(component, PercentFlat):
            return component.percent
        if isinstance(component, LumpSum):
            return component.amount
        raise TypeError(f"{type(component).__name__} has no flat rate")

    def _per_unit(self, rate, metrics, prefix) -> RulePayout:
        units = metrics.units
        payout = quantize_money(rate * units)
        return RulePayout(
            payout,
            f"{prefix}{self.money(rate)}/{self.unit_label} x {format_number(units)} "
            f"{self.unit_label}s = {self.money(payout)}",
        )

    def _percent(self, component, rate, metrics, prefix) -> RulePayout:
        overrides = component.flag_overrides
        if not overrides:
            premium = metrics.premium
            payout = quantize_money(rate * premium)
            return RulePayout(
                payout,
                f"{prefix}{format_percent(rate)} of {self.money(premium)} = {self.money(payout)}",
            )

        # Record-level path: each sale is paid at its override percent when
        # one of its flags matches, otherwise at the rule's normal percent.
        base_premium = Decimal("0")
        flagged = {o.flag: Decimal("0") for o in overrides}
        total = Decimal("0")
        for record in metrics.records:
            override = next((o for o in overrides if record.has_flag(o.flag)), None)
            if override is None:
                base_premium += record.premium
                total += record.premium * rate
            else:
                flagged[override.flag] += record.premium
                total += record.premium * override.percent

        parts = [f"{format_percent(rate)} of {self.money(base_premium)}"]
        for override in overrides:
            if flagged[override.flag]:
                parts.append(
                    f"{format_percent(override.percent)} of {self.money(flagged[override.flag])} "
                    f"({override.flag})"
                )
        payout = quantize_money(total)
        return RulePayout(payout, f"{prefix}{' + '.join(parts)} = {self.money(payout)}")

    def _activity_pay(self, component, snapshot) -> RulePayout:
        total = Decimal("0")
        parts = []
        for item in component.activities:
            count = snapshot.activity_count(item.activity)
            total += item.amount * count
            parts.append(f"{item.activity} {count} x {self.money(item.amount)}")
        payout = quantize_money(total)
        return RulePayout(payout, f"{'; '.join(parts)} = {self.money(payout)}")

    def _bonus_volume(self, component, snapshot) -> RulePayout:
        payout_values = [(p, snapshot.value(p.bucket)) for p in component.payouts]
        unmet = []
        for requirement in component.requirements:
            value = snapshot.value(requirement.bucket)
            if value < requirement.minimum:
                unmet.append(
                    f"{requirement.bucket} {format_number(value)} < {format_number(requirement.minimum)}"
                )
        if unmet:
            return RulePayout(ZERO, f"requirement not met: {', '.join(unmet)}")

        total = sum((p.percent * value for p, value in payout_values), Decimal("0"))
        payout = quantize_money(total)
        parts = [
            f"{format_percent(p.percent)} of {p.bucket} {self.money(value)}"
            for p, value in payout_values
        ]
        return RulePayout(payout, f"{' + '.join(parts)} = {self.money(payout)}")
