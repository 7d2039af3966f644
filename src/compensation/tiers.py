"""Tier validation and bracket-rate lookup."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from compensation.exceptions import TierConfigurationError


@dataclass(frozen=True)
class Tier:
    """Inclusive [min, max] range mapped to a rate. ``max=None`` is open-ended."""

    min: Decimal
    max: Decimal | None
    rate: Decimal

    def contains(self, value: Decimal) -> bool:
        if value < self.min:
            return False
        return self.max is None or value <= self.max

    @property
    def label(self) -> str:
        if self.max is None:
            return f"{_plain(self.min)}+"
        return f"{_plain(self.min)}-{_plain(self.max)}"


def _plain(value: Decimal) -> str:
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def validate_tiers(tiers) -> None:
    """Raise TierConfigurationError unless ``tiers`` is sorted and non-overlapping.

    Rules: min >= 0, rate >= 0, max > min when set, ascending by min, each
    tier starting strictly after the previous max, and only the last tier
    may be open-ended.
    """
    if not tiers:
        raise TierConfigurationError("at least one tier is required")
    previous = None
    for index, tier in enumerate(tiers, start=1):
        if tier.min < 0:
            raise TierConfigurationError(f"tier {index}: min must be >= 0")
        if tier.rate < 0:
            raise TierConfigurationError(f"tier {index}: rate must be >= 0")
        if tier.max is not None and tier.max <= tier.min:
            raise TierConfigurationError(f"tier {index}: max must be greater than min")
        if previous is not None:
            if tier.min < previous.min:
                raise TierConfigurationError(f"tier {index}: tiers must be sorted by min")
            if previous.max is None:
                raise TierConfigurationError(
                    f"tier {index - 1}: only the last tier may be open-ended"
                )
            if tier.min <= previous.max:
                raise TierConfigurationError(
                    f"tier {index}: overlaps tier {index - 1} "
                    f"({previous.label} and {tier.label})"
                )
        previous = tier


def resolve(tiers, value: Decimal) -> Tier | None:
    """Return the single tier containing ``value``, or None.

    The whole value is billed at the returned tier's rate (bracket rate);
    values below every tier or inside a gap between tiers match nothing.
    """
    for tier in tiers:
        if tier.contains(value):
            return tier
    return None
