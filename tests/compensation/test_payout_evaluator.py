from datetime import date
from decimal import Decimal

import pytest

from compensation.buckets import BucketAggregator
from compensation.components import parse_component
from compensation.payout import PayoutEvaluator, RuleMetrics

from tests.compensation.builders import make_catalog, sold

DAY = date(2026, 3, 10)

AUTO_TIERS = {
    "bucket": "auto_personal_raw_new_apps",
    "tiers": [
        {"min": 0, "max": 19, "rate": 10},
        {"min": 20, "max": 30, "rate": 25},
        {"min": 31, "rate": 40},
    ],
}
HEALTH_TIERS = {
    "bucket": "health_premium",
    "tiers": [
        {"min": 0, "max": 400, "percent": 0.10},
        {"min": 401, "max": 800, "percent": 0.14},
        {"min": 801, "percent": 0.18},
    ],
}


def _evaluate(component_type, config, records, activities=None):
    component = parse_component(component_type, config)
    snapshot = BucketAggregator(make_catalog()).build(records, activities)
    bucket = component.target.bucket if component.target else ""
    metrics = RuleMetrics(
        records=snapshot.records_for(bucket) if bucket else snapshot.records,
        snapshot=snapshot,
        bucket_value=snapshot.value(bucket) if bucket else None,
    )
    return PayoutEvaluator().evaluate(component, metrics)


def _auto_apps(count):
    return [sold(f"r{i}", "p-auto-raw", DAY, "900") for i in range(count)]


class TestTieredPerUnit:
    def test_twenty_five_apps_pay_625(self):
        result = _evaluate("TIERED_PER_UNIT", AUTO_TIERS, _auto_apps(25))
        assert result.payout == Decimal("625.00")
        assert result.detail == "Tier 20-30 at $25.00/app x 25 apps = $625.00"

    def test_whole_count_paid_at_the_matching_tier_rate(self):
        result = _evaluate("TIERED_PER_UNIT", AUTO_TIERS, _auto_apps(31))
        assert result.payout == Decimal("1240.00")

    def test_below_minimum_threshold_pays_nothing(self):
        config = dict(AUTO_TIERS, min_threshold=10)
        result = _evaluate("TIERED_PER_UNIT", config, _auto_apps(4))
        assert result.payout == Decimal("0.00")
        assert result.detail == "gated: 4 below minimum 10"


class TestPercent:
    def test_percent_tier_on_600_pays_84(self):
        records = [sold("h1", "p-std", DAY, "250"), sold("h2", "p-hospital", DAY, "350")]
        result = _evaluate("PERCENT_TIER", HEALTH_TIERS, records)
        assert result.payout == Decimal("84.00")
        assert result.detail == "Tier 401-800 at 14% of $600.00 = $84.00"

    def test_gap_between_tiers_pays_nothing(self):
        result = _evaluate("PERCENT_TIER", HEALTH_TIERS, [sold("h1", "p-std", DAY, "400.50")])
        assert result.payout == Decimal("0.00")
        assert result.detail == "no tier matches 400.50"

    def test_flag_override_applies_per_record(self):
        config = {
            "bucket": "health_premium",
            "percent": 0.03,
            "flag_overrides": [{"flag": "is_value_health", "percent": 0.20}],
        }
        records = [
            sold("h1", "p-std", DAY, "200", flags={"is_value_health"}),
            sold("h2", "p-hospital", DAY, "300"),
        ]
        result = _evaluate("PERCENT_FLAT", config, records)
        assert result.payout == Decimal("49.00")
        assert result.detail == "3% of $300.00 + 20% of $200.00 (is_value_health) = $49.00"

    def test_rounds_half_up_to_cents(self):
        config = {"bucket": "business_auto_premium", "percent": 0.005}
        result = _evaluate("PERCENT_FLAT", config, [sold("b1", "p-bus-auto", DAY, "101")])
        assert result.payout == Decimal("0.51")


class TestLumpSums:
    def test_flat_lump_sum(self):
        result = _evaluate("LUMP_SUM", {"amount": 150}, [])
        assert result.payout == Decimal("150.00")
        assert result.detail == "Lump sum = $150.00"

    def test_tiered_lump_sum_on_bucket_basis(self):
        config = {
            "tier_basis": "pc_apps_total",
            "tiers": [{"min": 0, "max": 9, "amount": 0}, {"min": 10, "amount": 500}],
        }
        result = _evaluate("TIERED_LUMP_SUM", config, _auto_apps(12))
        assert result.payout == Decimal("500.00")
        assert result.detail == "Tier 10+ (12) lump sum = $500.00"


class TestActivityAndBonus:
    def test_activity_pay_multiplies_counts(self):
        config = {
            "activities": [
                {"activity": "FS Appointment Scheduled & Held", "amount": 10},
                {"activity": "3 Line Bonus", "amount": 7},
            ],
        }
        result = _evaluate("ACTIVITY_PAY", config, [], {"FS Appointment Scheduled & Held": 3})
        assert result.payout == Decimal("30.00")
        assert result.detail == "FS Appointment Scheduled & Held 3 x $10.00; 3 Line Bonus 0 x $7.00 = $30.00"

    @pytest.mark.parametrize("apps, expected", [(19, Decimal("0.00")), (20, Decimal("360.00"))])
    def test_bonus_volume_requires_every_minimum(self, apps, expected):
        config = {
            "requirements": [{"bucket": "pc_apps_total", "min": 20}],
            "payouts": [{"bucket": "pc_premium", "percent": 0.02}],
        }
        result = _evaluate("BONUS_VOLUME", config, _auto_apps(apps))
        assert result.payout == expected
        if apps < 20:
            assert result.detail == "requirement not met: pc_apps_total 19 < 20"
