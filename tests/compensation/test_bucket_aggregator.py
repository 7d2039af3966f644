from datetime import date
from decimal import Decimal

import pytest

from compensation.buckets import PREMIUM, BucketAggregator, BucketDefinition
from compensation.exceptions import ConfigurationError

from tests.compensation.builders import MemorySource, make_catalog, person, sold

DAY = date(2026, 3, 5)


class TestBuild:
    def test_builtin_bucket_values(self):
        records = [
            sold("r1", "p-auto-raw", DAY, "1200"),
            sold("r2", "p-auto-raw", DAY, "800"),
            sold("r3", "p-homeowners", DAY, "1000"),
            sold("r4", "p-bop", DAY, "5000"),
            sold("r5", "p-term", DAY, "600"),
        ]
        snapshot = BucketAggregator(make_catalog()).build(records)
        assert snapshot.value("auto_personal_raw_new_apps") == Decimal("2")
        assert snapshot.value("fire_personal_premium") == Decimal("1000")
        assert snapshot.value("business_fire_premium") == Decimal("5000")
        assert snapshot.value("pc_apps_total") == Decimal("4")
        assert snapshot.value("fs_premium") == Decimal("600")
        assert snapshot.value("business_premium") == Decimal("5000")
        assert snapshot.app_count == 5
        assert snapshot.premium_total == Decimal("8600")

    def test_status_filter(self):
        records = [
            sold("r1", "p-term", DAY, "100", status="ISSUED"),
            sold("r2", "p-term", DAY, "200", status="WRITTEN"),
            sold("r3", "p-term", DAY, "400", status="CANCELLED"),
        ]
        aggregator = BucketAggregator(make_catalog())
        assert aggregator.build(records, statuses={"ISSUED", "PAID"}).value("life_premium") == Decimal("100")
        assert aggregator.build(records).value("life_premium") == Decimal("700")

    def test_excludes_win_over_includes(self):
        custom = BucketDefinition(
            key="fire_no_renters",
            name="Fire without renters",
            measure=PREMIUM,
            includes_lobs={"Fire"},
            excludes_products={"Renters"},
        )
        records = [sold("r1", "p-homeowners", DAY, "300"), sold("r2", "p-renters", DAY, "150")]
        snapshot = BucketAggregator(make_catalog([custom])).build(records)
        assert snapshot.value("fire_no_renters") == Decimal("300")
        assert [r.id for r in snapshot.records_for("fire_no_renters")] == ["r1"]

    def test_records_ordered_by_date_then_id(self):
        records = [
            sold("b", "p-term", date(2026, 3, 9)),
            sold("c", "p-term", date(2026, 3, 1)),
            sold("a", "p-term", date(2026, 3, 9)),
        ]
        snapshot = BucketAggregator(make_catalog()).build(records)
        assert [r.id for r in snapshot.records] == ["c", "a", "b"]

    def test_activity_counts_exposed_as_buckets(self):
        snapshot = BucketAggregator(make_catalog()).build([], {"3 Line Bonus": 4})
        assert snapshot["activity:3 Line Bonus"] == Decimal("4")
        assert snapshot.activity_count("4 Line Bonus") == 0

    def test_unknown_bucket_raises(self):
        snapshot = BucketAggregator(make_catalog()).build([])
        with pytest.raises(ConfigurationError):
            snapshot.value("missing")

    def test_records_for_unknown_product_count_in_no_bucket(self):
        snapshot = BucketAggregator(make_catalog()).build([sold("r1", "ghost", DAY, "50")])
        assert snapshot.value("pc_premium") == Decimal("0")
        assert snapshot.app_count == 1


class TestAggregate:
    def test_loads_period_through_source(self):
        who = person()
        source = MemorySource(
            people=[who],
            records={who.id: [sold("r1", "p-term", DAY, "100"), sold("r2", "p-term", date(2026, 4, 2), "900")]},
        )
        snapshot = BucketAggregator(source.catalog, source).aggregate(
            who.id, date(2026, 3, 1), date(2026, 3, 31)
        )
        assert snapshot.value("life_premium") == Decimal("100")

    def test_needs_a_source(self):
        with pytest.raises(RuntimeError):
            BucketAggregator(make_catalog()).aggregate("p", DAY, DAY)
