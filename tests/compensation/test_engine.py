from datetime import date
from decimal import Decimal

from compensation.engine import CompensationEngine
from compensation.snapshots import GateSnapshot

from tests.compensation.builders import (
    MemorySource,
    assignment,
    person,
    plan,
    rule,
    single_plan_source,
    sold,
)

START, END = date(2026, 3, 1), date(2026, 3, 31)
DAY = date(2026, 3, 12)

AUTO_RULE = rule(
    "auto",
    "TIERED_PER_UNIT",
    {
        "bucket": "auto_personal_raw_new_apps",
        "tiers": [
            {"min": 0, "max": 19, "rate": 10},
            {"min": 20, "max": 30, "rate": 25},
            {"min": 31, "rate": 40},
        ],
    },
    order=0,
    name="Auto Raw New",
)
FIRE_RULE = rule("fire", "PERCENT_FLAT", {"bucket": "fire_personal_premium", "percent": 0.03}, order=1, name="Fire")


def _auto_apps(count, status="ISSUED"):
    return [sold(f"auto-{i}", "p-auto-raw", DAY, "500", status=status) for i in range(count)]


class TestEvaluate:
    def test_sums_rules_in_display_order(self):
        records = _auto_apps(25) + [sold("h1", "p-homeowners", DAY, "1000")]
        source = single_plan_source([FIRE_RULE, AUTO_RULE], records)
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert result.total == Decimal("655.00")
        assert [line.rule_name for line in result.breakdown] == ["Auto Raw New", "Fire"]
        assert result.breakdown[1].detail == "3% of $1,000.00 = $30.00"
        assert result.plan_id == "plan-1"
        assert result.bucket_values["auto_personal_raw_new_apps"] == "25"

    def test_is_idempotent(self):
        source = single_plan_source([AUTO_RULE, FIRE_RULE], _auto_apps(22))
        engine = CompensationEngine(source)
        assert engine.evaluate("person-1", START, END) == engine.evaluate("person-1", START, END)

    def test_records_outside_period_are_ignored(self):
        records = _auto_apps(3) + [sold("old", "p-auto-raw", date(2026, 2, 28), "500")]
        result = CompensationEngine(single_plan_source([AUTO_RULE], records)).evaluate("person-1", START, END)
        assert result.total == Decimal("30.00")

    def test_disabled_rule_has_no_line(self):
        disabled = rule("off", "LUMP_SUM", {"amount": 99}, order=5, enabled=False)
        result = CompensationEngine(single_plan_source([AUTO_RULE, disabled], [])).evaluate("person-1", START, END)
        assert [line.rule_id for line in result.breakdown] == ["auto"]


class TestDegradedEvaluation:
    def test_misconfigured_rule_pays_zero_and_others_still_pay(self):
        broken = rule("broken", "PERCENT_FLAT", {"bucket": "no_such_bucket", "percent": 0.1}, order=2, name="Broken")
        source = single_plan_source([AUTO_RULE, broken], _auto_apps(25))
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert result.total == Decimal("625.00")
        line = result.breakdown[1]
        assert line.payout == Decimal("0.00")
        assert line.detail == "config error: unknown bucket 'no_such_bucket'"

    def test_overlapping_tiers_saved_outside_validation(self):
        bad = rule(
            "bad",
            "TIERED_PER_UNIT",
            {"bucket": "pc_apps_total", "tiers": [{"min": 0, "max": 10, "rate": 1}, {"min": 5, "rate": 2}]},
        )
        result = CompensationEngine(single_plan_source([bad], _auto_apps(3))).evaluate("person-1", START, END)
        assert result.total == Decimal("0.00")
        assert result.breakdown[0].detail.startswith("config error: tier 2: overlaps tier 1")

    def test_unknown_person(self):
        result = CompensationEngine(MemorySource()).evaluate("ghost", START, END)
        assert result.total == Decimal("0.00")
        assert result.note == "unknown person"

    def test_no_effective_plan(self):
        result = CompensationEngine(MemorySource(people=[person()])).evaluate("person-1", START, END)
        assert result.breakdown == ()
        assert result.note == "no effective plan"

    def test_reversed_period(self):
        result = CompensationEngine(MemorySource()).evaluate("person-1", END, START)
        assert result.note == "period end is before period start"

    def test_source_failure_is_reported_not_raised(self):
        class BrokenSource(MemorySource):
            def sold_records(self, person_id, period_start, period_end):
                raise RuntimeError("database unavailable")

        base = single_plan_source([AUTO_RULE], [])
        source = BrokenSource(people=base.people.values(), assignments=base.assignments)
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert result.total == Decimal("0.00")
        assert result.note == "evaluation failed: database unavailable"


class TestStatusEligibility:
    def test_plan_default_statuses(self):
        records = _auto_apps(2) + _auto_apps(3, status="WRITTEN")
        source = single_plan_source([AUTO_RULE], records)
        assert CompensationEngine(source).evaluate("person-1", START, END).total == Decimal("20.00")

    def test_rule_override(self):
        written_rule = rule(
            "written",
            "FLAT_PER_UNIT",
            {"bucket": "auto_personal_raw_new_apps", "rate": 1, "status_eligibility": ["WRITTEN"]},
            order=1,
        )
        records = [sold(f"w{i}", "p-auto-raw", DAY, "500", status="WRITTEN") for i in range(3)]
        source = single_plan_source([AUTO_RULE, written_rule], records)
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert [line.payout for line in result.breakdown] == [Decimal("0.00"), Decimal("3.00")]


class TestGatesAndCap:
    def test_plan_gate_zeroes_every_line(self):
        gate = GateSnapshot(id="g1", name="Min 30 apps", gate_type="MIN_APPS", threshold=Decimal("30"), scope="PLAN")
        source = single_plan_source([AUTO_RULE, FIRE_RULE], _auto_apps(25), gates=[gate])
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert result.total == Decimal("0.00")
        assert result.breakdown[0].detail == "gated by Min 30 apps: 25 below 30 (was $625.00)"

    def test_rule_block_gate_only_touches_listed_rules(self):
        gate = GateSnapshot(
            id="g1",
            name="Fire floor",
            gate_type="MIN_BUCKET",
            threshold=Decimal("5000"),
            scope="RULE_BLOCKS",
            bucket="fire_personal_premium",
            rule_ids=frozenset({"fire"}),
        )
        records = _auto_apps(25) + [sold("h1", "p-homeowners", DAY, "1000")]
        source = single_plan_source([AUTO_RULE, FIRE_RULE], records, gates=[gate])
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert [line.payout for line in result.breakdown] == [Decimal("625.00"), Decimal("0.00")]

    def test_payout_cap_adds_negative_line(self):
        source = single_plan_source([AUTO_RULE], _auto_apps(25), payout_cap=Decimal("500"))
        result = CompensationEngine(source).evaluate("person-1", START, END)
        assert result.total == Decimal("500.00")
        cap_line = result.breakdown[-1]
        assert cap_line.rule_name == "Payout cap"
        assert cap_line.payout == Decimal("-125.00")


class TestPlanResolutionPerPeriod:
    def test_february_and_april_use_different_plans(self):
        who = person()
        default = plan("default", rules=[rule("lump", "LUMP_SUM", {"amount": 100})])
        override = plan("mine", scope="PERSON", person_id=who.id, rules=[rule("lump2", "LUMP_SUM", {"amount": 300})])
        source = MemorySource(
            people=[who],
            assignments=[
                assignment("a1", who.id, default, date(2026, 1, 1)),
                assignment("a2", who.id, override, date(2026, 3, 1)),
            ],
        )
        engine = CompensationEngine(source)
        assert engine.evaluate(who.id, date(2026, 2, 1), date(2026, 2, 28)).total == Decimal("100.00")
        assert engine.evaluate(who.id, date(2026, 4, 1), date(2026, 4, 30)).total == Decimal("300.00")


class TestScopedRules:
    def test_lob_scoped_percent_tier_with_value_flag(self):
        health_rule = rule(
            "health",
            "PERCENT_TIER",
            {
                "apply_scope": "LOB",
                "lines_of_business": ["Health"],
                "tiers": [
                    {"min": 0, "max": 400, "percent": 0.10},
                    {"min": 401, "max": 800, "percent": 0.14},
                    {"min": 801, "percent": 0.18},
                ],
                "flag_overrides": [{"flag": "is_value_health", "percent": 0.20}],
            },
            name="Health Premium",
        )
        records = [
            sold("h1", "p-hospital", DAY, "300"),
            sold("h2", "p-std", DAY, "200", flags=("is_value_health",)),
            sold("l1", "p-term", DAY, "1000", flags=("is_value_health",)),
        ]
        result = CompensationEngine(single_plan_source([health_rule], records)).evaluate("person-1", START, END)

        assert result.total == Decimal("82.00")
        assert "(is_value_health)" in result.breakdown[0].detail
