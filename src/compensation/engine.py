"""Compensation evaluation engine.

Core design principles:
- Pure and read-only: every input arrives through a source as immutable
  snapshots, so the same (person, period, plan snapshot) always yields the
  same total and breakdown ordering
- Buckets are aggregated once per status set and shared by every rule
- A misconfigured or failing rule contributes $0 with a diagnostic line;
  evaluation of the rest of the plan continues and nothing is raised
- Plan gates and the payout cap apply after every rule has been evaluated
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from compensation.assignments import PlanAssignmentResolver
from compensation.buckets import BucketAggregator
from compensation.components import parse_component
from compensation.exceptions import ConfigurationError
from compensation.payout import ZERO, PayoutEvaluator, RuleMetrics, format_number, quantize_money
from compensation.scope import applicable_products

logger = logging.getLogger(__name__)

DEFAULT_STATUSES = ("ISSUED", "PAID")

GATE_MIN_APPS = "MIN_APPS"
GATE_MIN_PREMIUM = "MIN_PREMIUM"
GATE_MIN_BUCKET = "MIN_BUCKET"
GATE_SCOPE_PLAN = "PLAN"
GATE_SCOPE_RULE_BLOCKS = "RULE_BLOCKS"


@dataclass(frozen=True)
class BreakdownLine:
    rule_id: str | None
    rule_name: str
    payout: Decimal
    detail: str

    def as_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "payout": str(self.payout),
            "detail": self.detail,
        }


@dataclass(frozen=True)
class EvaluationResult:
    person_id: str
    period_start: date
    period_end: date
    total: Decimal = ZERO
    breakdown: tuple = ()
    plan_id: str | None = None
    plan_name: str = ""
    bucket_values: dict = field(default_factory=dict)
    note: str = ""

    def as_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "total": str(self.total),
            "breakdown": [line.as_dict() for line in self.breakdown],
            "bucket_values": dict(self.bucket_values),
            "note": self.note,
        }


class CompensationEngine:
    """Evaluate a person's effective plan over an inclusive period."""

    def __init__(self, source, evaluator: PayoutEvaluator | None = None, default_statuses=DEFAULT_STATUSES):
        self.source = source
        self.evaluator = evaluator or PayoutEvaluator()
        self.default_statuses = tuple(default_statuses)
        self.assignments = PlanAssignmentResolver(source)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(self, person_id, period_start: date, period_end: date) -> EvaluationResult:
        """Return total + breakdown. Never raises."""
        person_id = str(person_id)
        if period_end < period_start:
            return EvaluationResult(person_id, period_start, period_end, note="period end is before period start")
        try:
            return self._evaluate(person_id, period_start, period_end)
        except Exception as exc:
            logger.exception(
                "Compensation evaluation failed for person=%s period=%s..%s",
                person_id,
                period_start,
                period_end,
            )
            return EvaluationResult(person_id, period_start, period_end, note=f"evaluation failed: {exc}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evaluate(self, person_id, period_start, period_end) -> EvaluationResult:
        person = self.source.get_person(person_id)
        if person is None:
            return EvaluationResult(person_id, period_start, period_end, note="unknown person")

        plan = self.assignments.resolve_for(person, period_end)
        if plan is None:
            return EvaluationResult(person_id, period_start, period_end, note="no effective plan")

        catalog = self.source.get_catalog(person.agency_id)
        aggregator = BucketAggregator(catalog)
        records = [
            r for r in self.source.sold_records(person_id, period_start, period_end)
            if period_start <= r.date_sold <= period_end
        ]
        activity_counts = self.source.activity_counts(person_id, period_start, period_end)
        plan_statuses = tuple(plan.default_statuses) or self.default_statuses

        snapshots = {}

        def snapshot_for(statuses):
            key = frozenset(statuses)
            if key not in snapshots:
                snapshots[key] = aggregator.build(records, activity_counts, key)
            return snapshots[key]

        lines = []
        for rule in sorted(plan.rules, key=lambda r: (r.display_order, str(r.id))):
            if not rule.enabled:
                continue
            lines.append(self._evaluate_rule(rule, catalog, snapshot_for, plan_statuses))

        plan_snapshot = snapshot_for(plan_statuses)
        lines = self._apply_gates(plan, lines, plan_snapshot)
        lines = self._apply_cap(plan, lines)

        total = quantize_money(sum((line.payout for line in lines), Decimal("0")))
        logger.debug(
            "Evaluated plan=%s person=%s period=%s..%s total=%s",
            plan.id,
            person_id,
            period_start,
            period_end,
            total,
        )
        return EvaluationResult(
            person_id=person_id,
            period_start=period_start,
            period_end=period_end,
            total=total,
            breakdown=tuple(lines),
            plan_id=str(plan.id),
            plan_name=plan.name,
            bucket_values=plan_snapshot.as_dict(),
        )

    def _evaluate_rule(self, rule, catalog, snapshot_for, plan_statuses) -> BreakdownLine:
        try:
            component = parse_component(rule.component_type, rule.config)
            snapshot = snapshot_for(component.statuses or plan_statuses)
            metrics = self._metrics_for(component, snapshot, catalog)
            result = self.evaluator.evaluate(component, metrics)
        except ConfigurationError as exc:
            logger.warning("Rule %s (%s) misconfigured: %s", rule.id, rule.name, exc)
            return BreakdownLine(str(rule.id), rule.name, ZERO, f"config error: {exc}")
        except Exception as exc:
            logger.exception("Rule %s (%s) failed to evaluate", rule.id, rule.name)
            return BreakdownLine(str(rule.id), rule.name, ZERO, f"evaluation error: {exc}")
        return BreakdownLine(str(rule.id), rule.name, result.payout, result.detail)

    def _metrics_for(self, component, snapshot, catalog) -> RuleMetrics:
        target = component.target
        if target is None:
            return RuleMetrics(records=snapshot.records, snapshot=snapshot)
        if target.bucket:
            return RuleMetrics(
                records=snapshot.records_for(target.bucket),
                snapshot=snapshot,
                bucket_value=snapshot.value(target.bucket),
            )
        product_ids = applicable_products(target, catalog)
        records = tuple(r for r in snapshot.records if r.product_id in product_ids)
        return RuleMetrics(records=records, snapshot=snapshot)

    def _gate_value(self, gate, snapshot) -> Decimal:
        if gate.gate_type == GATE_MIN_APPS:
            return Decimal(snapshot.app_count)
        if gate.gate_type == GATE_MIN_PREMIUM:
            return snapshot.premium_total
        if gate.gate_type == GATE_MIN_BUCKET:
            return snapshot.value(gate.bucket)
        raise ConfigurationError(f"unknown gate type '{gate.gate_type}'")

    def _apply_gates(self, plan, lines, snapshot) -> list:
        for gate in plan.gates:
            if not gate.enabled:
                continue
            try:
                value = self._gate_value(gate, snapshot)
            except ConfigurationError as exc:
                logger.warning("Gate %s (%s) on plan %s ignored: %s", gate.id, gate.name, plan.id, exc)
                continue
            if value >= gate.threshold:
                continue
            reason = f"gated by {gate.name}: {format_number(value)} below {format_number(gate.threshold)}"
            gated_rules = {str(rule_id) for rule_id in gate.rule_ids}
            updated = []
            for line in lines:
                if gate.scope == GATE_SCOPE_PLAN or line.rule_id in gated_rules:
                    if line.payout != ZERO:
                        line = BreakdownLine(
                            line.rule_id,
                            line.rule_name,
                            ZERO,
                            f"{reason} (was {self.evaluator.money(line.payout)})",
                        )
                updated.append(line)
            lines = updated
        return lines

    def _apply_cap(self, plan, lines) -> list:
        if plan.payout_cap is None:
            return lines
        uncapped = sum((line.payout for line in lines), Decimal("0"))
        if uncapped <= plan.payout_cap:
            return lines
        adjustment = quantize_money(plan.payout_cap - uncapped)
        return [
            *lines,
            BreakdownLine(
                None,
                "Payout cap",
                adjustment,
                f"capped at {self.evaluator.money(plan.payout_cap)} "
                f"(uncapped {self.evaluator.money(uncapped)})",
            ),
        ]
