"""DRF serializers for the compensation module."""
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from compensation import components
from compensation.exceptions import ConfigurationError
from compensation.models import (
    CompensationStatement,
    CompPlan,
    PlanAssignment,
    PlanGate,
    RuleBlock,
)


def _run_model_clean(instance) -> None:
    """Surface a model ``clean()`` failure as a DRF validation error."""
    try:
        instance.clean()
    except DjangoValidationError as exc:
        if hasattr(exc, "message_dict"):
            raise serializers.ValidationError(exc.message_dict)
        raise serializers.ValidationError(exc.messages)


def _candidate(serializer, attrs):
    """Unsaved model instance carrying ``attrs`` over the current values."""
    model = serializer.Meta.model
    instance = serializer.instance or model()
    candidate = model(**{
        f.attname: getattr(instance, f.attname)
        for f in model._meta.concrete_fields
    })
    for key, value in attrs.items():
        setattr(candidate, key, value)
    return candidate


# ────────────────────────────────────────────────────────────
# Plans & rule blocks
# ────────────────────────────────────────────────────────────

class RuleBlockSerializer(serializers.ModelSerializer):
    class Meta:
        model = RuleBlock
        fields = [
            "id", "plan", "name", "display_order", "component_type",
            "config", "enabled", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"display_order": {"required": False}}
        # display_order may be omitted on create; uniqueness is checked in validate().
        validators = []

    def to_internal_value(self, data):
        # Blocks saved by the previous builder still use the *_PER_APP names.
        if hasattr(data, "get") and data.get("component_type") in components.LEGACY_TYPES:
            data = data.copy()
            data["component_type"] = components.canonical_type(data["component_type"])
        return super().to_internal_value(data)

    def validate(self, attrs):
        component_type = attrs.get("component_type", getattr(self.instance, "component_type", None))
        config = attrs.get("config", getattr(self.instance, "config", None))
        try:
            components.parse_component(component_type, config if config is not None else {})
        except ConfigurationError as exc:
            raise serializers.ValidationError({"config": str(exc)})

        plan = attrs.get("plan", getattr(self.instance, "plan", None))
        if "display_order" not in attrs and self.instance is None and plan is not None:
            last = plan.rule_blocks.order_by("-display_order").values_list("display_order", flat=True).first()
            attrs["display_order"] = 0 if last is None else last + 1

        display_order = attrs.get("display_order", getattr(self.instance, "display_order", None))
        if plan is not None and display_order is not None:
            clash = plan.rule_blocks.filter(display_order=display_order)
            if self.instance is not None:
                clash = clash.exclude(pk=self.instance.pk)
            if clash.exists():
                raise serializers.ValidationError(
                    {"display_order": "Another rule block of this plan already uses this position."}
                )
        return attrs


class PlanGateSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlanGate
        fields = [
            "id", "plan", "name", "gate_type", "threshold", "bucket",
            "scope", "rule_blocks", "enabled",
        ]
        read_only_fields = ["id"]

    def validate(self, attrs):
        rule_blocks = attrs.pop("rule_blocks", None)
        _run_model_clean(_candidate(self, attrs))

        plan = attrs.get("plan", getattr(self.instance, "plan", None))
        if rule_blocks is not None:
            foreign = [str(block.pk) for block in rule_blocks if block.plan_id != plan.pk]
            if foreign:
                raise serializers.ValidationError({"rule_blocks": "Rule blocks must belong to the gated plan."})
            attrs["rule_blocks"] = rule_blocks

        scope = attrs.get("scope", getattr(self.instance, "scope", PlanGate.Scope.PLAN))
        if scope == PlanGate.Scope.RULE_BLOCKS:
            selected = rule_blocks if rule_blocks is not None else (
                list(self.instance.rule_blocks.all()) if self.instance else []
            )
            if not selected:
                raise serializers.ValidationError({"rule_blocks": "Select at least one rule block."})
        return attrs


class CompPlanSerializer(serializers.ModelSerializer):
    rule_blocks = RuleBlockSerializer(many=True, read_only=True)
    gates = PlanGateSerializer(many=True, read_only=True)

    class Meta:
        model = CompPlan
        fields = [
            "id", "name", "description", "scope", "person", "role", "team",
            "agency", "team_type", "is_default_for_team_type", "effective_from",
            "is_active", "default_status_eligibility", "payout_cap",
            "rule_blocks", "gates", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate(self, attrs):
        _run_model_clean(_candidate(self, attrs))
        return attrs


class PlanAssignmentSerializer(serializers.ModelSerializer):
    person_name = serializers.CharField(source="person.full_name", read_only=True)
    plan_name = serializers.CharField(source="plan.name", read_only=True)

    class Meta:
        model = PlanAssignment
        fields = ["id", "person", "person_name", "plan", "plan_name", "effective_from", "notes", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):
        person = attrs.get("person", getattr(self.instance, "person", None))
        plan = attrs.get("plan", getattr(self.instance, "plan", None))
        if person is not None and plan is not None and not plan.targets(person):
            raise serializers.ValidationError({"plan": "This plan's scope does not cover the person."})
        return attrs


class RuleBlockReorderSerializer(serializers.Serializer):
    ordered_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


# ────────────────────────────────────────────────────────────
# Evaluation & statements
# ────────────────────────────────────────────────────────────

class EvaluateQuerySerializer(serializers.Serializer):
    person = serializers.UUIDField()
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):
        if attrs["end"] < attrs["start"]:
            raise serializers.ValidationError({"end": "End date must be on or after the start date."})
        return attrs


class CompensationStatementSerializer(serializers.ModelSerializer):
    person_name = serializers.CharField(source="person.full_name", read_only=True)
    plan_name = serializers.CharField(source="plan.name", read_only=True, default="")

    class Meta:
        model = CompensationStatement
        fields = [
            "id", "person", "person_name", "plan", "plan_name", "period_start",
            "period_end", "total", "breakdown", "bucket_values", "note",
            "trigger", "is_final", "computed_at",
        ]
        read_only_fields = fields
