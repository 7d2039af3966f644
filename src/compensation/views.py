"""API views for the compensation module."""
from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, permissions, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.pagination import StandardResultsSetPagination, StatementResultsSetPagination
from api.v1.permissions import IsStaff, IsStaffOrReadOnly
from compensation.models import (
    CompensationStatement,
    CompPlan,
    PlanAssignment,
    PlanGate,
    RuleBlock,
)
from compensation.serializers import (
    CompensationStatementSerializer,
    CompPlanSerializer,
    EvaluateQuerySerializer,
    PlanAssignmentSerializer,
    PlanGateSerializer,
    RuleBlockReorderSerializer,
    RuleBlockSerializer,
)
from compensation.services import evaluate_person, record_statement, reorder_rule_blocks
from core.export import queryset_to_csv_response

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
# Plans
# ────────────────────────────────────────────────────────────

class CompPlanViewSet(viewsets.ModelViewSet):
    serializer_class = CompPlanSerializer
    permission_classes = [permissions.IsAuthenticated, IsStaffOrReadOnly]
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["scope", "team_type", "agency", "is_active", "is_default_for_team_type"]
    search_fields = ["name", "description"]
    ordering_fields = ["name", "effective_from", "created_at"]

    def get_queryset(self):
        return CompPlan.objects.prefetch_related("rule_blocks", "gates__rule_blocks")

    @action(detail=True, methods=["post"], url_path="reorder")
    def reorder(self, request, pk=None):
        """POST {"ordered_ids": [...]} rewrites display_order for every block of the plan."""
        plan = self.get_object()
        payload = RuleBlockReorderSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            blocks = reorder_rule_blocks(plan, payload.validated_data["ordered_ids"])
        except ValueError as exc:
            raise serializers.ValidationError({"ordered_ids": str(exc)})
        return Response(RuleBlockSerializer(blocks, many=True).data)


class RuleBlockViewSet(viewsets.ModelViewSet):
    serializer_class = RuleBlockSerializer
    permission_classes = [permissions.IsAuthenticated, IsStaffOrReadOnly]
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["plan", "component_type", "enabled"]
    ordering_fields = ["display_order", "name"]

    def get_queryset(self):
        return RuleBlock.objects.select_related("plan").order_by("plan__name", "display_order")

    @action(detail=False, methods=["post"], url_path="reorder")
    def reorder(self, request):
        """POST {"plan": id, "ordered_ids": [...]}."""
        plan = CompPlan.objects.filter(pk=request.data.get("plan")).first()
        if plan is None:
            raise serializers.ValidationError({"plan": "Unknown plan."})
        payload = RuleBlockReorderSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            blocks = reorder_rule_blocks(plan, payload.validated_data["ordered_ids"])
        except ValueError as exc:
            raise serializers.ValidationError({"ordered_ids": str(exc)})
        return Response(RuleBlockSerializer(blocks, many=True).data)


class PlanGateViewSet(viewsets.ModelViewSet):
    serializer_class = PlanGateSerializer
    permission_classes = [permissions.IsAuthenticated, IsStaffOrReadOnly]
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["plan", "gate_type", "scope", "enabled"]

    def get_queryset(self):
        return PlanGate.objects.select_related("plan").prefetch_related("rule_blocks")


class PlanAssignmentViewSet(viewsets.ModelViewSet):
    serializer_class = PlanAssignmentSerializer
    permission_classes = [permissions.IsAuthenticated, IsStaffOrReadOnly]
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["person", "plan"]
    ordering_fields = ["effective_from", "created_at"]

    def get_queryset(self):
        return PlanAssignment.objects.select_related("person", "plan")


# ────────────────────────────────────────────────────────────
# Evaluation
# ────────────────────────────────────────────────────────────

class EvaluateView(APIView):
    """
    GET /api/v1/compensation/evaluate/?person=<id>&start=YYYY-MM-DD&end=YYYY-MM-DD
    Returns the evaluation result without persisting anything.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        query = EvaluateQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        result = evaluate_person(data["person"], data["start"], data["end"])
        return Response(result.as_dict())


# ────────────────────────────────────────────────────────────
# Statements
# ────────────────────────────────────────────────────────────

STATEMENT_EXPORT_COLUMNS = [
    (lambda s: s.person.full_name, "Person"),
    (lambda s: s.plan.name if s.plan else "", "Plan"),
    ("period_start", "Period start"),
    ("period_end", "Period end"),
    ("total", "Total"),
    ("trigger", "Trigger"),
    (lambda s: "yes" if s.is_final else "no", "Final"),
    ("note", "Note"),
    ("computed_at", "Computed at"),
]


class CompensationStatementViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CompensationStatementSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = StatementResultsSetPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["person", "plan", "period_start", "period_end", "is_final", "trigger"]
    ordering_fields = ["period_start", "total", "computed_at"]

    def get_queryset(self):
        return CompensationStatement.objects.select_related("person", "plan")

    @action(detail=False, methods=["post"], url_path="recompute", permission_classes=[IsStaff])
    def recompute(self, request):
        """POST {"person": id, "start": date, "end": date} evaluates and stores a statement."""
        query = EvaluateQuerySerializer(data=request.data)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        statement = record_statement(
            data["person"],
            data["start"],
            data["end"],
            CompensationStatement.Trigger.MANUAL,
        )
        if statement is None:
            return Response({"detail": "Unknown person."}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(statement).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="export-csv")
    def export_csv(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return queryset_to_csv_response(queryset, STATEMENT_EXPORT_COLUMNS, "compensation_statements")
