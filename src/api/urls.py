"""Main API URL router for /api/v1/."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from compensation import views as compensation_views

app_name = "api"

router = DefaultRouter()
router.register(r"comp-plans", compensation_views.CompPlanViewSet, basename="comp-plan")
router.register(r"comp-rule-blocks", compensation_views.RuleBlockViewSet, basename="comp-rule-block")
router.register(r"comp-plan-gates", compensation_views.PlanGateViewSet, basename="comp-plan-gate")
router.register(r"comp-assignments", compensation_views.PlanAssignmentViewSet, basename="comp-assignment")
router.register(r"comp-statements", compensation_views.CompensationStatementViewSet, basename="comp-statement")

urlpatterns = [
    path("compensation/evaluate/", compensation_views.EvaluateView.as_view(), name="compensation-evaluate"),
    path("", include(router.urls)),
]
