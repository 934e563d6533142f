from __future__ import annotations
from django.shortcuts import get_object_or_404
from rest_framework import generics, mixins, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from etl.connectors.github import GitHubProjectConnector, ProjectBoardError
from .models import Project, WorkItem
from .serializers import ProjectSerializer, WorkItemSerializer, AnalyticsFilterParamsSerializer
from . import analytics


def owned_project(request, project_id: int) -> Project:
    """Projects are only visible to their owner; anything else is a 404."""
    return get_object_or_404(Project, pk=project_id, owner=request.user)


class ProjectViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.CreateModelMixin,
                     viewsets.GenericViewSet):
    serializer_class = ProjectSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Project.objects.filter(owner=self.request.user).order_by("-created_at")

    def perform_create(self, serializer):
        v = serializer.validated_data
        try:
            connector = GitHubProjectConnector(v["github_owner"], v["github_repo"], v["board_number"])
            connector.check_repository()
        except ProjectBoardError as e:
            raise ValidationError({"error": f"Repository access failed: {e}"})
        serializer.save()


class ProjectItemsView(generics.ListAPIView):
    """
    GET /api/projects/<id>/items
    """
    serializer_class = WorkItemSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None

    def get_queryset(self):
        project = owned_project(self.request, self.kwargs["project_id"])
        return (WorkItem.objects
                .filter(project=project)
                .select_related("assignee")
                .defer("raw")
                .order_by("-updated_at"))


# ---------- Analytics ----------

class ProjectMetricView(APIView):
    """
    One metric routine per subclass. Failures come back as 400 {"error": ...}.
    """
    permission_classes = [IsAuthenticated]
    metric = None

    def get(self, request, project_id: int):
        project = owned_project(request, project_id)
        result = analytics.run_metric(self.metric, project.id)
        if not result.ok:
            return Response({"error": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.value)

class ProgressView(ProjectMetricView):
    metric = staticmethod(analytics.project_progress)

class StatusDistributionView(ProjectMetricView):
    metric = staticmethod(analytics.status_distribution)

class VelocityView(ProjectMetricView):
    metric = staticmethod(analytics.team_velocity)

class BurndownView(ProjectMetricView):
    metric = staticmethod(analytics.burndown)

class WorkloadView(ProjectMetricView):
    metric = staticmethod(analytics.team_workload)

class EnhancedWorkloadView(ProjectMetricView):
    metric = staticmethod(analytics.enhanced_team_workload)

class MilestoneTimelineView(ProjectMetricView):
    metric = staticmethod(analytics.milestone_timeline)

class RiskAnalysisView(ProjectMetricView):
    metric = staticmethod(analytics.risk_analysis)


class FilteredAnalyticsView(APIView):
    """
    GET /api/analytics/<id>/filtered?start_date=2025-01-01&end_date=2025-01-31&assignee=octocat&status=Done&milestone=v1
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id: int):
        project = owned_project(request, project_id)
        s = AnalyticsFilterParamsSerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        result = analytics.run_metric(analytics.filtered_analytics, project.id, s.validated_data)
        if not result.ok:
            return Response({"error": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.value)


class OverviewView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id: int):
        project = owned_project(request, project_id)
        return Response(analytics.project_overview(project.id))
