from django.contrib import admin
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import HealthView, PingView
from etl.views import ProjectSyncView, SyncLogListView, ProjectCredentialViewSet
from metrics.views import (
    ProjectViewSet, ProjectItemsView,
    ProgressView, StatusDistributionView, VelocityView, BurndownView, WorkloadView,
    EnhancedWorkloadView, MilestoneTimelineView, RiskAnalysisView, FilteredAnalyticsView, OverviewView,
)

router = DefaultRouter()
router.register(r"projects", ProjectViewSet, basename="project")
router.register(r"credentials", ProjectCredentialViewSet, basename="projectcredential")

urlpatterns = [
    path('admin/', admin.site.urls),
    path("api/", include(router.urls)),
    # Health (public)
    path("api/health/", HealthView.as_view(), name="health"),

    # Auth (JWT)
    path("api/auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # Simple protected ping
    path("api/ping/", PingView.as_view(), name="ping"),

    path("api/projects/<int:project_id>/items", ProjectItemsView.as_view(), name="project_items"),
    path("api/projects/<int:project_id>/sync", ProjectSyncView.as_view(), name="project_sync"),
    path("api/projects/<int:project_id>/sync-logs", SyncLogListView.as_view(), name="project_sync_logs"),

    path("api/analytics/<int:project_id>/progress",            ProgressView.as_view(),           name="analytics_progress"),
    path("api/analytics/<int:project_id>/status-distribution", StatusDistributionView.as_view(), name="analytics_status_distribution"),
    path("api/analytics/<int:project_id>/velocity",            VelocityView.as_view(),           name="analytics_velocity"),
    path("api/analytics/<int:project_id>/burndown",            BurndownView.as_view(),           name="analytics_burndown"),
    path("api/analytics/<int:project_id>/workload",            WorkloadView.as_view(),           name="analytics_workload"),
    path("api/analytics/<int:project_id>/enhanced-workload",   EnhancedWorkloadView.as_view(),   name="analytics_enhanced_workload"),
    path("api/analytics/<int:project_id>/milestones",          MilestoneTimelineView.as_view(),  name="analytics_milestones"),
    path("api/analytics/<int:project_id>/risk-analysis",       RiskAnalysisView.as_view(),       name="analytics_risk"),
    path("api/analytics/<int:project_id>/filtered",            FilteredAnalyticsView.as_view(),  name="analytics_filtered"),
    path("api/analytics/<int:project_id>/overview",            OverviewView.as_view(),           name="analytics_overview"),
]
