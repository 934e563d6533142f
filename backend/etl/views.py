import logging

from rest_framework import generics, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from metrics.views import owned_project
from .connectors.github import ProjectBoardError
from .models import ProjectCredential
from .serializers import SyncLogSerializer, ProjectCredentialSerializer
from .tasks import sync_project

logger = logging.getLogger(__name__)


class ProjectSyncView(APIView):
    """
    POST /api/projects/<id>/sync
    Runs the sync inline and reports how many items made it in.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, project_id: int):
        project = owned_project(request, project_id)
        try:
            result = sync_project(project.id)
        except ProjectBoardError as e:
            logger.warning("Sync of project %s failed: %s", project.pk, e)
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"message": "Sync completed successfully", "items_synced": result["items_synced"]})


class SyncLogListView(generics.ListAPIView):
    serializer_class = SyncLogSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        project = owned_project(self.request, self.kwargs["project_id"])
        return project.sync_logs.order_by("-started_at")


class ProjectCredentialViewSet(viewsets.ModelViewSet):
    serializer_class = ProjectCredentialSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return (ProjectCredential.objects
                .select_related("project")
                .filter(project__owner=self.request.user)
                .order_by("-updated_at"))
