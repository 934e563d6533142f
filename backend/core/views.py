import logging

from django.db import DatabaseError, connection
from django.utils.timezone import now
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated

logger = logging.getLogger(__name__)

class HealthView(APIView):
    """Liveness plus a database round-trip; 503 when the database is unreachable."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        try:
            connection.ensure_connection()
            db_ok = True
        except DatabaseError:
            logger.exception("Health check: database unreachable")
            db_ok = False
        return Response(
            {"status": "ok" if db_ok else "degraded", "database": db_ok, "time": now().isoformat()},
            status=status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

class PingView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        return Response({"ok": True, "user": user.get_username(), "projects": user.projects.count()})
