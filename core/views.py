import time

from django.conf import settings
from django.db import connections, OperationalError
from rest_framework.views import APIView
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


class HealthCheckView(APIView):
    """
    GET /api/health/

    Public uptime probe. Reports database reachability; a dead database
    means the allocation engine cannot admit anyone, so status is "degraded".
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        start = time.monotonic()

        db_ok = True
        try:
            with connections["default"].cursor() as cursor:
                cursor.execute("SELECT 1")
        except OperationalError:
            db_ok = False

        return Response(
            {
                "service": "felicity",
                "status": "ok" if db_ok else "degraded",
                "db": db_ok,
                "env": getattr(settings, "ENV", "unknown"),
                "notifications_eager": getattr(settings, "CELERY_TASK_ALWAYS_EAGER", False),
                "latency_ms": int((time.monotonic() - start) * 1000),
            },
            status=200 if db_ok else 503,
        )
