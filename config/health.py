import logging

from django.db import DatabaseError, connection
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from chat.directory import get_directory

logger = logging.getLogger("videochat.api")


@extend_schema(tags=["Health Endpoint"], summary="Health check")
@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    """Report database reachability and whether chat directory sync is configured."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.exception("health.database_unavailable")
        return Response({"status": "error", "database": "unavailable"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    directory = "enabled" if get_directory().enabled else "disabled"
    return Response({"status": "ok", "database": "ok", "directory": directory})
