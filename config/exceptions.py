"""DRF exception handling for the API.

Wraps DRF's default handler so that errors DRF does not know about are
logged with their traceback and answered with a generic 500 body instead
of leaking internal detail to the client.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger("videochat.api")


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    request = context.get("request")
    logger.exception(
        "api.unhandled_error",
        extra={
            "event": "api.unhandled_error",
            "path": getattr(request, "path", None),
            "method": getattr(request, "method", None),
        },
    )
    return Response({"detail": "Something went wrong."}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
