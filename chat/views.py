"""DRF views for the chat integration."""

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from .directory import DirectoryNotConfigured, get_directory

logger = logging.getLogger("videochat.chat")


@extend_schema(
    tags=["Chat Endpoints"],
    summary="Get chat token",
    description="Returns a Stream Chat token for the session's user, used by the frontend chat and video SDK.",
    responses={
        200: inline_serializer(name="ChatTokenResponse", fields={"token": rf_serializers.CharField()}),
        401: OpenApiResponse(description="Unauthorized"),
        503: OpenApiResponse(description="Chat service not configured"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def chat_token(request):
    try:
        token = get_directory().create_token(request.user.pk)
    except DirectoryNotConfigured:
        logger.warning("chat.token_unavailable", extra={"event": "chat.token_unavailable", "user_id": request.user.pk})
        return Response({"detail": "Chat service is not configured."}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({"token": token})


# Throttle scope for chat tokens
chat_token.throttle_scope = "chat_token"
