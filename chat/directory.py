"""Stream Chat user directory client.

Pushes local user identities (id, display name, avatar) to Stream so the
video-chat frontend can find them, and mints the per-user tokens the
frontend SDK connects with. Directory pushes are best effort: every
failure is logged and reported as ``False``, never raised.
"""

import logging
from functools import lru_cache

import requests
from django.conf import settings
from stream_chat import StreamChat
from stream_chat.base.exceptions import StreamAPIException

logger = logging.getLogger("videochat.chat")


class DirectoryNotConfigured(Exception):
    """Raised when a token is requested without Stream credentials."""


class StreamDirectory:
    """Thin wrapper over the Stream Chat server client.

    The SDK client is built on first use, so an unconfigured directory
    never creates one.
    """

    def __init__(self, api_key: str, api_secret: str, base_url: str = "", timeout: float = 5.0, client=None):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.api_secret)

    @property
    def client(self) -> StreamChat:
        if self._client is None:
            options = {"base_url": self.base_url} if self.base_url else {}
            self._client = StreamChat(self.api_key, self.api_secret, timeout=self.timeout, **options)
        return self._client

    def create_token(self, user_id) -> str:
        """Return a chat token for the frontend SDK, bound to `user_id`."""
        if not self.enabled:
            raise DirectoryNotConfigured("Stream API key or secret is missing")
        return self.client.create_token(str(user_id))

    def upsert(self, user_id, name: str, image: str = "") -> bool:
        """Create or update one user in the directory; True on success."""
        if not self.enabled:
            logger.warning(
                "directory.upsert_skipped",
                extra={"event": "directory.upsert_skipped", "user_id": str(user_id), "reason": "not_configured"},
            )
            return False

        user_id = str(user_id)
        try:
            self.client.upsert_user({"id": user_id, "name": name, "image": image or ""})
        except (StreamAPIException, requests.RequestException) as exc:
            logger.warning(
                "directory.upsert_failed",
                extra={"event": "directory.upsert_failed", "user_id": user_id, "error": str(exc)},
            )
            return False

        logger.info("directory.upserted", extra={"event": "directory.upserted", "user_id": user_id})
        return True


def sync_user(directory: StreamDirectory, user) -> bool:
    """Push `user` to the directory, swallowing any failure."""
    try:
        return directory.upsert(user.pk, user.full_name, user.profile_picture)
    except Exception:
        # Directory problems must never fail the flow that triggered the push
        logger.exception("directory.sync_error", extra={"event": "directory.sync_error", "user_id": user.pk})
        return False


@lru_cache(maxsize=1)
def get_directory() -> StreamDirectory:
    directory = StreamDirectory(
        api_key=getattr(settings, "STREAM_API_KEY", ""),
        api_secret=getattr(settings, "STREAM_API_SECRET", ""),
        base_url=getattr(settings, "STREAM_BASE_URL", ""),
        timeout=getattr(settings, "DIRECTORY_TIMEOUT_SECONDS", 5.0),
    )
    if not directory.enabled:
        logger.warning("directory.not_configured", extra={"event": "directory.not_configured"})
    return directory
