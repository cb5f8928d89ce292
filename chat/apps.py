"""Django app configuration for the chat app."""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Stream Chat integration: directory sync and chat tokens."""

    name = "chat"
