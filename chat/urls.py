from django.urls import path

from .views import chat_token

urlpatterns = [
    path("token/", chat_token, name="chat_token"),
]
