from django.urls import path

from .consumers import SyncStatusConsumer

websocket_urlpatterns = [
    path("ws/sync/status/", SyncStatusConsumer.as_asgi()),
]
