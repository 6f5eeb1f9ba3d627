# apps/board/routing.py

from django.urls import re_path
from . import consumers

# WebSocket routes of the board app
websocket_urlpatterns = [
    # Live updates of one project's board
    re_path(r'ws/board/(?P<project_id>[0-9a-f-]{36})/$', consumers.BoardConsumer.as_asgi()),
]
