# apps/board/consumers.py

import json
import logging
from channels.generic.websocket import AsyncWebsocketConsumer
from channels.db import database_sync_to_async
from django.utils import timezone
from apps.core.models import Project
from .services import board_group_name, board_state

logger = logging.getLogger(__name__)


class BoardConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer for live updates of a project's board

    Features:
    - Task moved / created notifications
    - Forced refresh after bulk changes
    - Board sync on request
    """

    async def connect(self):
        """
        Joins the project group
        Only authenticated users on an existing project are accepted
        """
        self.project_id = self.scope['url_route']['kwargs']['project_id']
        self.board_group_name = board_group_name(self.project_id)
        self.user = self.scope['user']

        if not self.user.is_authenticated:
            logger.warning('WebSocket rejected: anonymous user on project %s', self.project_id)
            await self.close()
            return

        if not await self.project_exists():
            logger.warning('WebSocket rejected: project %s not found', self.project_id)
            await self.close()
            return

        await self.channel_layer.group_add(
            self.board_group_name,
            self.channel_name
        )

        await self.accept()

        logger.info('WebSocket connected: %s on project %s', self.user.email, self.project_id)

    async def disconnect(self, close_code):
        if hasattr(self, 'board_group_name'):
            await self.channel_layer.group_discard(
                self.board_group_name,
                self.channel_name
            )

        logger.info('WebSocket disconnected from project %s', getattr(self, 'project_id', None))

    async def receive(self, text_data):
        """
        Client messages: ping and sync_board
        """
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.error('Invalid JSON received over WebSocket from %s', self.user.email)
            return

        message_type = data.get('type') if isinstance(data, dict) else None

        # Heartbeat
        if message_type == 'ping':
            await self.send(text_data=json.dumps({
                'type': 'pong',
                'timestamp': self.get_timestamp()
            }))

        elif message_type == 'sync_board':
            state = await self.get_board_state()
            await self.send(text_data=json.dumps({
                'type': 'board_sync',
                'board_data': state,
                'timestamp': self.get_timestamp()
            }))

    # === Group event handlers ===

    async def task_moved(self, event):
        await self.send(text_data=json.dumps({
            'type': 'task_moved',
            'message': event['message']
        }))

    async def task_created(self, event):
        await self.send(text_data=json.dumps({
            'type': 'task_created',
            'message': event['message']
        }))

    async def board_refresh(self, event):
        """
        Forces a full reload of the board (large changes)
        """
        await self.send(text_data=json.dumps({
            'type': 'board_refresh',
            'message': event.get('message', {})
        }))

    # === Helpers ===

    @database_sync_to_async
    def project_exists(self):
        return Project.objects.filter(id=self.project_id).exists()

    @database_sync_to_async
    def get_board_state(self):
        project = Project.objects.filter(id=self.project_id).first()
        return board_state(project) if project else {}

    def get_timestamp(self):
        return timezone.now().isoformat()
