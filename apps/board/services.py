# apps/board/services.py

"""
Board data shared by the HTTP views and the WebSocket consumer
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db.models import Prefetch
from django.utils import timezone

from apps.core.models import Task

logger = logging.getLogger(__name__)

UNASSIGNED_LABEL = 'Unassigned'
UNKNOWN_CREATOR_LABEL = 'Unknown'


def board_group_name(project_id):
    return f'board_{project_id}'


def build_columns(project):
    """
    Columns of the board: each state of the project in order, with the
    tasks whose status is that state
    """
    if project is None:
        return []

    statuses = project.ordered_statuses().prefetch_related(
        Prefetch('tasks', queryset=Task.objects.select_related('assignee', 'creator').order_by('created_at'))
    )

    return [
        {
            'status': status,
            'color': status.display_color,
            'tasks': list(status.tasks.all()),
        }
        for status in statuses
    ]


def serialize_task(task):
    return {
        'id': str(task.id),
        'title': task.title,
        'description': task.description or '',
        'status_id': str(task.status_id) if task.status_id else None,
        'assignee': task.assignee.name if task.assignee else UNASSIGNED_LABEL,
        'creator': task.creator.name if task.creator_id else UNKNOWN_CREATOR_LABEL,
    }


def board_state(project):
    """JSON-ready state of a project's board"""
    return {
        'project_id': str(project.id),
        'project_name': project.project_name,
        'columns': [
            {
                'id': str(column['status'].id),
                'name': column['status'].status_name,
                'color': column['color'],
                'order_index': column['status'].order_index,
                'tasks': [serialize_task(task) for task in column['tasks']],
            }
            for column in build_columns(project)
        ],
    }


def notify_board(project_id, event_type, message):
    """
    Sends an event to every WebSocket open on the project's board

    `event_type` is the consumer handler name (task_moved, task_created,
    board_refresh).
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    message = dict(message, timestamp=timezone.now().isoformat())
    async_to_sync(channel_layer.group_send)(
        board_group_name(project_id),
        {
            'type': event_type,
            'message': message,
        }
    )
    logger.debug('Board event %s sent to project %s', event_type, project_id)
