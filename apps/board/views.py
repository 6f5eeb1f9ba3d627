# apps/board/views.py

import json
import logging
import uuid

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db.models.functions import Lower
from django.http import JsonResponse
from django.shortcuts import render, get_object_or_404, redirect
from django.urls import reverse
from django.views.decorators.http import require_GET, require_POST

from apps.core.models import Member, Project, Status, Task
from apps.core.permissions import member_required
from .services import (
    board_group_name, board_state as build_board_state, build_columns,
    notify_board, serialize_task
)

logger = logging.getLogger(__name__)


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _dashboard_url(project_id=None):
    url = reverse('board:dashboard')
    return f'{url}?project={project_id}' if project_id else url


def _board_context(request, project_list, selected):
    return {
        'title': f'{selected.project_name} - Dashboard' if selected else 'Dashboard',
        'projects': project_list,
        'selected_project': selected,
        'columns': build_columns(selected),
        'members': Member.objects.all(),
        'websocket_group': board_group_name(selected.id) if selected else None,
        'heartbeat_ms': settings.TASKBOARD_WS_HEARTBEAT_INTERVAL * 1000,
    }


@login_required
def dashboard(request):
    """
    Kanban board of one project

    `?project=<id>` selects the project, otherwise the first one by name.
    HTMX requests get only the board partial.
    """
    project_list = Project.objects.order_by(Lower('project_name'))

    selected = None
    project_id = _as_uuid(request.GET.get('project'))
    if project_id:
        selected = project_list.filter(id=project_id).first()
    if selected is None:
        selected = project_list.first()

    context = _board_context(request, project_list, selected)

    if request.htmx:
        return render(request, 'board/partials/board.html', context)

    return render(request, 'board/dashboard.html', context)


@login_required
@require_POST
def create_task(request):
    """
    Creates a task in a state of the selected project

    The creator is the signed-in member; the project comes from the state.
    """
    project = None
    project_id = _as_uuid(request.POST.get('project_id'))
    if project_id:
        project = Project.objects.filter(id=project_id).first()

    title = request.POST.get('title', '').strip()
    status_id = _as_uuid(request.POST.get('status_id'))

    status = None
    if project and status_id:
        status = Status.objects.filter(id=status_id, project=project).first()

    if not project or not title or not status:
        messages.error(request, 'Title and State are required.')
        return _after_create(request, project)

    creator = request.member
    if creator is None:
        messages.error(request, 'Current user information is not available.')
        return _after_create(request, project)

    assignee = None
    assignee_id = _as_uuid(request.POST.get('assignee_id'))
    if assignee_id:
        assignee = Member.objects.filter(id=assignee_id).first()

    task = Task.objects.create(
        title=title,
        description=request.POST.get('description', '').strip() or None,
        status=status,
        project_id=status.project_id,
        creator=creator,
        assignee=assignee
    )

    logger.info("Task '%s' created in '%s' by %s", task.title, status.status_name, creator.login_id)

    notify_board(status.project_id, 'task_created', {
        'task': serialize_task(task),
        'status_name': status.status_name,
        'user': creator.name,
    })

    messages.success(request, f"Task '{task.title}' created.")
    return _after_create(request, project)


def _after_create(request, project):
    if request.htmx:
        project_list = Project.objects.order_by(Lower('project_name'))
        return render(
            request,
            'board/partials/board.html',
            _board_context(request, project_list, project or project_list.first())
        )
    return redirect(_dashboard_url(project.id if project else None))


@login_required
@require_POST
@member_required
def move_task(request):
    """
    Moves a task to another state (drag-and-drop)

    Body: {"task_id": ..., "status_id": ...}
    """
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON body'}, status=400)

    if not isinstance(data, dict):
        return JsonResponse({'success': False, 'error': 'Invalid JSON body'}, status=400)

    task_id = _as_uuid(data.get('task_id'))
    status_id = _as_uuid(data.get('status_id'))
    if not task_id or not status_id:
        return JsonResponse({'success': False, 'error': 'task_id and status_id are required'}, status=400)

    task = get_object_or_404(Task.objects.select_related('status'), id=task_id)
    target = get_object_or_404(Status, id=status_id)

    task_project_id = task.project_id or (task.status.project_id if task.status else None)
    if target.project_id != task_project_id:
        return JsonResponse(
            {'success': False, 'error': 'State belongs to another project'},
            status=400
        )

    previous = task.status
    if not task.move_to(target):
        return JsonResponse({'success': True, 'moved': False, 'task': serialize_task(task)})

    notify_board(target.project_id, 'task_moved', {
        'task_id': str(task.id),
        'task_title': task.title,
        'from_status': previous.status_name if previous else None,
        'to_status': target.status_name,
        'status_id': str(target.id),
        'user': request.member.name,
    })

    return JsonResponse({
        'success': True,
        'moved': True,
        'message': f"'{task.title}' moved to {target.status_name}",
        'task': serialize_task(task),
    })


@login_required
@require_GET
def board_state(request, project_id):
    """Current states and tasks of a project as JSON"""
    project = get_object_or_404(Project, id=project_id)
    return JsonResponse(build_board_state(project))
