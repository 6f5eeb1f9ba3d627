# apps/core/permissions.py

from functools import wraps

from django.contrib import messages
from django.http import JsonResponse
from django.shortcuts import redirect


class TaskboardPermissions:
    """
    Access rules

    Every signed-in account sees every project. Writing tasks needs a
    Member record, because tasks keep their creator as a Member.
    """

    @staticmethod
    def has_member(request):
        return request.user.is_authenticated and getattr(request, 'member', None) is not None


# Decorators for views

def member_required(view_func):
    """
    Requires a Member for the signed-in account
    JSON views get 403 instead of a redirect
    """

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        if not TaskboardPermissions.has_member(request):
            return JsonResponse(
                {'success': False, 'error': 'Current user information is not available.'},
                status=403
            )
        return view_func(request, *args, **kwargs)

    return wrapped_view


def requires_project(view_func):
    """
    Loads the project from the `project_id` URL argument into
    `request.project`
    """

    @wraps(view_func)
    def wrapped_view(request, project_id, *args, **kwargs):
        from .models import Project

        try:
            project = Project.objects.get(id=project_id)
        except Project.DoesNotExist:
            messages.error(request, 'Project not found.')
            return redirect('core:projects')

        request.project = project
        return view_func(request, project_id, *args, **kwargs)

    return wrapped_view


def requires_status(view_func):
    """
    Loads the state from the `status_id` URL argument into
    `request.status`
    """

    @wraps(view_func)
    def wrapped_view(request, status_id, *args, **kwargs):
        from .models import Status

        try:
            status = Status.objects.select_related('project').get(id=status_id)
        except Status.DoesNotExist:
            messages.error(request, 'State not found.')
            return redirect('core:projects')

        request.status = status
        return view_func(request, status_id, *args, **kwargs)

    return wrapped_view
