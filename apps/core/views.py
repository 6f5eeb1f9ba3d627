# apps/core/views.py

import logging
import uuid

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.cache import cache
from django.db.models import RestrictedError
from django.db.models.functions import Lower
from django.http import JsonResponse
from django.shortcuts import render, redirect
from django.urls import reverse
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_http_methods, require_POST

from .auth_service import auth_service
from .forms import LoginForm, MemberForm, ProjectForm, StatusForm, COLOR_PRESETS, DEFAULT_STATUS_COLOR
from .models import Member, Project
from .permissions import requires_project, requires_status

logger = logging.getLogger(__name__)


def _safe_next(request, candidate, default):
    """Only same-host paths are accepted as redirect targets"""
    if candidate and url_has_allowed_host_and_scheme(
        candidate,
        allowed_hosts={request.get_host()},
        require_https=request.is_secure()
    ):
        return candidate
    return default


# === AUTHENTICATION ===

def home(request):
    """
    Landing page

    Signed out: password form and Discord button. Signed in: account
    email and navigation.
    """
    form = LoginForm()
    next_url = request.GET.get('next', '')

    if request.method == 'POST' and not request.user.is_authenticated:
        form = LoginForm(request.POST)
        next_url = request.POST.get('next', next_url)

        if form.is_valid():
            ok, message = auth_service.sign_in(
                request,
                form.cleaned_data['email'],
                form.cleaned_data['password'],
                form.cleaned_data['remember_me']
            )

            if ok:
                messages.success(request, message)
                return redirect(_safe_next(request, next_url, reverse('board:dashboard')))

            messages.error(request, message)

    context = {
        'title': 'Taskboard',
        'form': form,
        'next': next_url,
        'discord_enabled': auth_service.oauth_enabled(),
    }

    return render(request, 'core/home.html', context)


@require_POST
def logout_view(request):
    auth_service.sign_out(request)
    messages.info(request, 'You have been signed out.')
    return redirect('core:home')


def oauth_start(request):
    """Sends the browser to Discord's consent screen"""
    if not auth_service.oauth_enabled():
        messages.error(request, 'Discord sign-in is not configured.')
        return redirect('core:home')

    next_url = _safe_next(request, request.GET.get('next'), '/')
    return redirect(auth_service.oauth_authorize_url(request, next_url))


def auth_callback(request):
    """
    OAuth callback

    With a `code`: exchange it and continue to the `next` stored when the
    flow started, or the `next` query parameter (same host only).
    Without one: back to the landing page.
    """
    code = request.GET.get('code')
    if not code:
        return redirect('core:home')

    stored_next = auth_service.pop_next_url(request)
    next_url = _safe_next(request, stored_next or request.GET.get('next'), '/')

    ok, message = auth_service.exchange_code_for_session(request, code, request.GET.get('state'))

    if ok:
        messages.success(request, message)
        return redirect(next_url)

    logger.warning('OAuth callback failed: %s', message)
    return redirect('core:auth_code_error')


def auth_code_error(request):
    context = {
        'title': 'Sign-in failed',
        'discord_enabled': auth_service.oauth_enabled(),
    }
    return render(request, 'core/auth_code_error.html', context)


# === MY PAGE ===

@login_required
def mypage(request):
    """
    Profile of the signed-in member

    POST creates or updates the member keyed by the account email.
    """
    member = request.member
    editing = request.GET.get('edit') == '1' or member is None

    if request.method == 'POST':
        form = MemberForm(request.POST, instance=member)

        if form.is_valid():
            member, created = Member.objects.update_or_create(
                login_id=request.user.email,
                defaults={
                    'name': form.cleaned_data['name'],
                    'nickname': form.cleaned_data['nickname'],
                }
            )
            messages.success(request, 'Profile saved.')
            return redirect('core:mypage')

        editing = True
    else:
        form = MemberForm(instance=member)

    context = {
        'title': 'My page',
        'member': member,
        'form': form,
        'editing': editing,
    }

    return render(request, 'core/mypage.html', context)


# === PROJECTS AND STATES ===

def _projects_url(project_id=None):
    url = reverse('core:projects')
    if project_id:
        url = f'{url}?project={project_id}'
    return url


@login_required
def projects(request):
    """Project list with the states of the selected project"""
    project_list = Project.objects.order_by(Lower('project_name'))

    selected = None
    selected_id = request.GET.get('project')
    if selected_id:
        selected = project_list.filter(id=selected_id).first() if _is_uuid(selected_id) else None

    context = {
        'title': 'Projects',
        'projects': project_list,
        'selected_project': selected,
        'statuses': selected.ordered_statuses() if selected else [],
        'project_form': ProjectForm(),
        'status_form': StatusForm(initial={'status_color': DEFAULT_STATUS_COLOR}),
        'color_presets': COLOR_PRESETS,
    }

    return render(request, 'core/projects.html', context)


@login_required
@require_POST
def create_project(request):
    form = ProjectForm(request.POST)

    if not form.is_valid():
        messages.error(request, 'Project name is required.')
        return redirect('core:projects')

    project = form.save()
    logger.info("Project '%s' created by %s", project.project_name, request.user.email)
    messages.success(request, f"Project '{project.project_name}' created.")
    return redirect(_projects_url(project.id))


@login_required
@require_POST
@requires_project
def rename_project(request, project_id):
    project = request.project
    form = ProjectForm(request.POST, instance=project)

    if form.is_valid():
        form.save()
        messages.success(request, 'Project renamed.')
    else:
        messages.error(request, 'Project name is required.')

    return redirect(_projects_url(project.id))


@login_required
@require_POST
@requires_project
def delete_project(request, project_id):
    """Deletes a project with its states and tasks"""
    project = request.project
    name = project.project_name
    selected = request.POST.get('selected')

    project.delete()

    logger.info("Project '%s' deleted by %s", name, request.user.email)
    messages.success(request, f"Project '{name}' deleted.")

    if selected and selected != str(project_id):
        return redirect(_projects_url(selected))
    return redirect('core:projects')


@login_required
@require_POST
@requires_project
def create_status(request, project_id):
    project = request.project
    form = StatusForm(request.POST)

    if form.is_valid():
        status = form.save(commit=False)
        status.project = project
        status.order_index = project.next_order_index()
        status.save()
        messages.success(request, f"State '{status.status_name}' added.")
    else:
        messages.error(request, 'State name is required.')

    return redirect(_projects_url(project.id))


@login_required
@require_POST
@requires_status
def update_status(request, status_id):
    status = request.status
    form = StatusForm(request.POST, instance=status)

    if form.is_valid():
        form.save()
        messages.success(request, 'State updated.')
    else:
        messages.error(request, 'State name is required.')

    return redirect(_projects_url(status.project_id))


@login_required
@require_POST
@requires_status
def delete_status(request, status_id):
    """Refuses to delete a state that still holds tasks"""
    status = request.status
    project_id = status.project_id

    try:
        status.delete()
    except RestrictedError:
        messages.error(
            request,
            f"State '{status.status_name}' still has tasks. Move them to another state first."
        )
        return redirect(_projects_url(project_id))

    messages.success(request, f"State '{status.status_name}' deleted.")
    return redirect(_projects_url(project_id))


@login_required
@require_POST
@requires_status
def move_status(request, status_id, direction):
    status = request.status

    if direction not in ('up', 'down'):
        messages.error(request, 'Unknown direction.')
    elif status.project and not status.project.reorder_status(status, direction):
        messages.info(request, 'State is already at the edge.')

    return redirect(_projects_url(status.project_id))


def _is_uuid(value):
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


# === MONITORING ===

@require_http_methods(['GET'])
def health_check(request):
    """
    Health check for monitoring
    """
    try:
        Project.objects.exists()

        cache.set('health_check', 'ok', 60)
        cache.get('health_check')

        status = {
            'status': 'healthy',
            'database': 'ok',
            'cache': 'ok',
            'timestamp': timezone.now().isoformat(),
        }

        return JsonResponse(status)

    except Exception as e:
        logger.error('Health check failed: %s', e)
        status = {
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat(),
        }

        return JsonResponse(status, status=500)
