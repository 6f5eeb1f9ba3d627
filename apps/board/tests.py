"""
Test suite for the board app
Tests: dashboard rendering, task creation, drag-and-drop moves, board state, WebSocket consumer
"""
import json
import uuid
from unittest import mock

from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, TransactionTestCase, override_settings
from django.urls import reverse

from apps.board.routing import websocket_urlpatterns
from apps.board.services import board_group_name, board_state, build_columns
from apps.core.models import Member, Task
from apps.core.test_utils import TestDataFactory


class BoardServiceTests(TestCase):
    """Test column building and board serialization"""

    def setUp(self):
        self.member = TestDataFactory.member_for(TestDataFactory.create_account())
        self.project = TestDataFactory.create_project('Board')
        self.todo, self.doing, self.done = list(self.project.ordered_statuses())

    def test_build_columns_groups_tasks_by_state(self):
        task = TestDataFactory.create_task(self.doing, self.member, title='In flight')

        columns = build_columns(self.project)

        self.assertEqual([c['status'] for c in columns], [self.todo, self.doing, self.done])
        self.assertEqual(columns[0]['tasks'], [])
        self.assertEqual(columns[1]['tasks'], [task])

    def test_build_columns_without_project(self):
        self.assertEqual(build_columns(None), [])

    def test_board_state_fallback_labels(self):
        TestDataFactory.create_task(self.todo, self.member, title='Loose end')

        state = board_state(self.project)
        card = state['columns'][0]['tasks'][0]

        self.assertEqual(state['project_id'], str(self.project.id))
        self.assertEqual(card['assignee'], 'Unassigned')
        self.assertEqual(card['creator'], self.member.name)

    def test_board_state_color_fallback(self):
        self.todo.status_color = None
        self.todo.save()

        state = board_state(self.project)
        self.assertEqual(state['columns'][0]['color'], '#6b7280')


class DashboardViewTests(TestCase):

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.client.force_login(self.account)
        self.beta = TestDataFactory.create_project('beta')
        self.alpha = TestDataFactory.create_project('Alpha')

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get(reverse('board:dashboard'))
        self.assertEqual(response.status_code, 302)

    def test_projects_sorted_case_insensitive(self):
        response = self.client.get(reverse('board:dashboard'))
        self.assertEqual(list(response.context['projects']), [self.alpha, self.beta])

    def test_first_project_auto_selected(self):
        response = self.client.get(reverse('board:dashboard'))
        self.assertEqual(response.context['selected_project'], self.alpha)
        self.assertEqual(len(response.context['columns']), 3)

    def test_select_project(self):
        response = self.client.get(reverse('board:dashboard'), {'project': str(self.beta.id)})
        self.assertEqual(response.context['selected_project'], self.beta)

    def test_unknown_project_falls_back_to_first(self):
        response = self.client.get(reverse('board:dashboard'), {'project': str(uuid.uuid4())})
        self.assertEqual(response.context['selected_project'], self.alpha)

    def test_htmx_gets_partial(self):
        response = self.client.get(reverse('board:dashboard'), HTTP_HX_REQUEST='true')
        self.assertTemplateUsed(response, 'board/partials/board.html')
        self.assertTemplateNotUsed(response, 'board/dashboard.html')

    def test_full_page(self):
        response = self.client.get(reverse('board:dashboard'))
        self.assertTemplateUsed(response, 'board/dashboard.html')

    @override_settings(TASKBOARD_WS_HEARTBEAT_INTERVAL=15)
    def test_heartbeat_interval_from_settings(self):
        response = self.client.get(reverse('board:dashboard'))
        self.assertEqual(response.context['heartbeat_ms'], 15000)
        self.assertContains(response, 'data-heartbeat-ms="15000"')

    def test_cards_show_fallbacks(self):
        member = TestDataFactory.member_for(self.account)
        TestDataFactory.create_task(self.alpha.ordered_statuses().first(), member, title='Card')

        response = self.client.get(reverse('board:dashboard'))

        self.assertContains(response, 'Card')
        self.assertContains(response, 'Unassigned')

    def test_no_projects(self):
        self.alpha.delete()
        self.beta.delete()
        response = self.client.get(reverse('board:dashboard'))
        self.assertIsNone(response.context['selected_project'])
        self.assertContains(response, 'No projects yet.')


@mock.patch('apps.board.views.notify_board')
class CreateTaskTests(TestCase):
    """Test task creation from the dashboard form"""

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.member = TestDataFactory.member_for(self.account)
        self.client.force_login(self.account)
        self.project = TestDataFactory.create_project('Gamma')
        self.todo = self.project.ordered_statuses().first()

    def _post(self, **overrides):
        data = {
            'project_id': str(self.project.id),
            'title': 'New task',
            'status_id': str(self.todo.id),
        }
        data.update(overrides)
        return self.client.post(reverse('board:create_task'), data, follow=True)

    def test_create_task(self, mock_notify):
        self._post(description='Details')

        task = Task.objects.get(title='New task')
        self.assertEqual(task.creator, self.member)
        self.assertEqual(task.project, self.project)
        self.assertEqual(task.status, self.todo)
        self.assertEqual(task.description, 'Details')
        mock_notify.assert_called_once()
        self.assertEqual(mock_notify.call_args.args[:2], (self.project.id, 'task_created'))

    def test_create_task_with_assignee(self, mock_notify):
        self._post(assignee_id=str(self.member.id))
        self.assertEqual(Task.objects.get().assignee, self.member)

    def test_title_required(self, mock_notify):
        response = self._post(title='   ')
        self.assertContains(response, 'Title and State are required.')
        self.assertFalse(Task.objects.exists())
        mock_notify.assert_not_called()

    def test_state_required(self, mock_notify):
        response = self._post(status_id='')
        self.assertContains(response, 'Title and State are required.')
        self.assertFalse(Task.objects.exists())

    def test_state_must_belong_to_project(self, mock_notify):
        other = TestDataFactory.create_project('Other')
        response = self._post(status_id=str(other.ordered_statuses().first().id))
        self.assertContains(response, 'Title and State are required.')
        self.assertFalse(Task.objects.exists())

    def test_member_required(self, mock_notify):
        Member.objects.filter(login_id=self.account.email).delete()
        response = self._post()
        self.assertContains(response, 'Current user information is not available.')
        self.assertFalse(Task.objects.exists())

    def test_htmx_returns_partial(self, mock_notify):
        response = self.client.post(reverse('board:create_task'), {
            'project_id': str(self.project.id),
            'title': 'Via htmx',
            'status_id': str(self.todo.id),
        }, HTTP_HX_REQUEST='true')

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, 'board/partials/board.html')
        self.assertContains(response, 'Via htmx')


@mock.patch('apps.board.views.notify_board')
class MoveTaskTests(TestCase):
    """Test the drag-and-drop endpoint"""

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.member = TestDataFactory.member_for(self.account)
        self.client.force_login(self.account)
        self.project = TestDataFactory.create_project('Delta')
        self.todo, self.doing, self.done = list(self.project.ordered_statuses())
        self.task = TestDataFactory.create_task(self.todo, self.member, title='Drag me')

    def _move(self, payload):
        return self.client.post(
            reverse('board:move_task'),
            data=json.dumps(payload),
            content_type='application/json'
        )

    def test_move_task(self, mock_notify):
        response = self._move({'task_id': str(self.task.id), 'status_id': str(self.done.id)})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['moved'])
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, self.done)
        mock_notify.assert_called_once()
        self.assertEqual(mock_notify.call_args.args[1], 'task_moved')

    def test_same_state_is_noop(self, mock_notify):
        response = self._move({'task_id': str(self.task.id), 'status_id': str(self.todo.id)})

        self.assertTrue(response.json()['success'])
        self.assertFalse(response.json()['moved'])
        mock_notify.assert_not_called()

    def test_state_of_another_project(self, mock_notify):
        other = TestDataFactory.create_project('Other').ordered_statuses().first()
        response = self._move({'task_id': str(self.task.id), 'status_id': str(other.id)})

        self.assertEqual(response.status_code, 400)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, self.todo)

    def test_missing_fields(self, mock_notify):
        response = self._move({'task_id': str(self.task.id)})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_invalid_json(self, mock_notify):
        response = self.client.post(reverse('board:move_task'), data='{nope', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_unknown_task(self, mock_notify):
        response = self._move({'task_id': str(uuid.uuid4()), 'status_id': str(self.done.id)})
        self.assertEqual(response.status_code, 404)

    def test_member_required(self, mock_notify):
        Task.objects.all().delete()
        Member.objects.filter(login_id=self.account.email).delete()
        response = self._move({'task_id': str(uuid.uuid4()), 'status_id': str(self.done.id)})
        self.assertEqual(response.status_code, 403)

    def test_get_not_allowed(self, mock_notify):
        response = self.client.get(reverse('board:move_task'))
        self.assertEqual(response.status_code, 405)


class BoardStateViewTests(TestCase):

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.client.force_login(self.account)
        self.project = TestDataFactory.create_project('Epsilon')

    def test_board_state(self):
        response = self.client.get(reverse('board:board_state', args=[self.project.id]))
        data = response.json()

        self.assertEqual(data['project_name'], 'Epsilon')
        self.assertEqual([c['name'] for c in data['columns']], ['To Do', 'In Progress', 'Done'])

    def test_unknown_project(self):
        response = self.client.get(reverse('board:board_state', args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, 404)


class BoardConsumerTests(TransactionTestCase):
    """Test the WebSocket consumer with the in-memory channel layer"""

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.project = TestDataFactory.create_project('Live')
        self.application = URLRouter(websocket_urlpatterns)

    def _communicator(self, user=None, project_id=None):
        communicator = WebsocketCommunicator(
            self.application,
            f'/ws/board/{project_id or self.project.id}/'
        )
        communicator.scope['user'] = user or self.account
        return communicator

    async def test_anonymous_rejected(self):
        communicator = self._communicator(user=AnonymousUser())
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_unknown_project_rejected(self):
        communicator = self._communicator(project_id=uuid.uuid4())
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_ping_pong(self):
        communicator = self._communicator()
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        await communicator.send_json_to({'type': 'ping'})
        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'pong')

        await communicator.disconnect()

    async def test_sync_board(self):
        communicator = self._communicator()
        await communicator.connect()

        await communicator.send_json_to({'type': 'sync_board'})
        response = await communicator.receive_json_from()

        self.assertEqual(response['type'], 'board_sync')
        self.assertEqual(len(response['board_data']['columns']), 3)

        await communicator.disconnect()

    async def test_group_events_forwarded(self):
        communicator = self._communicator()
        await communicator.connect()

        channel_layer = get_channel_layer()
        await channel_layer.group_send(board_group_name(self.project.id), {
            'type': 'task_moved',
            'message': {'task_id': 'abc', 'to_status': 'Done'},
        })
        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'task_moved')
        self.assertEqual(response['message']['to_status'], 'Done')

        await channel_layer.group_send(board_group_name(self.project.id), {
            'type': 'board_refresh',
            'message': {},
        })
        response = await communicator.receive_json_from()
        self.assertEqual(response['type'], 'board_refresh')

        await communicator.disconnect()

    async def test_invalid_json_is_ignored(self):
        communicator = self._communicator()
        await communicator.connect()

        await communicator.send_to(text_data='{not json')
        self.assertTrue(await communicator.receive_nothing())

        await communicator.disconnect()
