"""
Test suite for the core app
Tests: models, signals, authentication service, project and state pages
"""
import uuid
from unittest import mock
from urllib.parse import parse_qs, urlparse

import requests
from django.db.models import RestrictedError
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.core.auth_service import auth_service, OAUTH_NEXT_SESSION_KEY, OAUTH_STATE_SESSION_KEY
from apps.core.models import Account, Member, Project, Status, Task
from apps.core.test_utils import TestDataFactory


class ProjectModelTests(TestCase):
    """Test Project and Status model methods"""

    def setUp(self):
        self.project = TestDataFactory.create_project('Alpha')

    def test_new_project_gets_default_statuses(self):
        """Test the post_save signal creates the default states in order"""
        names = [s.status_name for s in self.project.ordered_statuses()]
        self.assertEqual(names, ['To Do', 'In Progress', 'Done'])
        self.assertEqual(
            [s.order_index for s in self.project.ordered_statuses()],
            [1, 2, 3]
        )

    def test_create_default_statuses_is_noop_when_states_exist(self):
        self.assertEqual(self.project.create_default_statuses(), [])
        self.assertEqual(self.project.statuses.count(), 3)

    def test_next_order_index(self):
        self.assertEqual(self.project.next_order_index(), 4)

    def test_next_order_index_without_states(self):
        project = TestDataFactory.create_project(with_defaults=False)
        self.assertEqual(project.next_order_index(), 1)

    def test_next_order_index_ignores_negative_indexes(self):
        project = TestDataFactory.create_project(with_defaults=False)
        TestDataFactory.create_status(project, order_index=-5)
        self.assertEqual(project.next_order_index(), 1)

    def test_ordered_statuses_puts_unindexed_last(self):
        project = TestDataFactory.create_project(with_defaults=False)
        loose = TestDataFactory.create_status(project, name='Loose')
        loose.order_index = None
        loose.save()
        first = TestDataFactory.create_status(project, name='First', order_index=1)

        self.assertEqual(list(project.ordered_statuses()), [first, loose])

    def test_default_ordering_puts_unindexed_last(self):
        project = TestDataFactory.create_project(with_defaults=False)
        loose = TestDataFactory.create_status(project, name='Loose')
        loose.order_index = None
        loose.save()
        first = TestDataFactory.create_status(project, name='First', order_index=1)

        self.assertEqual(list(project.statuses.all()), [first, loose])
        self.assertEqual(list(Status.objects.filter(project=project)), [first, loose])

    def test_reorder_status_up(self):
        statuses = list(self.project.ordered_statuses())
        self.assertTrue(self.project.reorder_status(statuses[2], 'up'))

        names = [s.status_name for s in self.project.ordered_statuses()]
        self.assertEqual(names, ['To Do', 'Done', 'In Progress'])

    def test_reorder_status_renumbers(self):
        """Test a move renumbers every state 1..n"""
        statuses = list(self.project.ordered_statuses())
        Status.objects.filter(id=statuses[0].id).update(order_index=10)
        Status.objects.filter(id=statuses[1].id).update(order_index=20)
        Status.objects.filter(id=statuses[2].id).update(order_index=30)

        self.project.reorder_status(statuses[0], 'down')

        indexes = list(self.project.ordered_statuses().values_list('status_name', 'order_index'))
        self.assertEqual(indexes, [('In Progress', 1), ('To Do', 2), ('Done', 3)])

    def test_reorder_status_out_of_range(self):
        first = self.project.ordered_statuses().first()
        self.assertFalse(self.project.reorder_status(first, 'up'))
        self.assertFalse(self.project.reorder_status(first, 'sideways'))

    def test_status_display_color_fallback(self):
        status = TestDataFactory.create_status(self.project, color=None)
        self.assertEqual(status.display_color, '#6b7280')


class TaskModelTests(TestCase):
    """Test Task behaviour and delete rules"""

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.member = TestDataFactory.member_for(self.account)
        self.project = TestDataFactory.create_project()
        self.todo, self.doing, self.done = list(self.project.ordered_statuses())
        self.task = TestDataFactory.create_task(self.todo, self.member, title='Write docs')

    def test_move_to(self):
        self.assertTrue(self.task.move_to(self.doing))
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, self.doing)

    def test_move_to_same_status(self):
        self.assertFalse(self.task.move_to(self.todo))

    def test_status_with_tasks_cannot_be_deleted(self):
        with self.assertRaises(RestrictedError):
            self.todo.delete()
        self.assertTrue(Status.objects.filter(id=self.todo.id).exists())

    def test_project_delete_removes_states_and_tasks(self):
        self.project.delete()
        self.assertFalse(Status.objects.filter(project_id=self.project.id).exists())
        self.assertFalse(Task.objects.filter(id=self.task.id).exists())

    def test_assignee_delete_sets_null(self):
        other = TestDataFactory.member_for(TestDataFactory.create_account())
        self.task.assignee = other
        self.task.save()
        other.delete()
        self.task.refresh_from_db()
        self.assertIsNone(self.task.assignee)


class MemberTests(TestCase):

    def test_account_creation_creates_member(self):
        account = TestDataFactory.create_account(username='hana', first_name='Hana', last_name='Sato')
        member = Member.objects.for_login(account.email)
        self.assertIsNotNone(member)
        self.assertEqual(member.name, 'Hana Sato')

    def test_for_login_unknown(self):
        self.assertIsNone(Member.objects.for_login('nobody@test.com'))
        self.assertIsNone(Member.objects.for_login(''))

    def test_ensure_member_is_idempotent(self):
        account = TestDataFactory.create_account()
        auth_service.ensure_member(account)
        auth_service.ensure_member(account)
        self.assertEqual(Member.objects.filter(login_id=account.email).count(), 1)


class PasswordSignInTests(TestCase):
    """Test the landing page sign-in form"""

    def setUp(self):
        self.account = TestDataFactory.create_account(username='kai', email='kai@test.com')

    def test_home_shows_form(self):
        response = self.client.get(reverse('core:home'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'name="email"')

    def test_sign_in_redirects_to_dashboard(self):
        response = self.client.post(reverse('core:home'), {
            'email': 'kai@test.com',
            'password': 'testpass123',
        })
        self.assertRedirects(response, reverse('board:dashboard'), fetch_redirect_response=False)

    def test_sign_in_follows_safe_next(self):
        response = self.client.post(reverse('core:login'), {
            'email': 'kai@test.com',
            'password': 'testpass123',
            'next': '/projects/',
        })
        self.assertRedirects(response, '/projects/', fetch_redirect_response=False)

    def test_sign_in_ignores_foreign_next(self):
        response = self.client.post(reverse('core:login'), {
            'email': 'kai@test.com',
            'password': 'testpass123',
            'next': 'https://evil.example.com/',
        })
        self.assertRedirects(response, reverse('board:dashboard'), fetch_redirect_response=False)

    def test_wrong_password(self):
        response = self.client.post(reverse('core:home'), {
            'email': 'kai@test.com',
            'password': 'nope',
        })
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Invalid email or password.')
        self.assertNotIn('_auth_user_id', self.client.session)

    def test_remember_me_extends_session(self):
        self.client.post(reverse('core:home'), {
            'email': 'kai@test.com',
            'password': 'testpass123',
            'remember_me': 'on',
        })
        self.assertEqual(self.client.session.get_expiry_age(), 86400 * 30)

    def test_sign_in_restores_missing_member(self):
        Member.objects.filter(login_id='kai@test.com').delete()
        self.client.post(reverse('core:home'), {
            'email': 'kai@test.com',
            'password': 'testpass123',
        })
        self.assertTrue(Member.objects.filter(login_id='kai@test.com').exists())

    def test_logout_requires_post(self):
        self.client.force_login(self.account)
        self.assertEqual(self.client.get(reverse('core:logout')).status_code, 405)

        response = self.client.post(reverse('core:logout'))
        self.assertRedirects(response, reverse('core:home'), fetch_redirect_response=False)
        self.assertNotIn('_auth_user_id', self.client.session)


@override_settings(DISCORD_CLIENT_ID='client-id', DISCORD_CLIENT_SECRET='client-secret',
                   DISCORD_REDIRECT_URI='http://testserver/auth/callback/')
class DiscordOAuthTests(TestCase):
    """Test the Discord OAuth flow with the HTTP calls mocked"""

    def _set_state(self, value='state-123'):
        session = self.client.session
        session[OAUTH_STATE_SESSION_KEY] = value
        session.save()

    def _token_response(self):
        response = mock.Mock(status_code=200)
        response.json.return_value = {'access_token': 'token-abc'}
        response.raise_for_status.return_value = None
        return response

    def _profile_response(self, email='rin@test.com'):
        response = mock.Mock(status_code=200)
        response.json.return_value = {'id': '42', 'username': 'rin', 'global_name': 'Rin', 'email': email}
        response.raise_for_status.return_value = None
        return response

    def test_oauth_start_redirects_to_discord(self):
        response = self.client.get(reverse('core:oauth_start'))
        self.assertEqual(response.status_code, 302)
        self.assertTrue(response['Location'].startswith('https://discord.com/oauth2/authorize?'))
        self.assertIn('scope=identify+email', response['Location'])
        self.assertIn(OAUTH_STATE_SESSION_KEY, self.client.session)

    @override_settings(DISCORD_CLIENT_ID='')
    def test_oauth_start_not_configured(self):
        response = self.client.get(reverse('core:oauth_start'), follow=True)
        self.assertContains(response, 'Discord sign-in is not configured.')

    def test_callback_without_code_goes_home(self):
        response = self.client.get(reverse('core:auth_callback'))
        self.assertRedirects(response, reverse('core:home'), fetch_redirect_response=False)

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_creates_account_and_member(self, mock_post, mock_get):
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response()
        self._set_state()

        response = self.client.get(reverse('core:auth_callback'), {
            'code': 'abc', 'state': 'state-123', 'next': '/projects/'
        })

        self.assertRedirects(response, '/projects/', fetch_redirect_response=False)
        account = Account.objects.get(email='rin@test.com')
        self.assertFalse(account.has_usable_password())
        self.assertTrue(Member.objects.filter(login_id='rin@test.com').exists())
        self.assertEqual(mock_get.call_args.kwargs['headers']['Authorization'], 'Bearer token-abc')

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_reuses_existing_account(self, mock_post, mock_get):
        existing = TestDataFactory.create_account(username='rin', email='rin@test.com')
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response()
        self._set_state()

        self.client.get(reverse('core:auth_callback'), {'code': 'abc', 'state': 'state-123'})

        self.assertEqual(Account.objects.filter(email='rin@test.com').count(), 1)
        self.assertEqual(int(self.client.session['_auth_user_id']), existing.id)

    def test_callback_state_mismatch(self):
        self._set_state('expected')
        response = self.client.get(reverse('core:auth_callback'), {'code': 'abc', 'state': 'forged'})
        self.assertRedirects(response, reverse('core:auth_code_error'), fetch_redirect_response=False)

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_without_state_is_rejected(self, mock_post, mock_get):
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response()
        self._set_state()

        response = self.client.get(reverse('core:auth_callback'), {'code': 'abc'})

        self.assertRedirects(response, reverse('core:auth_code_error'), fetch_redirect_response=False)
        self.assertNotIn('_auth_user_id', self.client.session)
        mock_post.assert_not_called()

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_without_stored_state_is_rejected(self, mock_post, mock_get):
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response()

        response = self.client.get(reverse('core:auth_callback'), {'code': 'abc', 'state': 'state-123'})

        self.assertRedirects(response, reverse('core:auth_code_error'), fetch_redirect_response=False)
        self.assertNotIn('_auth_user_id', self.client.session)
        self.assertFalse(Account.objects.filter(email='rin@test.com').exists())

    def test_oauth_start_keeps_next_out_of_redirect_uri(self):
        response = self.client.get(reverse('core:oauth_start'), {'next': '/projects/'})

        query = parse_qs(urlparse(response['Location']).query)
        self.assertEqual(query['redirect_uri'], ['http://testserver/auth/callback/'])
        self.assertEqual(self.client.session[OAUTH_NEXT_SESSION_KEY], '/projects/')

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_continues_to_stored_next(self, mock_post, mock_get):
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response()
        self.client.get(reverse('core:oauth_start'), {'next': '/projects/'})
        state = self.client.session[OAUTH_STATE_SESSION_KEY]

        response = self.client.get(reverse('core:auth_callback'), {'code': 'abc', 'state': state})

        self.assertRedirects(response, '/projects/', fetch_redirect_response=False)
        self.assertEqual(mock_post.call_args.kwargs['data']['redirect_uri'], 'http://testserver/auth/callback/')
        self.assertNotIn(OAUTH_NEXT_SESSION_KEY, self.client.session)

    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_timeout(self, mock_post):
        mock_post.side_effect = requests.Timeout()
        self._set_state()

        response = self.client.get(reverse('core:auth_callback'), {'code': 'abc', 'state': 'state-123'})

        self.assertRedirects(response, reverse('core:auth_code_error'), fetch_redirect_response=False)
        self.assertNotIn('_auth_user_id', self.client.session)

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_without_email(self, mock_post, mock_get):
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response(email=None)
        self._set_state()

        response = self.client.get(reverse('core:auth_callback'), {'code': 'abc', 'state': 'state-123'})

        self.assertRedirects(response, reverse('core:auth_code_error'), fetch_redirect_response=False)

    @mock.patch('apps.core.auth_service.requests.get')
    @mock.patch('apps.core.auth_service.requests.post')
    def test_callback_rejects_foreign_next(self, mock_post, mock_get):
        mock_post.return_value = self._token_response()
        mock_get.return_value = self._profile_response()
        self._set_state()

        response = self.client.get(reverse('core:auth_callback'), {
            'code': 'abc', 'state': 'state-123', 'next': '//evil.example.com/'
        })
        self.assertRedirects(response, '/', fetch_redirect_response=False)

    def test_auth_code_error_page(self):
        response = self.client.get(reverse('core:auth_code_error'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Sign-in failed')


class MyPageTests(TestCase):

    def setUp(self):
        self.account = TestDataFactory.create_account(username='mio', email='mio@test.com')
        self.client.force_login(self.account)

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get(reverse('core:mypage'))
        self.assertEqual(response.status_code, 302)

    def test_shows_member(self):
        response = self.client.get(reverse('core:mypage'))
        self.assertContains(response, 'mio@test.com')
        self.assertFalse(response.context['editing'])

    def test_edit_mode(self):
        response = self.client.get(reverse('core:mypage'), {'edit': '1'})
        self.assertTrue(response.context['editing'])

    def test_update_member(self):
        response = self.client.post(reverse('core:mypage'), {'name': 'Mio Tanaka', 'nickname': 'mio'})
        self.assertRedirects(response, reverse('core:mypage'))

        member = Member.objects.get(login_id='mio@test.com')
        self.assertEqual(member.name, 'Mio Tanaka')
        self.assertEqual(member.nickname, 'mio')

    def test_creates_member_when_missing(self):
        Member.objects.filter(login_id='mio@test.com').delete()
        self.client.post(reverse('core:mypage'), {'name': 'Mio', 'nickname': ''})

        member = Member.objects.get(login_id='mio@test.com')
        self.assertIsNone(member.nickname)

    def test_name_required(self):
        response = self.client.post(reverse('core:mypage'), {'name': '  ', 'nickname': ''})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context['editing'])


class ProjectPageTests(TestCase):
    """Test project and state management endpoints"""

    def setUp(self):
        self.account = TestDataFactory.create_account()
        self.client.force_login(self.account)
        self.project = TestDataFactory.create_project('Beta')

    def test_list_and_select(self):
        response = self.client.get(reverse('core:projects'), {'project': str(self.project.id)})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['selected_project'], self.project)
        self.assertEqual(len(response.context['statuses']), 3)
        self.assertEqual(len(response.context['color_presets']), 12)

    def test_invalid_selection_is_ignored(self):
        response = self.client.get(reverse('core:projects'), {'project': 'not-a-uuid'})
        self.assertIsNone(response.context['selected_project'])

    def test_create_project(self):
        response = self.client.post(reverse('core:create_project'), {'project_name': 'Gamma'})
        project = Project.objects.get(project_name='Gamma')
        self.assertRedirects(response, f"{reverse('core:projects')}?project={project.id}")

    def test_create_project_requires_name(self):
        self.client.post(reverse('core:create_project'), {'project_name': '   '})
        self.assertFalse(Project.objects.filter(project_name='').exists())
        self.assertEqual(Project.objects.count(), 1)

    def test_rename_project(self):
        self.client.post(reverse('core:rename_project', args=[self.project.id]), {'project_name': 'Beta 2'})
        self.project.refresh_from_db()
        self.assertEqual(self.project.project_name, 'Beta 2')

    def test_delete_selected_project_clears_selection(self):
        response = self.client.post(
            reverse('core:delete_project', args=[self.project.id]),
            {'selected': str(self.project.id)}
        )
        self.assertRedirects(response, reverse('core:projects'))
        self.assertFalse(Project.objects.filter(id=self.project.id).exists())

    def test_delete_project_with_tasks(self):
        member = TestDataFactory.member_for(self.account)
        TestDataFactory.create_task(self.project.ordered_statuses().first(), member)

        self.client.post(reverse('core:delete_project', args=[self.project.id]))

        self.assertFalse(Project.objects.filter(id=self.project.id).exists())
        self.assertEqual(Task.objects.count(), 0)

    def test_create_status_appends(self):
        self.client.post(
            reverse('core:create_status', args=[self.project.id]),
            {'status_name': 'Review', 'status_color': ''}
        )
        status = Status.objects.get(project=self.project, status_name='Review')
        self.assertEqual(status.order_index, 4)
        self.assertEqual(status.status_color, '#3B82F6')

    def test_create_status_requires_name(self):
        self.client.post(reverse('core:create_status', args=[self.project.id]), {'status_name': ''})
        self.assertEqual(self.project.statuses.count(), 3)

    def test_create_status_rejects_bad_color(self):
        self.client.post(
            reverse('core:create_status', args=[self.project.id]),
            {'status_name': 'Review', 'status_color': 'blue'}
        )
        self.assertFalse(Status.objects.filter(status_name='Review').exists())

    def test_update_status(self):
        status = self.project.ordered_statuses().first()
        self.client.post(
            reverse('core:update_status', args=[status.id]),
            {'status_name': 'Backlog', 'status_color': '#EF4444'}
        )
        status.refresh_from_db()
        self.assertEqual(status.status_name, 'Backlog')
        self.assertEqual(status.status_color, '#EF4444')

    def test_delete_empty_status(self):
        status = self.project.ordered_statuses().last()
        self.client.post(reverse('core:delete_status', args=[status.id]))
        self.assertFalse(Status.objects.filter(id=status.id).exists())

    def test_delete_status_with_tasks_is_refused(self):
        status = self.project.ordered_statuses().first()
        TestDataFactory.create_task(status, TestDataFactory.member_for(self.account))

        response = self.client.post(reverse('core:delete_status', args=[status.id]), follow=True)

        self.assertTrue(Status.objects.filter(id=status.id).exists())
        self.assertContains(response, 'still has tasks')

    def test_move_status(self):
        status = self.project.ordered_statuses().first()
        self.client.post(reverse('core:move_status', args=[status.id, 'down']))

        names = [s.status_name for s in self.project.ordered_statuses()]
        self.assertEqual(names, ['In Progress', 'To Do', 'Done'])

    def test_unknown_status(self):
        response = self.client.post(reverse('core:delete_status', args=[uuid.uuid4()]))
        self.assertRedirects(response, reverse('core:projects'))

    def test_requires_login(self):
        self.client.logout()
        response = self.client.post(reverse('core:create_project'), {'project_name': 'X'})
        self.assertEqual(response.status_code, 302)
        self.assertFalse(Project.objects.filter(project_name='X').exists())


class HealthCheckTests(TestCase):

    def test_health_check(self):
        response = self.client.get(reverse('core:health'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')
