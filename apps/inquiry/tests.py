"""
Test suite for the inquiry app
Tests: form validation, Discord payload, webhook relay API, contact page
"""
import json
from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.core.test_utils import TestDataFactory
from apps.inquiry.forms import InquiryForm
from apps.inquiry.models import Inquiry
from apps.inquiry.webhook import build_discord_payload, format_submitted_at

WEBHOOK_URL = 'https://discord.test/api/webhooks/1/token'


def valid_form_data(**overrides):
    data = {
        'name': 'Sora',
        'email': 'sora@test.com',
        'category': 'technical',
        'subject': 'Board does not refresh',
        'message': 'After moving a card the column count stays the same.',
    }
    data.update(overrides)
    return data


def webhook_body(**overrides):
    data = {
        'category': 'feature',
        'subject': 'Dark mode',
        'message': 'Please add a dark theme.',
        'user_id': None,
        'user_email': 'sora@test.com',
        'user_name': 'Sora',
        'submitted_at': '2024-01-01T00:00:00Z',
    }
    data.update(overrides)
    return data


def mock_response(status_code=204, text=''):
    response = mock.Mock(status_code=status_code, text=text)
    response.ok = 200 <= status_code < 300
    return response


class InquiryFormTests(TestCase):

    def test_valid(self):
        self.assertTrue(InquiryForm(valid_form_data()).is_valid())

    def test_name_required(self):
        form = InquiryForm(valid_form_data(name=''))
        self.assertIn('Name is required.', form.errors['name'])

    def test_email_pattern(self):
        form = InquiryForm(valid_form_data(email='not-an-email'))
        self.assertIn('Enter a valid email address.', form.errors['email'])

    def test_subject_required(self):
        form = InquiryForm(valid_form_data(subject=''))
        self.assertIn('Subject is required.', form.errors['subject'])

    def test_message_too_short(self):
        form = InquiryForm(valid_form_data(message='Too short'))
        self.assertIn('Message must be at least 10 characters.', form.errors['message'])

    def test_message_length_bounds(self):
        self.assertTrue(InquiryForm(valid_form_data(message='x' * 10)).is_valid())
        self.assertTrue(InquiryForm(valid_form_data(message='x' * 500)).is_valid())

        form = InquiryForm(valid_form_data(message='x' * 501))
        self.assertIn('Message must be at most 500 characters.', form.errors['message'])

    def test_unknown_category(self):
        form = InquiryForm(valid_form_data(category='complaint'))
        self.assertIn('category', form.errors)


class DiscordPayloadTests(TestCase):
    """Test the Discord embed built for an inquiry"""

    def _fields(self, payload):
        return {f['name']: f for f in payload['embeds'][0]['fields']}

    def test_embed_layout(self):
        payload = build_discord_payload(webhook_body())
        embed = payload['embeds'][0]
        fields = self._fields(payload)

        self.assertEqual(embed['title'], 'Inquiry details')
        self.assertEqual(embed['color'], 0x5865F2)
        self.assertEqual(embed['footer']['text'], 'Inquiry system')
        self.assertEqual(fields['Category']['value'], 'Feature request')
        self.assertTrue(fields['Subject']['inline'])
        self.assertFalse(fields['Message']['inline'])

    def test_fallback_values(self):
        fields = self._fields(build_discord_payload(webhook_body(user_name='', user_id=None)))
        self.assertEqual(fields['Name']['value'], 'Not provided')
        self.assertEqual(fields['User ID']['value'], 'Guest user')

    def test_unknown_category_shown_as_given(self):
        fields = self._fields(build_discord_payload(webhook_body(category='complaint')))
        self.assertEqual(fields['Category']['value'], 'complaint')

    def test_long_message_truncated(self):
        fields = self._fields(build_discord_payload(webhook_body(message='a' * 1200)))
        self.assertEqual(fields['Message']['value'], 'a' * 1000 + '...')

    def test_message_at_limit_kept(self):
        fields = self._fields(build_discord_payload(webhook_body(message='a' * 1000)))
        self.assertEqual(fields['Message']['value'], 'a' * 1000)

    @override_settings(TIME_ZONE='Asia/Tokyo')
    def test_submitted_at_local_time(self):
        self.assertEqual(format_submitted_at('2024-01-01T00:00:00Z'), '2024/01/01 09:00:00')

    def test_unreadable_submitted_at_falls_back_to_now(self):
        for value in ('2024-13-01T00:00:00', 'yesterday', 1700000000, None):
            self.assertRegex(format_submitted_at(value), r'^\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}$')

    def test_non_string_message_and_subject(self):
        fields = self._fields(build_discord_payload(webhook_body(subject=42, message=12345)))
        self.assertEqual(fields['Subject']['value'], '42')
        self.assertEqual(fields['Message']['value'], '12345')


@override_settings(TASKBOARD_WEBHOOK_URL=WEBHOOK_URL)
class SendWebhookAPITests(TestCase):
    """Test POST /api/send-webhook/"""

    def _post(self, body):
        return self.client.post(
            reverse('inquiry:send_webhook'),
            data=json.dumps(body),
            content_type='application/json'
        )

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_success(self, mock_post):
        mock_post.return_value = mock_response(204)

        response = self._post(webhook_body())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['message'], 'Discord webhook sent successfully')
        self.assertIn('timestamp', response.json())
        self.assertEqual(mock_post.call_args.args[0], WEBHOOK_URL)
        self.assertEqual(mock_post.call_args.kwargs['timeout'], 10)

    def test_missing_fields(self):
        response = self._post(webhook_body(message=''))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()['error'],
            'Missing required fields: subject and message are required'
        )

    @override_settings(TASKBOARD_WEBHOOK_URL='')
    def test_not_configured(self):
        response = self._post(webhook_body())
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'Discord Webhook URL not configured')

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_discord_error_status(self, mock_post):
        mock_post.return_value = mock_response(400, '{"message": "Invalid Form Body"}')

        response = self._post(webhook_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json()['error'],
            'Discord webhook failed with status 400: {"message": "Invalid Form Body"}'
        )

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_timeout(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()

        response = self._post(webhook_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'Discord webhook request timed out')

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_network_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('refused')

        response = self._post(webhook_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'Network error occurred')

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_invalid_submitted_at(self, mock_post):
        mock_post.return_value = mock_response(204)

        response = self._post(webhook_body(submitted_at='2024-13-01T00:00:00'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/json')

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_numeric_message(self, mock_post):
        mock_post.return_value = mock_response(204)

        response = self._post({'subject': 's', 'message': 12345})

        self.assertEqual(response.status_code, 200)
        fields = {f['name']: f['value'] for f in mock_post.call_args.kwargs['json']['embeds'][0]['fields']}
        self.assertEqual(fields['Message'], '12345')

    @mock.patch('apps.inquiry.webhook.requests.post')
    @mock.patch('apps.inquiry.webhook.build_discord_payload')
    def test_unexpected_error_returns_json(self, mock_build, mock_post):
        mock_build.side_effect = RuntimeError('payload broke')

        response = self._post(webhook_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'payload broke')
        self.assertIn('timestamp', response.json())
        mock_post.assert_not_called()

    def test_invalid_json(self):
        response = self.client.post(
            reverse('inquiry:send_webhook'),
            data='{broken',
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(reverse('inquiry:send_webhook')).status_code, 405)


@override_settings(TASKBOARD_WEBHOOK_URL=WEBHOOK_URL)
class InquiryPageTests(TestCase):
    """Test the contact page"""

    def setUp(self):
        self.account = TestDataFactory.create_account(username='sora', email='sora@test.com', first_name='Sora')
        self.member = TestDataFactory.member_for(self.account)
        self.client.force_login(self.account)

    def test_requires_login(self):
        self.client.logout()
        self.assertEqual(self.client.get(reverse('inquiry:inquiry')).status_code, 302)

    def test_prefilled_from_member(self):
        response = self.client.get(reverse('inquiry:inquiry'))
        form = response.context['form']
        self.assertEqual(form.initial['name'], 'Sora')
        self.assertEqual(form.initial['email'], 'sora@test.com')

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_submit_saves_and_relays(self, mock_post):
        mock_post.return_value = mock_response(204)

        response = self.client.post(reverse('inquiry:inquiry'), valid_form_data(), follow=True)

        inquiry = Inquiry.objects.get()
        self.assertTrue(inquiry.webhook_sent)
        self.assertEqual(inquiry.member, self.member)
        self.assertEqual(inquiry.ip_address, '127.0.0.1')
        self.assertContains(response, 'Your inquiry has been sent.')

        payload = mock_post.call_args.kwargs['json']
        fields = {f['name']: f['value'] for f in payload['embeds'][0]['fields']}
        self.assertEqual(fields['User ID'], str(self.member.id))

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_relay_failure_keeps_inquiry(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError()

        response = self.client.post(reverse('inquiry:inquiry'), valid_form_data(), follow=True)

        inquiry = Inquiry.objects.get()
        self.assertFalse(inquiry.webhook_sent)
        self.assertContains(response, 'could not be delivered')

    @mock.patch('apps.inquiry.webhook.requests.post')
    def test_invalid_form_not_saved(self, mock_post):
        response = self.client.post(reverse('inquiry:inquiry'), valid_form_data(message='short'))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Message must be at least 10 characters.')
        self.assertFalse(Inquiry.objects.exists())
        mock_post.assert_not_called()
