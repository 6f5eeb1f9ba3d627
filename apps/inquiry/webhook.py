# apps/inquiry/webhook.py

"""
Discord webhook relay for inquiries

`relay_inquiry` builds the Discord message for an inquiry body and posts
it to the configured webhook. It returns an HTTP status and a JSON-ready
body, so the API view can pass the result straight through.
"""

import logging
from datetime import datetime
from typing import Dict, Tuple

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .models import Inquiry

logger = logging.getLogger(__name__)

EMBED_COLOR = 0x5865F2
CATEGORY_LABELS = dict(Inquiry.CATEGORY_CHOICES)


def category_label(category):
    """Display label of a category; unknown keys are shown as given"""
    return CATEGORY_LABELS.get(category, category)


def truncate_message(message, limit=None):
    limit = limit or settings.TASKBOARD_WEBHOOK_MESSAGE_LIMIT
    message = str(message)
    if len(message) > limit:
        return message[:limit] + '...'
    return message


def format_submitted_at(value):
    """Local date and time of the submission; unreadable values fall back to now"""
    submitted = value
    if isinstance(value, str):
        try:
            submitted = parse_datetime(value)
        except ValueError:
            submitted = None
    if not isinstance(submitted, datetime):
        submitted = timezone.now()
    if timezone.is_naive(submitted):
        submitted = timezone.make_aware(submitted)
    return timezone.localtime(submitted).strftime('%Y/%m/%d %H:%M:%S')


def build_discord_payload(data: Dict) -> Dict:
    """Discord message with one embed describing the inquiry"""
    return {
        'content': '📧 A new inquiry has arrived',
        'embeds': [
            {
                'title': 'Inquiry details',
                'color': EMBED_COLOR,
                'fields': [
                    {
                        'name': 'Category',
                        'value': category_label(data.get('category')) or '-',
                        'inline': True,
                    },
                    {
                        'name': 'Subject',
                        'value': str(data['subject']),
                        'inline': True,
                    },
                    {
                        'name': 'Name',
                        'value': data.get('user_name') or 'Not provided',
                        'inline': True,
                    },
                    {
                        'name': 'Email',
                        'value': data.get('user_email') or '-',
                        'inline': True,
                    },
                    {
                        'name': 'Submitted at',
                        'value': format_submitted_at(data.get('submitted_at')),
                        'inline': True,
                    },
                    {
                        'name': 'User ID',
                        'value': str(data['user_id']) if data.get('user_id') else 'Guest user',
                        'inline': True,
                    },
                    {
                        'name': 'Message',
                        'value': truncate_message(data['message']),
                        'inline': False,
                    },
                ],
                'timestamp': timezone.now().isoformat(),
                'footer': {
                    'text': 'Inquiry system'
                },
            }
        ],
    }


def relay_inquiry(data: Dict) -> Tuple[int, Dict]:
    """
    Posts an inquiry to the Discord webhook

    Returns:
        Tuple[http_status, response_body]
    """
    if not data.get('subject') or not data.get('message'):
        return 400, {'error': 'Missing required fields: subject and message are required'}

    webhook_url = settings.TASKBOARD_WEBHOOK_URL
    if not webhook_url:
        logger.warning('Discord Webhook URL not configured')
        return 500, {'error': 'Discord Webhook URL not configured'}

    try:
        payload = build_discord_payload(data)
        response = requests.post(
            webhook_url,
            json=payload,
            headers={'Content-Type': 'application/json'},
            timeout=settings.TASKBOARD_WEBHOOK_TIMEOUT
        )
    except requests.exceptions.Timeout:
        logger.error('Discord webhook request timed out')
        return 500, {'error': 'Discord webhook request timed out', 'timestamp': timezone.now().isoformat()}
    except requests.exceptions.ConnectionError as e:
        logger.error('Discord webhook network error: %s', e)
        return 500, {'error': 'Network error occurred', 'timestamp': timezone.now().isoformat()}
    except requests.exceptions.RequestException as e:
        logger.error('Discord webhook error: %s', e)
        return 500, {'error': str(e), 'timestamp': timezone.now().isoformat()}
    except Exception as e:
        logger.exception('Discord webhook relay failed')
        return 500, {'error': str(e), 'timestamp': timezone.now().isoformat()}

    if not response.ok:
        logger.error('Discord webhook failed: status=%s body=%s', response.status_code, response.text)
        return 500, {'error': f'Discord webhook failed with status {response.status_code}: {response.text}'}

    logger.info('Discord webhook sent for inquiry "%s"', data['subject'])
    return 200, {
        'message': 'Discord webhook sent successfully',
        'timestamp': timezone.now().isoformat(),
    }


def relay_saved_inquiry(inquiry: Inquiry) -> bool:
    """Relays a stored inquiry and records whether it was delivered"""
    status, _ = relay_inquiry(inquiry.as_payload())
    if status == 200:
        inquiry.webhook_sent = True
        inquiry.save(update_fields=['webhook_sent'])
        return True
    return False
