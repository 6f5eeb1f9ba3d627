# apps/inquiry/views.py

import json
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import render, redirect
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .forms import InquiryForm
from .models import Inquiry
from .webhook import relay_inquiry, relay_saved_inquiry

logger = logging.getLogger(__name__)


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR') or None


@login_required
def inquiry(request):
    """
    Contact form

    The inquiry is stored first, then relayed to Discord. A relay failure
    keeps the stored inquiry and shows a warning.
    """
    member = request.member

    if request.method == 'POST':
        form = InquiryForm(request.POST)

        if form.is_valid():
            record = Inquiry.objects.create(
                category=form.cleaned_data['category'],
                subject=form.cleaned_data['subject'],
                message=form.cleaned_data['message'],
                member=member,
                user_email=form.cleaned_data['email'],
                user_name=form.cleaned_data['name'],
                ip_address=_client_ip(request),
                user_agent=request.META.get('HTTP_USER_AGENT', ''),
            )
            logger.info('Inquiry %s stored from %s', record.pk, record.user_email)

            if relay_saved_inquiry(record):
                messages.success(request, 'Thank you! Your inquiry has been sent.')
            else:
                messages.warning(
                    request,
                    'Your inquiry was saved, but the notification could not be delivered.'
                )

            return redirect('inquiry:thanks')
    else:
        initial = {}
        if member:
            initial = {'name': member.name, 'email': member.login_id}
        form = InquiryForm(initial=initial)

    context = {
        'title': 'Inquiry',
        'form': form,
    }

    return render(request, 'inquiry/inquiry.html', context)


@login_required
def thanks(request):
    return render(request, 'inquiry/thanks.html', {'title': 'Inquiry sent'})


@csrf_exempt
@require_POST
def send_webhook(request):
    """
    Relays an inquiry body to the Discord webhook

    JSON in, JSON out. The status code of the relay is returned as is.
    """
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    if not isinstance(data, dict):
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    status, body = relay_inquiry(data)
    return JsonResponse(body, status=status)
