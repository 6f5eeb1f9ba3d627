# apps/core/context_processors.py

from django.conf import settings


def taskboard(request):
    """Values every template needs for the navigation bar"""
    return {
        'current_member': getattr(request, 'member', None),
        'discord_enabled': bool(settings.DISCORD_CLIENT_ID and settings.DISCORD_CLIENT_SECRET),
    }
