# apps/core/auth_service.py

"""
Authentication service

Wraps password sign-in, Discord OAuth sign-in and the Account to
Member link, so views only deal with (ok, message) results.
"""

import logging
import secrets
from typing import Optional, Tuple
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.urls import reverse
from django.utils.text import slugify

from .models import Account, Member

logger = logging.getLogger(__name__)

OAUTH_STATE_SESSION_KEY = 'discord_oauth_state'
OAUTH_NEXT_SESSION_KEY = 'discord_oauth_next'


class AuthenticationService:
    """
    Sign-in operations for both identity sources

    Every successful sign-in guarantees that a Member exists for the
    account email, because tasks reference members, not accounts.
    """

    def __init__(self):
        self._remember_me_seconds = 86400 * 30  # 30 days
        self._oauth_scope = 'identify email'

    # =================== PASSWORD SIGN-IN ===================

    def sign_in(self, request, email: str, password: str, remember_me: bool = False) -> Tuple[bool, str]:
        """
        Signs in with email (or username) and password

        Returns:
            Tuple[ok, message]
        """
        account = self._authenticate(email, password)

        if not account:
            logger.info('Failed sign-in for %s', email)
            return False, 'Invalid email or password.'

        login(request, account)

        if remember_me:
            request.session.set_expiry(self._remember_me_seconds)

        self.ensure_member(account)

        return True, f'Welcome, {account.display_name()}!'

    def sign_out(self, request) -> bool:
        logout(request)
        return True

    # =================== DISCORD OAUTH ===================

    def oauth_enabled(self) -> bool:
        return bool(settings.DISCORD_CLIENT_ID and settings.DISCORD_CLIENT_SECRET)

    def oauth_authorize_url(self, request, next_url: str = '/') -> str:
        """
        Builds the Discord authorize URL

        A random state is kept in the session and checked again in the
        callback. `next_url` is kept in the session as well, since Discord
        only accepts the registered redirect URI.
        """
        state = secrets.token_urlsafe(32)
        request.session[OAUTH_STATE_SESSION_KEY] = state
        request.session[OAUTH_NEXT_SESSION_KEY] = next_url or '/'

        params = {
            'client_id': settings.DISCORD_CLIENT_ID,
            'redirect_uri': self._redirect_uri(request),
            'response_type': 'code',
            'scope': self._oauth_scope,
            'state': state,
        }
        return f'{settings.DISCORD_AUTHORIZE_URL}?{urlencode(params)}'

    def pop_next_url(self, request) -> Optional[str]:
        """`next` stored when the OAuth flow started"""
        return request.session.pop(OAUTH_NEXT_SESSION_KEY, None)

    def exchange_code_for_session(self, request, code: str, state: Optional[str] = None) -> Tuple[bool, str]:
        """
        Exchanges an authorization code for a signed-in session

        Returns:
            Tuple[ok, message]
        """
        expected_state = request.session.pop(OAUTH_STATE_SESSION_KEY, None)
        if not expected_state or not state or not secrets.compare_digest(str(state).encode(), expected_state.encode()):
            logger.warning('Discord OAuth callback with a missing or wrong state')
            return False, 'OAuth state mismatch'

        try:
            token = self._fetch_token(request, code)
            profile = self._fetch_profile(token)
        except requests.Timeout:
            logger.warning('Discord OAuth request timed out')
            return False, 'Discord did not answer in time'
        except requests.RequestException as e:
            logger.warning('Discord OAuth request failed: %s', e)
            return False, 'Discord rejected the sign-in request'

        email = profile.get('email')
        if not email:
            return False, 'Discord account has no verified email'

        account = self._account_for_profile(email, profile)
        if not account.is_active:
            return False, 'Account is disabled'

        login(request, account, backend='django.contrib.auth.backends.ModelBackend')
        self.ensure_member(account)

        logger.info('Discord sign-in for %s', email)
        return True, f'Welcome, {account.display_name()}!'

    # =================== MEMBERS ===================

    def ensure_member(self, account) -> Member:
        """Member for the account email, created on first use"""
        member, created = Member.objects.get_or_create(
            login_id=account.email,
            defaults={'name': account.get_full_name() or account.username or account.email}
        )
        if created:
            logger.info('Member created for %s', account.email)
        return member

    # =================== PRIVATE METHODS ===================

    def _authenticate(self, email: str, password: str) -> Optional[Account]:
        """Authenticates by email first, then by username"""
        try:
            account = Account.objects.get(email__iexact=email, is_active=True)
            username = account.username
        except Account.DoesNotExist:
            username = email

        return authenticate(username=username, password=password)

    def _redirect_uri(self, request) -> str:
        return settings.DISCORD_REDIRECT_URI or request.build_absolute_uri(reverse('core:auth_callback'))

    def _fetch_token(self, request, code: str) -> str:
        response = requests.post(
            f'{settings.DISCORD_API_BASE}/oauth2/token',
            data={
                'client_id': settings.DISCORD_CLIENT_ID,
                'client_secret': settings.DISCORD_CLIENT_SECRET,
                'grant_type': 'authorization_code',
                'code': code,
                'redirect_uri': self._redirect_uri(request),
            },
            headers={'Content-Type': 'application/x-www-form-urlencoded'},
            timeout=settings.DISCORD_OAUTH_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()['access_token']

    def _fetch_profile(self, access_token: str) -> dict:
        response = requests.get(
            f'{settings.DISCORD_API_BASE}/users/@me',
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=settings.DISCORD_OAUTH_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()

    def _account_for_profile(self, email: str, profile: dict) -> Account:
        account = Account.objects.filter(email__iexact=email).first()
        if account:
            return account

        account = Account(
            username=self._unique_username(profile.get('username') or email.split('@')[0]),
            email=email,
            first_name=(profile.get('global_name') or '')[:150],
        )
        account.set_unusable_password()
        account.save()
        return account

    def _unique_username(self, base: str) -> str:
        base = slugify(base)[:140] or 'discord'
        candidate = base
        suffix = 1
        while Account.objects.filter(username=candidate).exists():
            suffix += 1
            candidate = f'{base}-{suffix}'
        return candidate


# Global service instance (singleton)
auth_service = AuthenticationService()
