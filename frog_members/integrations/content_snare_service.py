"""
Content Snare integration (document collection for course applications).

OAuth2 flow:
1. build_authorize_url() -> staff member grants access on Content Snare
2. exchange_code(code) -> refresh token stored in RefreshToken
3. ContentSnareTokenManager.get_access_token() -> short-lived access token,
   refreshed on demand; the rotated refresh token is written back every time
4. ContentSnareClient.request() -> partner API call, retried on 401
"""
import logging
import os
import threading
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from .models import RefreshToken

logger = logging.getLogger(__name__)

AUTHORIZE_URL = 'https://api.contentsnare.com/oauth/authorize'
TOKEN_URL = 'https://api.contentsnare.com/oauth/token'
API_BASE_URL = 'https://api.contentsnare.com/partner_api/v1'

DEFAULT_EXPIRES_IN = 3600
EXPIRY_MARGIN_SECONDS = 30
REQUEST_TIMEOUT = 30
MAX_AUTH_RETRIES = 2
ACCESS_TOKEN_CACHE_KEY = 'content_snare_access_token'


class ContentSnareError(Exception):
    """Base exception for Content Snare integration errors"""

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ContentSnareNotConfiguredError(ContentSnareError):
    """Raised when client id / secret are missing"""
    pass


class ReauthorizationRequired(ContentSnareError):
    """Stored refresh token is missing or was rejected; a staff member must reconnect"""
    pass


def get_content_snare_config():
    return {
        'client_id': getattr(settings, 'CONTENT_SNARE_CLIENT_ID', None) or os.environ.get('CONTENT_SNARE_CLIENT_ID', ''),
        'client_secret': getattr(settings, 'CONTENT_SNARE_CLIENT_SECRET', None) or os.environ.get('CONTENT_SNARE_CLIENT_SECRET', ''),
        'redirect_uri': getattr(settings, 'CONTENT_SNARE_REDIRECT_URI', None) or os.environ.get('CONTENT_SNARE_REDIRECT_URI', ''),
    }


def is_configured():
    config = get_content_snare_config()
    return bool(config['client_id'] and config['client_secret'])


def build_authorize_url(state=''):
    config = get_content_snare_config()
    if not config['client_id']:
        raise ContentSnareNotConfiguredError('CONTENT_SNARE_CLIENT_ID is not set')

    params = {
        'response_type': 'code',
        'client_id': config['client_id'],
        'redirect_uri': config['redirect_uri'],
    }
    if state:
        params['state'] = state
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code(code):
    """
    Exchange an authorization code and store the refresh token.

    Returns the token payload from Content Snare. Older content_snare
    refresh tokens are deleted.
    """
    config = get_content_snare_config()
    if not is_configured():
        raise ContentSnareNotConfiguredError('Content Snare OAuth is not configured')

    response = requests.post(
        TOKEN_URL,
        json={
            'grant_type': 'authorization_code',
            'client_id': config['client_id'],
            'client_secret': config['client_secret'],
            'code': code,
            'redirect_uri': config['redirect_uri'],
        },
        timeout=REQUEST_TIMEOUT,
    )
    if response.status_code != 200:
        logger.error("Content Snare code exchange failed: %s %s", response.status_code, response.text[:200])
        raise ContentSnareError('Token exchange failed', status_code=response.status_code, details=response.text[:500])

    payload = response.json()
    refresh_token = payload.get('refresh_token')
    if not refresh_token:
        raise ContentSnareError('Token response did not include a refresh token')

    with transaction.atomic():
        RefreshToken.replace(RefreshToken.SERVICE_CONTENT_SNARE, refresh_token)

    token_manager.store_access_token(payload.get('access_token'), payload.get('expires_in'))
    logger.info("Content Snare connected, refresh token stored")
    return payload


class ContentSnareTokenManager:
    """
    Access token kept in the Django cache.

    The token is cached for its lifetime minus EXPIRY_MARGIN_SECONDS.
    Refreshes are serialized with a lock so two requests in one process
    never rotate the same refresh token at once.
    """
    cache_key = ACCESS_TOKEN_CACHE_KEY

    def __init__(self):
        self._refresh_lock = threading.Lock()

    def clear(self):
        cache.delete(self.cache_key)

    def store_access_token(self, access_token, expires_in=None):
        if not access_token:
            return
        lifetime = int(expires_in or DEFAULT_EXPIRES_IN)
        cache.set(self.cache_key, access_token, max(lifetime - EXPIRY_MARGIN_SECONDS, 1))

    def get_access_token(self, force_refresh=False):
        if not force_refresh:
            cached = cache.get(self.cache_key)
            if cached:
                return cached

        with self._refresh_lock:
            # Another thread may have refreshed while we waited for the lock
            if not force_refresh:
                cached = cache.get(self.cache_key)
                if cached:
                    return cached
            self.clear()
            return self._refresh_locked()

    def _refresh_locked(self):
        stored = RefreshToken.latest_for(RefreshToken.SERVICE_CONTENT_SNARE)
        if not stored:
            raise ReauthorizationRequired('No Content Snare refresh token stored', status_code=401)

        config = get_content_snare_config()
        try:
            response = requests.post(
                TOKEN_URL,
                json={
                    'grant_type': 'refresh_token',
                    'client_id': config['client_id'],
                    'client_secret': config['client_secret'],
                    'refresh_token': stored.refresh_token,
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ContentSnareError(f'Token refresh request failed: {e}') from e

        if response.status_code in (400, 401):
            logger.warning("Content Snare rejected the refresh token (%s); reauthorization required", response.status_code)
            RefreshToken.objects.filter(service_name=RefreshToken.SERVICE_CONTENT_SNARE).delete()
            raise ReauthorizationRequired('Refresh token rejected', status_code=401, details=response.text[:500])
        if response.status_code != 200:
            raise ContentSnareError('Token refresh failed', status_code=response.status_code, details=response.text[:500])

        payload = response.json()
        access_token = payload.get('access_token')
        if not access_token:
            raise ContentSnareError('Token refresh response did not include an access token')

        rotated = payload.get('refresh_token')
        if rotated and rotated != stored.refresh_token:
            with transaction.atomic():
                RefreshToken.replace(RefreshToken.SERVICE_CONTENT_SNARE, rotated)

        lifetime = int(payload.get('expires_in') or DEFAULT_EXPIRES_IN)
        self.store_access_token(access_token, lifetime)
        logger.info("Content Snare access token refreshed, valid for %ss", lifetime)
        return access_token


token_manager = ContentSnareTokenManager()


class ContentSnareClient:
    """Thin wrapper over the Content Snare partner API."""

    def __init__(self, tokens=None):
        self.tokens = tokens or token_manager

    def request(self, method, endpoint, json=None, params=None):
        """
        Call partner_api/v1/{endpoint} and return the decoded JSON body.

        A 401 forces a token refresh and is retried up to MAX_AUTH_RETRIES times.
        """
        url = f"{API_BASE_URL}/{endpoint.lstrip('/')}"
        attempt = 0
        while True:
            access_token = self.tokens.get_access_token(force_refresh=attempt > 0)
            try:
                response = requests.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers={
                        'Authorization': f'Bearer {access_token}',
                        'Accept': 'application/json',
                    },
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                raise ContentSnareError(f'Content Snare request failed: {e}') from e

            if response.status_code == 401 and attempt < MAX_AUTH_RETRIES:
                attempt += 1
                logger.info("Content Snare answered 401 for %s, retry %s with a fresh token", endpoint, attempt)
                continue

            if response.status_code == 401:
                raise ReauthorizationRequired('Content Snare rejected the access token', status_code=401)
            if response.status_code >= 400:
                try:
                    details = response.json()
                except ValueError:
                    details = response.text[:500]
                raise ContentSnareError(
                    f'Content Snare API error on {endpoint}',
                    status_code=response.status_code,
                    details=details,
                )
            if not response.content:
                return {}
            return response.json()

    def get_client(self, client_id):
        return self.request('GET', f'clients/{client_id}')

    def create_client(self, full_name, email, language_code='en'):
        return self.request('POST', 'clients', json={
            'full_name': full_name,
            'email': email,
            'language_code': language_code,
        })

    def update_client(self, client_id, full_name, email, language_code='en'):
        return self.request('PUT', f'clients/{client_id}', json={
            'full_name': full_name,
            'email': email,
            'language_code': language_code,
        })

    def create_request(self, template_id, client_email, client_full_name, name):
        return self.request('POST', 'requests', json={
            'request_template_id': template_id,
            'client_email': client_email,
            'client_full_name': client_full_name,
            'name': name,
            'comments_enabled': True,
            'share_via_link_enabled': True,
            'status': 'published',
        })

    def get_request(self, request_id):
        return self.request('GET', f'requests/{request_id}')

    def list_templates(self):
        return self.request('GET', 'request_templates')
