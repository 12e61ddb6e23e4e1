"""
microCMS content API client.

Responses are kept in the "microcms" Django cache for MICROCMS_CACHE_TTL
seconds, keyed by endpoint plus the query parameters. The cache backend
culls old entries once OPTIONS.MAX_ENTRIES is reached.
"""
import hashlib
import json
import logging
import os

import requests
from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
CACHE_ALIAS = 'microcms'
DEFAULT_TTL_SECONDS = 300

QUERY_KEYS = ('limit', 'offset', 'orders', 'q', 'filters', 'fields', 'ids', 'depth', 'draftKey')


class CMSError(Exception):
    """microCMS request failed or is not configured"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class CMSNotFound(CMSError):
    pass


def get_microcms_config():
    return {
        'service_domain': getattr(settings, 'MICROCMS_SERVICE_DOMAIN', None) or os.environ.get('MICROCMS_SERVICE_DOMAIN', ''),
        'api_key': getattr(settings, 'MICROCMS_API_KEY', None) or os.environ.get('MICROCMS_API_KEY', ''),
    }


def get_response_cache():
    return caches[CACHE_ALIAS]


def make_cache_key(endpoint, params=None):
    """Stable key for endpoint + params; parameter order does not matter."""
    raw = f"{endpoint}:{json.dumps(params or {}, sort_keys=True, default=str)}"
    return f"microcms:{hashlib.sha256(raw.encode('utf-8')).hexdigest()}"


def clean_queries(params):
    """Keep only parameters microCMS understands and drop empty values."""
    return {key: params[key] for key in QUERY_KEYS if params.get(key) not in (None, '')}


class MicroCMSClient:
    def __init__(self, service_domain=None, api_key=None, session=None):
        config = get_microcms_config()
        self.service_domain = service_domain or config['service_domain']
        self.api_key = api_key or config['api_key']
        self.session = session or requests

    @property
    def base_url(self):
        return f"https://{self.service_domain}.microcms.io/api/v1"

    def get(self, endpoint, content_id=None, queries=None):
        if not self.service_domain or not self.api_key:
            raise CMSError('microCMS is not configured', status_code=503)

        url = f"{self.base_url}/{endpoint}"
        if content_id:
            url = f"{url}/{content_id}"

        try:
            response = self.session.get(
                url,
                params=clean_queries(queries or {}),
                headers={'X-MICROCMS-API-KEY': self.api_key},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("microCMS request to %s failed: %s", endpoint, e)
            raise CMSError(f'microCMS request failed: {e}') from e

        if response.status_code == 404:
            raise CMSNotFound(f'{endpoint}/{content_id or ""} not found', status_code=404)
        if response.status_code >= 400:
            logger.error("microCMS %s answered %s: %s", endpoint, response.status_code, response.text[:200])
            raise CMSError(f'microCMS answered {response.status_code}', status_code=response.status_code)
        return response.json()


def fetch_with_cache(endpoint, params=None, client=None):
    """Read-through cache with the default TTL."""
    return get_with_cache(endpoint, params, client=client)


def get_with_cache(endpoint, params=None, force_refresh=False, ttl=None, client=None):
    params = dict(params or {})
    content_id = params.pop('content_id', None)
    key = make_cache_key(endpoint if not content_id else f"{endpoint}/{content_id}", params)
    response_cache = get_response_cache()

    if not force_refresh:
        cached = response_cache.get(key)
        if cached is not None:
            return cached

    data = (client or MicroCMSClient()).get(endpoint, content_id=content_id, queries=params)
    if ttl is None:
        ttl = getattr(settings, 'MICROCMS_CACHE_TTL', DEFAULT_TTL_SECONDS)
    response_cache.set(key, data, timeout=ttl)
    return data


def get_list_with_cache(endpoint, params=None, force_refresh=False, ttl=None, client=None):
    """List endpoint read: always answers {'contents': [...], 'totalCount': n, ...}."""
    data = get_with_cache(endpoint, params, force_refresh=force_refresh, ttl=ttl, client=client)
    data.setdefault('contents', [])
    data.setdefault('totalCount', len(data['contents']))
    return data


def clear_cache():
    get_response_cache().clear()
