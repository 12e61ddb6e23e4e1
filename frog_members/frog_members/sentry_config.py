"""
Sentry integration.

Set SENTRY_DSN in the environment to enable error reporting; without it
init_sentry() is a no-op. Called at the end of settings.py.
"""
import logging
import os

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ('password', 'token', 'refresh_token', 'access_token', 'secret', 'api_key')


def init_sentry():
    """Initialise sentry-sdk. Returns True when reporting is enabled."""
    sentry_dsn = os.environ.get('SENTRY_DSN', '')

    if not sentry_dsn:
        logger.info("Sentry: DSN not configured, skipping initialization")
        return False

    environment = os.environ.get('DJANGO_ENV', 'production')
    if os.environ.get('DEBUG', 'False').lower() in ('true', '1', 'yes'):
        environment = 'development'

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[
            DjangoIntegration(transaction_style='url'),
            CeleryIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        environment=environment,
        release=os.environ.get('APP_VERSION', 'unknown'),
        traces_sample_rate=float(os.environ.get('SENTRY_TRACES_SAMPLE_RATE', '0.1')),
        send_default_pii=False,
        ignore_errors=['django.security.DisallowedHost'],
        before_send=before_send_callback,
    )

    logger.info("Sentry: initialized for %s environment", environment)
    return True


def before_send_callback(event, hint):
    """Drop 404s and scrub credentials from the request payload."""
    if 'exc_info' in hint:
        exc_type = hint['exc_info'][0]
        if exc_type.__name__ == 'Http404':
            return None

    request_data = event.get('request')
    if request_data:
        data = request_data.get('data')
        if isinstance(data, dict):
            for key in SENSITIVE_KEYS:
                if key in data:
                    data[key] = '[FILTERED]'

        headers = request_data.get('headers')
        if isinstance(headers, dict):
            for header in ('Authorization', 'Stripe-Signature'):
                if header in headers:
                    headers[header] = '[FILTERED]'

    return event


def capture_exception(exception, extra=None):
    """Report a handled exception with optional context."""
    with sentry_sdk.push_scope() as scope:
        for key, value in (extra or {}).items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(exception)
