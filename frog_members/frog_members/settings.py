"""
Django settings for the Frog Members portal.

Every deployment-specific value comes from the environment. Per-environment
overlays (settings_dev.py, settings_production.py) import everything from
here and override what they need.
"""
import os
from datetime import timedelta
from pathlib import Path

from celery.schedules import crontab


BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).lower() in ('true', '1', 'yes')


def _env_list(name, default=''):
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


SECRET_KEY = os.environ.get('SECRET_KEY', 'django-insecure-frog-members-dev-only')

DEBUG = _env_bool('DEBUG', False)

ALLOWED_HOSTS = _env_list('ALLOWED_HOSTS', 'localhost,127.0.0.1')

VERSION = os.environ.get('APP_VERSION', '1.0.0')

# Public URL of the member-facing frontend; used for redirects and Stripe return URLs
APP_URL = os.environ.get('APP_URL', 'http://localhost:3000').rstrip('/')


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework_simplejwt',
    'accounts',
    'integrations',
    'cms',
    'courses',
    'visa',
    'support',
    'concierge',
    'community',
    'learning',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'frog_members.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'frog_members.wsgi.application'


# Database: PostgreSQL when DB_NAME is set, SQLite otherwise
if os.environ.get('DB_NAME'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DB_NAME'),
            'USER': os.environ.get('DB_USER', 'postgres'),
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '5432'),
            'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', '60')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# Process-local caches: "default" holds access tokens and notification
# throttles, "microcms" holds CMS responses
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'frog-members',
    },
    'microcms': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'frog-members-microcms',
        'TIMEOUT': int(os.environ.get('MICROCMS_CACHE_TTL', '300')),
        'OPTIONS': {
            'MAX_ENTRIES': int(os.environ.get('MICROCMS_CACHE_MAX_ENTRIES', '512')),
        },
    },
}

AUTH_USER_MODEL = 'accounts.CustomUser'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'ja'
TIME_ZONE = 'Asia/Tokyo'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# REST framework / JWT
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'DEFAULT_PAGINATION_CLASS': None,
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(os.environ.get('JWT_ACCESS_MINUTES', '60'))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(os.environ.get('JWT_REFRESH_DAYS', '14'))),
    'AUTH_HEADER_TYPES': ('Bearer',),
}


# Portal administrators that do not have an AdminRole row yet
ADMIN_USER_IDS = _env_list('ADMIN_USER_IDS')


# Stripe
STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY', '')
STRIPE_PRICE_ID = os.environ.get('STRIPE_PRICE_ID', '')
STRIPE_WEBHOOK_SECRET = os.environ.get('STRIPE_WEBHOOK_SECRET', '')

# Slack incoming webhooks
SLACK_WEBHOOK_URL = os.environ.get('SLACK_WEBHOOK_URL', '')
SLACK_CHAT_WEBHOOK_URL = os.environ.get('SLACK_CHAT_WEBHOOK_URL', '')
SLACK_TIMEOUT_SECONDS = int(os.environ.get('SLACK_TIMEOUT_SECONDS', '10'))

# Slack Web API (community directory)
SLACK_BOT_TOKEN = os.environ.get('SLACK_BOT_TOKEN', '')
SLACK_XAPP_TOKEN = os.environ.get('SLACK_XAPP_TOKEN', '')
SLACK_WORKSPACE_ID = os.environ.get('SLACK_WORKSPACE_ID', 'T87M2FQGH')
SLACK_GENERAL_CHANNEL_ID = os.environ.get('SLACK_GENERAL_CHANNEL_ID', 'C87M2FQHW')
COMMUNITY_CACHE_TTL = int(os.environ.get('COMMUNITY_CACHE_TTL', '3600'))

# microCMS
MICROCMS_SERVICE_DOMAIN = os.environ.get('MICROCMS_SERVICE_DOMAIN', '')
MICROCMS_API_KEY = os.environ.get('MICROCMS_API_KEY', '')
MICROCMS_CACHE_TTL = CACHES['microcms']['TIMEOUT']
MICROCMS_ALLOWED_ENDPOINTS = _env_list('MICROCMS_ALLOWED_ENDPOINTS', 'blogs,interviews,categories')

# Content Snare
CONTENT_SNARE_CLIENT_ID = os.environ.get('CONTENT_SNARE_CLIENT_ID', '')
CONTENT_SNARE_CLIENT_SECRET = os.environ.get('CONTENT_SNARE_CLIENT_SECRET', '')
CONTENT_SNARE_REDIRECT_URI = os.environ.get('CONTENT_SNARE_REDIRECT_URI', '')
CONTENT_SNARE_WEBHOOK_SECRET = os.environ.get('CONTENT_SNARE_WEBHOOK_SECRET', '')

# Google Calendar
GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET', '')
GOOGLE_CALENDAR_ID = os.environ.get('GOOGLE_CALENDAR_ID', 'primary')

# OpenAI
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')


# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = _env_bool('CELERY_TASK_ALWAYS_EAGER', False)

CELERY_BEAT_SCHEDULE = {
    'sync-stripe-memberships': {
        'task': 'accounts.tasks.sync_subscription_statuses',
        'schedule': crontab(hour=4, minute=0),
    },
}


# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {
        'mask_secrets': {
            '()': 'frog_members.safe_logging.SecretMaskingFilter',
        },
    },
    'formatters': {
        'verbose': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'frog_members.safe_logging.ThreadSafeStreamHandler',
            'formatter': 'verbose',
            'filters': ['mask_secrets'],
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
        'celery': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}


# Sentry (no-op when SENTRY_DSN is empty)
from .sentry_config import init_sentry  # noqa: E402

init_sentry()
