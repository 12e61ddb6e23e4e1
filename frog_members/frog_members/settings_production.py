"""
Production settings (members.frog-portal.jp)
"""
import os

from .settings import *  # noqa: F401,F403

DEBUG = False

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', 'members.frog-portal.jp').split(',')

APP_URL = os.environ.get('APP_URL', 'https://members.frog-portal.jp').rstrip('/')

SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
CSRF_TRUSTED_ORIGINS = [APP_URL]
