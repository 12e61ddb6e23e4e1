"""
Development settings - local work
"""
from .settings import *  # noqa: F401,F403

DEBUG = True
ALLOWED_HOSTS = ['*']

APP_URL = 'http://localhost:3000'

# Run Celery tasks inline so no broker is needed locally
CELERY_TASK_ALWAYS_EAGER = True

LOGGING['root']['level'] = 'DEBUG'  # noqa: F405
