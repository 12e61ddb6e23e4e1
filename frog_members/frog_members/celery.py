"""Celery application instance for the Frog Members portal."""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "frog_members.settings")

app = Celery("frog_members")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
