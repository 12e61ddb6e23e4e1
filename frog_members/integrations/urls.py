"""
Integrations URL Configuration

Third-party integrations: Content Snare, Google Calendar, Slack.
"""
from django.urls import path

from .views import (
    ContentSnareAuthURLView,
    ContentSnareCallbackView,
    ContentSnareRefreshView,
    ContentSnareStatusView,
    ContentSnareTemplatesView,
    EventsView,
    SlackTestView,
)

app_name = 'integrations'

urlpatterns = [
    path('content-snare/auth-url/', ContentSnareAuthURLView.as_view(), name='content-snare-auth-url'),
    path('content-snare/callback/', ContentSnareCallbackView.as_view(), name='content-snare-callback'),
    path('content-snare/status/', ContentSnareStatusView.as_view(), name='content-snare-status'),
    path('content-snare/refresh/', ContentSnareRefreshView.as_view(), name='content-snare-refresh'),
    path('content-snare/templates/', ContentSnareTemplatesView.as_view(), name='content-snare-templates'),
    path('events/', EventsView.as_view(), name='events'),
    path('slack/test/', SlackTestView.as_view(), name='slack-test'),
]
