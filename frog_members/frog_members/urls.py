"""
URL configuration for the Frog Members backend.

Every app is mounted under /api/<app>/ with its own namespace. Liveness and
readiness checks are served outside the API prefix.
"""
from django.contrib import admin
from django.urls import include, path

from .health import live_check, ready_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', live_check, name='health'),
    path('ready/', ready_check, name='ready'),

    path('api/accounts/', include('accounts.urls')),
    path('api/integrations/', include('integrations.urls')),
    path('api/cms/', include('cms.urls')),
    path('api/courses/', include('courses.urls')),
    path('api/visa/', include('visa.urls')),
    path('api/support/', include('support.urls')),
    path('api/concierge/', include('concierge.urls')),
    path('api/community/', include('community.urls')),
    path('api/learning/', include('learning.urls')),
]
