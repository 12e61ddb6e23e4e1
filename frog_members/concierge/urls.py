from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'concierge'

router = DefaultRouter()
router.register(r'sessions', views.AIChatSessionViewSet, basename='ai-session')

urlpatterns = [
    path('ask/', views.ask, name='ask'),
    path('', include(router.urls)),
]
