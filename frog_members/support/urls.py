from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'support'

router = DefaultRouter()
router.register(r'sessions', views.ChatSessionViewSet, basename='chat-session')

urlpatterns = [
    path('', include(router.urls)),
    path('unread-count/', views.unread_count, name='unread-count'),
]
