from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'learning'

router = DefaultRouter()
router.register(r'admin/sections', views.AdminSectionViewSet, basename='admin-section')
router.register(r'admin/videos', views.AdminVideoViewSet, basename='admin-video')
router.register(r'admin/resources', views.AdminResourceViewSet, basename='admin-resource')

urlpatterns = [
    path('sections/', views.sections, name='sections'),
    path('videos/<int:video_id>/', views.video_detail, name='video-detail'),
    path('videos/<int:video_id>/progress/', views.update_progress, name='video-progress'),
    path('progress/', views.progress_summary, name='progress-summary'),
    path('admin/overview/', views.overview, name='overview'),
    path('', include(router.urls)),
]
