from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'courses'

router = DefaultRouter()
router.register(r'catalogue', views.CourseViewSet, basename='course')
router.register(r'schools', views.SchoolViewSet, basename='school')
router.register(r'applications', views.CourseApplicationViewSet, basename='application')

urlpatterns = [
    path('', include(router.urls)),
    path('goal-locations/', views.goal_locations, name='goal-locations'),
    path('job-positions/', views.job_positions, name='job-positions'),
    path('schedules/', views.my_schedules, name='my-schedules'),
    path('school-editor/<int:school_id>/', views.school_editor_validate, name='school-editor-validate'),
    path('school-editor/<int:school_id>/courses/', views.school_editor_create_course, name='school-editor-create-course'),
    path('content-snare/webhook/', views.content_snare_webhook, name='content-snare-webhook'),
]
