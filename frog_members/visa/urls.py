from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'visa'

router = DefaultRouter()
router.register(r'types', views.VisaTypeViewSet, basename='visa-type')
router.register(r'plans', views.VisaPlanViewSet, basename='visa-plan')
router.register(r'reviews', views.VisaPlanReviewViewSet, basename='visa-review')

urlpatterns = [
    path('', include(router.urls)),
    path('search/', views.site_search, name='search'),
]
