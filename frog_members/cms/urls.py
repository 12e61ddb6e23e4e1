from django.urls import path

from .views import ContentDetailView, ContentListView, RelatedContentView

app_name = 'cms'

urlpatterns = [
    path('<slug:endpoint>/', ContentListView.as_view(), name='content-list'),
    path('<slug:endpoint>/<str:content_id>/', ContentDetailView.as_view(), name='content-detail'),
    path('<slug:endpoint>/<str:content_id>/related/', RelatedContentView.as_view(), name='content-related'),
]
