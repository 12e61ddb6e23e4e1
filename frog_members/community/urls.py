from django.urls import path

from . import views

app_name = 'community'

urlpatterns = [
    path('categories/', views.categories, name='categories'),
]
