"""
Project URLs.
"""
from django.urls import path
from apps.projects.views import ProjectListView, ProjectDetailView

app_name = 'projects'

urlpatterns = [
    path('projects', ProjectListView.as_view(), name='project-list'),
    path('projects/<uuid:project_id>', ProjectDetailView.as_view(), name='project-detail'),
]
