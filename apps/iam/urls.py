"""
User management URLs.
"""
from django.urls import path
from apps.iam.views import (
    UserListView,
    UserDetailView,
    UserAssignProjectView,
    UserStatusView,
    UserPermissionsView,
    CurrentUserView,
)

app_name = 'users'

urlpatterns = [
    path('users/me', CurrentUserView.as_view(), name='me'),
    path('users', UserListView.as_view(), name='user-list'),
    path('users/<uuid:user_id>', UserDetailView.as_view(), name='user-detail'),
    path('users/<uuid:user_id>/assign-project', UserAssignProjectView.as_view(), name='user-assign-project'),
    path('users/<uuid:user_id>/status', UserStatusView.as_view(), name='user-status'),
    path('users/<uuid:user_id>/permissions', UserPermissionsView.as_view(), name='user-permissions'),
]
