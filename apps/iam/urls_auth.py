"""
URL routing for authentication endpoints.
"""
from django.urls import path
from apps.iam.views_auth import EmailLoginView, TokenView, LogoutView

app_name = 'auth'

urlpatterns = [
    path('email', EmailLoginView.as_view(), name='email'),
    path('token', TokenView.as_view(), name='token'),
    path('logout', LogoutView.as_view(), name='logout'),
]
