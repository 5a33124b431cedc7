"""
URL configuration for the Invoice Management System API.
"""
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # API Documentation
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # Authentication endpoints
    path('iam/v1/authenticate/', include('apps.iam.urls_auth')),  # email, token, logout

    # API v1
    path('api/v1/', include('apps.core.urls')),  # health
    path('api/v1/', include('apps.invoices.urls')),
    path('api/v1/', include('apps.projects.urls')),
    path('api/v1/', include('apps.iam.urls')),  # users, users/me
    path('api/v1/', include('apps.master_data.urls')),
    path('api/v1/', include('apps.storage.urls')),
]
