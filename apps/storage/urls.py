"""
Storage URLs.
"""
from django.urls import path
from apps.storage.views import FileUploadView, FileDownloadView

app_name = 'storage'

urlpatterns = [
    path('storage/upload', FileUploadView.as_view(), name='upload'),
    path('storage/file/<str:object_name>', FileDownloadView.as_view(), name='file'),
]
