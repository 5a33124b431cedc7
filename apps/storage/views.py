"""
Storage REST API views.

Uploads need a bearer token. Files are served publicly so that <img> tags and
download links work without headers.
"""
from django.conf import settings
from django.http import StreamingHttpResponse
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import NotFoundError, StorageError, ValidationError
from apps.core.logging import SecurityLogger
from apps.storage.services import StorageService, is_valid_object_name


@extend_schema(
    tags=['Storage'],
    summary='Upload file',
    description='''
Upload a single file as multipart field `file`.

The returned `url` is relative to the API host and can be stored on an
invoice (e.g. `invoiceCopyUrl`).
    ''',
    request={'multipart/form-data': {'type': 'object', 'properties': {'file': {'type': 'string', 'format': 'binary'}}}},
    responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 500: OpenApiTypes.OBJECT},
    examples=[
        OpenApiExample(
            'Success Response',
            value={
                'url': '/api/v1/storage/file/1760695200000-482913.pdf',
                'key': '1760695200000-482913.pdf',
                'originalName': 'invoice-042.pdf'
            },
            response_only=True
        )
    ]
)
class FileUploadView(APIView):
    """POST /api/v1/storage/upload"""
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        uploaded_file = request.FILES.get('file')
        if uploaded_file is None:
            raise ValidationError('No file provided')

        max_bytes = settings.STORAGE_MAX_UPLOAD_BYTES
        if uploaded_file.size > max_bytes:
            raise ValidationError(
                'File too large',
                details={'max_bytes': max_bytes, 'size': uploaded_file.size}
            )

        return Response(StorageService.upload(uploaded_file))


@extend_schema(
    tags=['Storage'],
    summary='Download file',
    description='Streams a stored file with its original content type. Public.',
    responses={(200, 'application/octet-stream'): OpenApiTypes.BINARY, 404: OpenApiTypes.OBJECT}
)
class FileDownloadView(APIView):
    """GET /api/v1/storage/file/<name>"""
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, object_name):
        if not is_valid_object_name(object_name):
            SecurityLogger.log_suspicious_activity(
                activity_type='invalid_object_name',
                description='Storage object name rejected',
                ip_address=request.META.get('REMOTE_ADDR', 'unknown'),
                object_name=object_name,
            )
            raise NotFoundError('File not found')

        try:
            content_type, chunks = StorageService.open(object_name)
        except StorageError:
            raise NotFoundError('File not found')

        return StreamingHttpResponse(chunks, content_type=content_type)
