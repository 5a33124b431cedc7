"""
Tests for the storage proxy. The MinIO client is mocked.
"""
from unittest.mock import MagicMock, patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from minio.error import MinioException
from urllib3.exceptions import MaxRetryError

from apps.storage.services import (
    StorageService,
    generate_object_name,
    is_valid_object_name,
)

UPLOAD_URL = '/api/v1/storage/upload'
FILE_URL = '/api/v1/storage/file'


@pytest.fixture
def minio_client():
    client = MagicMock()
    with patch('apps.storage.services.get_client', return_value=client):
        yield client


class TestObjectNames:

    @pytest.mark.parametrize('original, ext', [
        ('invoice.pdf', 'pdf'),
        ('scan.final.JPG', 'JPG'),
        ('weird.p$d#f', 'pdf'),
        ('noextension', 'noextension'),
        ('trailing.', 'bin'),
        ('', 'bin'),
    ])
    def test_extension(self, original, ext):
        name = generate_object_name(original)

        assert name.endswith(f'.{ext}')
        assert is_valid_object_name(name)

    def test_names_differ(self):
        assert len({generate_object_name('a.pdf') for _ in range(20)}) > 1

    @pytest.mark.parametrize('name, valid', [
        ('1760695200000-482913.pdf', True),
        ('file', True),
        ('..', False),
        ('a..pdf', False),
        ('.hidden', False),
        ('dir/file.pdf', False),
        ('', False),
    ])
    def test_is_valid_object_name(self, name, valid):
        assert is_valid_object_name(name) is valid


class TestEnsureBucket:

    def test_creates_missing_bucket(self, minio_client, settings):
        settings.MINIO_BUCKET_NAME = 'invoices'
        minio_client.bucket_exists.return_value = False

        assert StorageService.ensure_bucket() is True
        minio_client.make_bucket.assert_called_once_with('invoices')

    def test_existing_bucket_left_alone(self, minio_client):
        minio_client.bucket_exists.return_value = True

        assert StorageService.ensure_bucket() is True
        minio_client.make_bucket.assert_not_called()

    def test_unreachable_storage_logged(self, minio_client):
        minio_client.bucket_exists.side_effect = MaxRetryError(None, '/', 'connection refused')

        assert StorageService.ensure_bucket() is False


@pytest.mark.django_db
class TestUpload:
    """POST /api/v1/storage/upload"""

    def test_upload(self, auth_client, staff_user, minio_client, settings):
        settings.MINIO_BUCKET_NAME = 'invoices'
        upload = SimpleUploadedFile('invoice-042.pdf', b'%PDF-1.4 test', content_type='application/pdf')

        response = auth_client(staff_user).post(UPLOAD_URL, {'file': upload}, format='multipart')

        assert response.status_code == 200
        assert response.data['originalName'] == 'invoice-042.pdf'
        assert response.data['key'].endswith('.pdf')
        assert response.data['url'] == f"/api/v1/storage/file/{response.data['key']}"

        args, kwargs = minio_client.put_object.call_args
        assert args[0] == 'invoices'
        assert args[1] == response.data['key']
        assert args[3] == len(b'%PDF-1.4 test')
        assert kwargs['content_type'] == 'application/pdf'

    def test_requires_authentication(self, api_client, minio_client):
        upload = SimpleUploadedFile('a.pdf', b'x')

        response = api_client.post(UPLOAD_URL, {'file': upload}, format='multipart')

        assert response.status_code == 401
        minio_client.put_object.assert_not_called()

    def test_missing_file(self, auth_client, staff_user, minio_client):
        response = auth_client(staff_user).post(UPLOAD_URL, {}, format='multipart')

        assert response.status_code == 400
        assert response.data['error'] == 'No file provided'

    def test_file_too_large(self, auth_client, staff_user, minio_client, settings):
        settings.STORAGE_MAX_UPLOAD_BYTES = 4
        upload = SimpleUploadedFile('big.pdf', b'0123456789')

        response = auth_client(staff_user).post(UPLOAD_URL, {'file': upload}, format='multipart')

        assert response.status_code == 400
        assert response.data['error'] == 'File too large'
        assert response.data['details'] == {'max_bytes': 4, 'size': 10}

    def test_storage_failure(self, auth_client, staff_user, minio_client):
        minio_client.put_object.side_effect = MinioException('bucket gone')
        upload = SimpleUploadedFile('a.pdf', b'x')

        response = auth_client(staff_user).post(UPLOAD_URL, {'file': upload}, format='multipart')

        assert response.status_code == 500
        assert response.data['error'] == 'Failed to upload file'


@pytest.mark.django_db
class TestDownload:
    """GET /api/v1/storage/file/<name> is public."""

    def test_streams_file(self, api_client, minio_client):
        minio_client.stat_object.return_value = MagicMock(content_type='application/pdf')
        stored = MagicMock()
        stored.stream.return_value = iter([b'%PDF', b'-1.4'])
        minio_client.get_object.return_value = stored

        response = api_client.get(f'{FILE_URL}/1760695200000-1.pdf')

        assert response.status_code == 200
        assert response['Content-Type'] == 'application/pdf'
        assert b''.join(response.streaming_content) == b'%PDF-1.4'
        stored.close.assert_called_once()
        stored.release_conn.assert_called_once()

    def test_unread_body_still_releases_connection(self, api_client, minio_client):
        minio_client.stat_object.return_value = MagicMock(content_type='application/pdf')
        stored = MagicMock()
        minio_client.get_object.return_value = stored

        response = api_client.get(f'{FILE_URL}/1760695200000-1.pdf')
        response.close()

        stored.stream.assert_not_called()
        stored.close.assert_called_once()
        stored.release_conn.assert_called_once()

    def test_missing_object(self, api_client, minio_client):
        minio_client.stat_object.side_effect = MinioException('NoSuchKey')

        response = api_client.get(f'{FILE_URL}/1760695200000-1.pdf')

        assert response.status_code == 404
        assert response.data['error'] == 'File not found'

    def test_invalid_name_never_reaches_storage(self, api_client, minio_client):
        response = api_client.get(f'{FILE_URL}/bad..name.pdf')

        assert response.status_code == 404
        minio_client.stat_object.assert_not_called()


class TestObjectStream:

    def test_close_is_idempotent(self, minio_client):
        minio_client.stat_object.return_value = MagicMock(content_type=None)
        stored = MagicMock()
        stored.stream.return_value = iter([b'abc'])
        minio_client.get_object.return_value = stored

        content_type, stream = StorageService.open('1760695200000-1.bin')
        assert list(stream) == [b'abc']
        stream.close()

        assert content_type == 'application/octet-stream'
        stored.close.assert_called_once()
        stored.release_conn.assert_called_once()
