"""
Object storage on MinIO (or any S3-compatible endpoint).

Uploaded files get server-generated object names and are served back through
the public file endpoint.
"""
import logging
import random
import re
import time
from functools import lru_cache

from django.conf import settings
from minio import Minio
from minio.error import MinioException
from urllib3.exceptions import HTTPError as TransportError

from apps.core.exceptions import StorageError

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (MinioException, TransportError, ValueError, OSError)

OBJECT_NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*(\.[A-Za-z0-9]+)?$')
STREAM_CHUNK_SIZE = 32 * 1024


@lru_cache(maxsize=1)
def get_client() -> Minio:
    """MinIO client built from settings, one per process."""
    return Minio(
        f"{settings.MINIO_ENDPOINT}:{settings.MINIO_PORT}",
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_USE_SSL,
    )


def generate_object_name(original_name: str) -> str:
    """
    '<epoch ms>-<random int>.<ext>', ext taken from the original file name.

    Anything but letters and digits is stripped from the extension.
    """
    ext = (original_name or '').rsplit('.', 1)[-1]
    ext = re.sub(r'[^A-Za-z0-9]', '', ext)[:16] or 'bin'
    return f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}.{ext}"


def is_valid_object_name(name: str) -> bool:
    return bool(name) and '..' not in name and bool(OBJECT_NAME_PATTERN.match(name))


def public_url(object_name: str) -> str:
    return f"/api/v1/storage/file/{object_name}"


class StorageService:
    """Thin wrapper over the MinIO client used by the storage views."""

    @staticmethod
    def bucket() -> str:
        return settings.MINIO_BUCKET_NAME

    @classmethod
    def ensure_bucket(cls) -> bool:
        """
        Create the bucket when missing.

        Connection problems are logged; startup continues without storage.
        """
        bucket = cls.bucket()
        try:
            client = get_client()
            if not client.bucket_exists(bucket):
                client.make_bucket(bucket)
                logger.info("Storage bucket created", extra={'bucket': bucket})
            return True
        except STORAGE_ERRORS as e:
            logger.error(
                "Object storage unavailable",
                extra={'bucket': bucket, 'error': str(e)}
            )
            return False

    @classmethod
    def upload(cls, uploaded_file) -> dict:
        """
        Store an uploaded file under a generated name.

        Raises:
            StorageError: the object store rejected the upload
        """
        object_name = generate_object_name(uploaded_file.name)
        content_type = uploaded_file.content_type or 'application/octet-stream'

        try:
            get_client().put_object(
                cls.bucket(),
                object_name,
                uploaded_file,
                uploaded_file.size,
                content_type=content_type,
            )
        except STORAGE_ERRORS as e:
            logger.error(
                "File upload failed",
                extra={'object_name': object_name, 'error': str(e)},
                exc_info=True
            )
            raise StorageError('Failed to upload file')

        logger.info(
            "File uploaded",
            extra={'object_name': object_name, 'size': uploaded_file.size, 'content_type': content_type}
        )
        return {
            'url': public_url(object_name),
            'key': object_name,
            'originalName': uploaded_file.name,
        }

    @classmethod
    def open(cls, object_name: str):
        """
        Return (content_type, ObjectStream) for a stored object.

        Raises:
            StorageError: the object is missing or storage is unreachable
        """
        client = get_client()
        try:
            stat = client.stat_object(cls.bucket(), object_name)
            response = client.get_object(cls.bucket(), object_name)
        except STORAGE_ERRORS as e:
            logger.info(
                "File retrieval failed",
                extra={'object_name': object_name, 'error': str(e)}
            )
            raise StorageError('File not found')

        return stat.content_type or 'application/octet-stream', ObjectStream(response)


class ObjectStream:
    """
    Chunks of a stored object.

    close() hands the connection back to the pool. StreamingHttpResponse calls
    it when the response is closed, whether or not the body was read.
    """

    def __init__(self, response):
        self._response = response
        self._closed = False

    def __iter__(self):
        try:
            yield from self._response.stream(STREAM_CHUNK_SIZE)
        finally:
            self.close()

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._response.close()
        self._response.release_conn()
