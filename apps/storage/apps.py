from django.apps import AppConfig
from django.conf import settings


class StorageConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.storage'
    verbose_name = 'Storage'

    def ready(self):
        """Create the bucket on server startup when configured to."""
        from apps.core.apps import is_server_process

        if not (is_server_process() and settings.MINIO_ENSURE_BUCKET):
            return

        from apps.storage.services import StorageService

        StorageService.ensure_bucket()
