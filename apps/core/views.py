"""
Core API views.
"""
import logging

from django.core.cache import cache
from django.db import connection
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger(__name__)

HEALTH_CACHE_KEY = 'health_check'


def check_database():
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")


def check_cache():
    cache.set(HEALTH_CACHE_KEY, 'ok', timeout=10)
    if cache.get(HEALTH_CACHE_KEY) != 'ok':
        raise RuntimeError("Unable to read test key")


# name -> probe; a probe raises when its dependency is down
HEALTH_CHECKS = {
    'database': check_database,
    'cache': check_cache,
}


class HealthCheckView(APIView):
    """
    GET /api/v1/health

    Public. 200 when every dependency answers, 503 with `errors` otherwise.
    """
    authentication_classes = []
    permission_classes = []

    @extend_schema(
        summary="Health check",
        description="Check the database and cache the API depends on",
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'status': {'type': 'string'},
                    'database': {'type': 'string'},
                    'cache': {'type': 'string'},
                }
            },
            503: {
                'type': 'object',
                'properties': {
                    'status': {'type': 'string'},
                    'errors': {'type': 'array', 'items': {'type': 'string'}},
                }
            }
        },
        tags=['Health']
    )
    def get(self, request):
        body = {'status': 'healthy'}
        errors = []

        for name, probe in HEALTH_CHECKS.items():
            try:
                probe()
            except Exception as e:
                body[name] = 'unhealthy'
                errors.append(f"{name.capitalize()}: {e}")
                logger.error(f"{name.capitalize()} health check failed", exc_info=True)
            else:
                body[name] = 'healthy'

        if errors:
            body['status'] = 'unhealthy'
            body['errors'] = errors
            return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(body)
