"""
Master data REST API views.

One pair of views serves every lookup table; the URL conf binds each kind to
its model and serializer.
"""
import logging

from django.db import IntegrityError
from django.db.models import ProtectedError, RestrictedError
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import ConflictError, NotFoundError
from apps.core.permissions import EntityPermission
from apps.iam.permissions import MASTER_DATA_RESOURCE

logger = logging.getLogger(__name__)

ADMIN_ONLY_MESSAGES = {
    'create': 'Only Admins can modify master data',
    'update': 'Only Admins can modify master data',
    'delete': 'Only Admins can modify master data',
}


class MasterDataView(APIView):
    """Shared configuration for lookup endpoints."""
    permission_classes = [EntityPermission]
    resource_key = MASTER_DATA_RESOURCE
    permission_denied_messages = ADMIN_ONLY_MESSAGES

    model = None
    serializer_class = None

    def get_object(self, pk):
        instance = self.model.objects.filter(pk=pk).first()
        if instance is None:
            raise NotFoundError(f'{self.model._meta.verbose_name.capitalize()} not found')
        return instance


@extend_schema(tags=['Master Data'])
class MasterDataListView(MasterDataView):
    """
    GET /api/v1/master-data/<kind>
    POST /api/v1/master-data/<kind>
    """

    @extend_schema(summary='List lookup values', responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        items = self.model.objects.all()
        return Response({'data': self.serializer_class(items, many=True).data})

    @extend_schema(summary='Create lookup value', request=OpenApiTypes.OBJECT, responses={201: OpenApiTypes.OBJECT})
    def post(self, request):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        instance = serializer.save()

        logger.info(
            "Master data created",
            extra={'model': self.model.__name__, 'id': str(instance.id)}
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Master Data'])
class MasterDataDetailView(MasterDataView):
    """
    PUT /api/v1/master-data/<kind>/<id>
    DELETE /api/v1/master-data/<kind>/<id>
    """

    @extend_schema(summary='Update lookup value', request=OpenApiTypes.OBJECT, responses={200: OpenApiTypes.OBJECT})
    def put(self, request, pk):
        instance = self.get_object(pk)
        serializer = self.serializer_class(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    @extend_schema(summary='Delete lookup value', responses={200: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT})
    def delete(self, request, pk):
        instance = self.get_object(pk)
        try:
            instance.delete()
        except (ProtectedError, RestrictedError, IntegrityError) as e:
            logger.info(
                "Master data delete blocked by references",
                extra={'model': self.model.__name__, 'id': str(pk), 'reason': e.__class__.__name__}
            )
            raise ConflictError('Item is in use')

        return Response({'success': True})
