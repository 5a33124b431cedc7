"""
Invoice REST API views.

Access is evaluated against invoice:entity. When the grant is conditional
the service narrows every query to the caller's own rows.
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import EntityPermission, get_request_context, is_conditional
from apps.iam.permissions import INVOICE_RESOURCE
from apps.invoices.serializers import (
    InvoiceSerializer, InvoiceUpdateSerializer, InvoiceStatusHistorySerializer
)
from apps.invoices.services import InvoiceService


class InvoiceView(APIView):
    permission_classes = [EntityPermission]
    resource_key = INVOICE_RESOURCE

    def get_scoped_invoice(self, request, invoice_id):
        return InvoiceService.get_invoice(
            invoice_id,
            account=get_request_context(request),
            conditional=is_conditional(request),
        )


@extend_schema_view(
    get=extend_schema(
        tags=['Invoices'],
        summary='List invoices',
        description='''
List invoices visible to the caller, newest first.

- Admins see every invoice
- Staff see invoices they created
- Accountants see Paid invoices

Staff and accountants assigned to a project only see that project.
        ''',
        responses={200: InvoiceSerializer(many=True)}
    ),
    post=extend_schema(
        tags=['Invoices'],
        summary='Create invoice',
        description='''
Create an invoice owned by the caller.

When `statusId` is omitted accountants default to Paid and everyone else to
Draft. Users assigned to a project can only create invoices for it.
        ''',
        request=InvoiceSerializer,
        responses={201: InvoiceSerializer, 400: OpenApiTypes.OBJECT, 403: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Different Project',
                value={'error': 'Cannot create invoice for a different project'},
                response_only=True,
                status_codes=['403']
            )
        ]
    )
)
class InvoiceListView(InvoiceView):
    """
    GET /api/v1/invoices
    POST /api/v1/invoices
    """

    def get(self, request):
        invoices = InvoiceService.list_invoices(
            get_request_context(request),
            conditional=is_conditional(request),
        )
        return Response({'data': InvoiceSerializer(invoices, many=True).data})

    def post(self, request):
        serializer = InvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invoice = InvoiceService.create_invoice(
            serializer.validated_data,
            account=get_request_context(request),
        )
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    get=extend_schema(tags=['Invoices'], summary='Get invoice', responses={200: InvoiceSerializer}),
    patch=extend_schema(
        tags=['Invoices'],
        summary='Update invoice',
        description='Partial update. A status change is recorded in the history with `reason`.',
        request=InvoiceUpdateSerializer,
        responses={200: InvoiceSerializer}
    ),
    delete=extend_schema(tags=['Invoices'], summary='Delete invoice', responses={200: OpenApiTypes.OBJECT})
)
class InvoiceDetailView(InvoiceView):
    """
    GET /api/v1/invoices/<id>
    PATCH /api/v1/invoices/<id>
    DELETE /api/v1/invoices/<id>
    """

    def get(self, request, invoice_id):
        invoice = self.get_scoped_invoice(request, invoice_id)
        return Response(InvoiceSerializer(invoice).data)

    def patch(self, request, invoice_id):
        invoice = self.get_scoped_invoice(request, invoice_id)
        serializer = InvoiceUpdateSerializer(invoice, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        data = dict(serializer.validated_data)
        reason = data.pop('reason', None) or None
        invoice = InvoiceService.update_invoice(
            invoice,
            data,
            account=get_request_context(request),
            reason=reason,
        )
        return Response(InvoiceSerializer(invoice).data)

    def delete(self, request, invoice_id):
        invoice = self.get_scoped_invoice(request, invoice_id)
        invoice_id = InvoiceService.delete_invoice(invoice)
        return Response({'message': 'Invoice deleted successfully', 'id': str(invoice_id)})


@extend_schema(
    tags=['Invoices'],
    summary='Invoice status history',
    responses={200: InvoiceStatusHistorySerializer(many=True)}
)
class InvoiceHistoryView(InvoiceView):
    """GET /api/v1/invoices/<id>/history"""

    def get(self, request, invoice_id):
        invoice = self.get_scoped_invoice(request, invoice_id)
        history = InvoiceService.get_history(invoice)
        return Response({'data': InvoiceStatusHistorySerializer(history, many=True).data})
