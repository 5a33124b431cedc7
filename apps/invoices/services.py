"""
Invoice service: row scoping, creation defaults and status history.
"""
import logging
from typing import Any, Dict, Optional

from django.db import transaction

from apps.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from apps.invoices.models import Invoice, InvoiceStatusHistory
from apps.master_data.models import InvoiceStatus

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = 'Invoice not found or access denied'


class InvoiceService:
    """Business logic for invoices."""

    @staticmethod
    def base_queryset():
        return Invoice.objects.select_related('status', 'project', 'created_by')

    @classmethod
    def scope_queryset(cls, account, conditional: bool = True):
        """
        Invoices the caller may see.

        Without a conditional grant every invoice is visible. Otherwise:
        staff see what they created, accountants see Paid invoices (both
        narrowed to their project when they have one) and any other role
        sees nothing.
        """
        queryset = cls.base_queryset()
        if not conditional:
            return queryset

        if account.role == 'staff':
            queryset = queryset.filter(created_by_id=account.user_id)
        elif account.role == 'accountant':
            paid = InvoiceStatus.by_name(InvoiceStatus.PAID)
            if paid is None:
                return queryset.none()
            queryset = queryset.filter(status=paid)
        else:
            return queryset.none()

        if account.project_id:
            queryset = queryset.filter(project_id=account.project_id)
        return queryset

    @classmethod
    def list_invoices(cls, account, conditional: bool = True):
        return cls.scope_queryset(account, conditional).order_by('-created_at')

    @classmethod
    def get_invoice(cls, invoice_id, account, conditional: bool = True) -> Invoice:
        invoice = cls.scope_queryset(account, conditional).filter(id=invoice_id).first()
        if invoice is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return invoice

    @staticmethod
    def default_status(role: str) -> InvoiceStatus:
        """
        Initial status when the caller sends none.

        Accountants record invoices that are already paid; everyone else
        starts from Draft. Falls back to any configured status.
        """
        name = InvoiceStatus.PAID if role == 'accountant' else InvoiceStatus.DRAFT
        status = InvoiceStatus.by_name(name) or InvoiceStatus.objects.order_by('created_at').first()
        if status is None:
            raise ValidationError('No invoice statuses configured')
        return status

    @staticmethod
    def _check_project(account, project):
        if account.project_id and str(project.id) != str(account.project_id):
            raise PermissionDeniedError('Cannot create invoice for a different project')

    @staticmethod
    def _record_status(invoice, from_status, to_status, user_id, reason=None):
        return InvoiceStatusHistory.objects.create(
            invoice=invoice,
            from_status=from_status,
            to_status=to_status,
            changed_by_id=user_id,
            reason=reason,
        )

    @classmethod
    @transaction.atomic
    def create_invoice(cls, data: Dict[str, Any], account) -> Invoice:
        """
        Create an invoice owned by the caller.

        Raises:
            PermissionDeniedError: caller is bound to another project
            ValidationError: no status given and none configured
        """
        data = dict(data)
        cls._check_project(account, data['project'])

        if not data.get('status'):
            data['status'] = cls.default_status(account.role)
        data.setdefault('supporting_documents', [])

        invoice = Invoice.objects.create(created_by_id=account.user_id, **data)
        cls._record_status(invoice, None, invoice.status, account.user_id, reason='Created')

        logger.info(
            "Invoice created",
            extra={
                'invoice_id': str(invoice.id),
                'project_id': str(invoice.project_id),
                'status': invoice.status.name,
            }
        )
        return invoice

    @classmethod
    @transaction.atomic
    def update_invoice(cls, invoice: Invoice, data: Dict[str, Any], account,
                       reason: Optional[str] = None) -> Invoice:
        """Partial update. A status change writes a history row with reason."""
        if 'project' in data and data['project'] is not None:
            cls._check_project(account, data['project'])

        previous_status = invoice.status
        for attr, value in data.items():
            setattr(invoice, attr, value)
        invoice.save()

        if 'status' in data and invoice.status_id != previous_status.id:
            cls._record_status(invoice, previous_status, invoice.status, account.user_id, reason)
            logger.info(
                "Invoice status changed",
                extra={
                    'invoice_id': str(invoice.id),
                    'from_status': previous_status.name,
                    'to_status': invoice.status.name,
                }
            )
        return invoice

    @staticmethod
    def delete_invoice(invoice: Invoice):
        """Remove the invoice; its status history goes with it."""
        invoice_id = invoice.id
        with transaction.atomic():
            invoice.delete()
        logger.info("Invoice deleted", extra={'invoice_id': str(invoice_id)})
        return invoice_id

    @staticmethod
    def get_history(invoice: Invoice):
        return (
            InvoiceStatusHistory.objects
            .filter(invoice=invoice)
            .select_related('from_status', 'to_status', 'changed_by')
            .order_by('-changed_at', '-created_at')
        )
