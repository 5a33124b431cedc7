"""
Serializers for invoices and their status history.

Field names are camelCase on the wire and map onto snake_case model fields.
"""
from rest_framework import serializers

from apps.invoices.models import Invoice, InvoiceStatusHistory
from apps.master_data.models import (
    BillCategory, GstPercentage, InvoiceStatus, Milestone, State
)
from apps.projects.models import Project


def amount(source=None, required=False):
    if required:
        return serializers.DecimalField(source=source, max_digits=15, decimal_places=2, min_value=0)
    return serializers.DecimalField(
        source=source, max_digits=15, decimal_places=2, min_value=0, required=False, allow_null=True
    )


def optional_fk(source, queryset):
    return serializers.PrimaryKeyRelatedField(
        source=source, queryset=queryset, required=False, allow_null=True
    )


class InvoiceSerializer(serializers.ModelSerializer):
    """Read and write representation of an invoice."""

    createdById = serializers.UUIDField(source='created_by_id', read_only=True)
    projectId = serializers.PrimaryKeyRelatedField(source='project', queryset=Project.objects.all())
    billCategoryId = optional_fk('bill_category', BillCategory.objects.all())
    milestoneId = optional_fk('milestone', Milestone.objects.all())
    stateId = optional_fk('state', State.objects.all())
    statusId = serializers.PrimaryKeyRelatedField(
        source='status', queryset=InvoiceStatus.objects.all(), required=False
    )
    statusName = serializers.CharField(source='status.name', read_only=True)
    gstPercentageId = optional_fk('gst_percentage', GstPercentage.objects.all())

    invoiceNumber = serializers.CharField(source='invoice_number', max_length=255)
    invoiceDate = serializers.DateField(source='invoice_date', required=False, allow_null=True)
    submissionDate = serializers.DateField(source='submission_date', required=False, allow_null=True)

    basicAmount = amount('basic_amount', required=True)
    gstAmount = amount('gst_amount', required=True)
    totalAmount = amount('total_amount', required=True)

    passedAmountByClient = amount('passed_amount_by_client')
    retention = amount()
    gstWithheld = amount('gst_withheld')
    tds = amount()
    gstTds = amount('gst_tds')
    bocw = amount()
    lowDepthDeduction = amount('low_depth_deduction')
    ld = amount()
    slaPenalty = amount('sla_penalty')
    penalty = amount()
    otherDeduction = amount('other_deduction')
    totalDeduction = amount('total_deduction')
    netPayable = amount('net_payable')

    amountPaidByClient = amount('amount_paid_by_client')
    paymentDate = serializers.DateField(source='payment_date', required=False, allow_null=True)
    balancePendingAmount = amount('balance_pending_amount')

    remarks = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    invoiceCopyUrl = serializers.CharField(source='invoice_copy_url', max_length=1024)
    proofOfSubmissionUrl = serializers.CharField(source='proof_of_submission_url', max_length=1024)
    supportingDocuments = serializers.ListField(
        source='supporting_documents', child=serializers.JSONField(), required=False
    )

    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'createdById', 'projectId', 'billCategoryId', 'milestoneId',
            'stateId', 'statusId', 'statusName', 'gstPercentageId',
            'invoiceNumber', 'invoiceDate', 'submissionDate',
            'basicAmount', 'gstAmount', 'totalAmount',
            'passedAmountByClient', 'retention', 'gstWithheld', 'tds', 'gstTds',
            'bocw', 'lowDepthDeduction', 'ld', 'slaPenalty', 'penalty',
            'otherDeduction', 'totalDeduction', 'netPayable',
            'amountPaidByClient', 'paymentDate', 'balancePendingAmount',
            'remarks', 'invoiceCopyUrl', 'proofOfSubmissionUrl',
            'supportingDocuments', 'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id', 'createdById', 'statusName', 'createdAt', 'updatedAt']


class InvoiceUpdateSerializer(InvoiceSerializer):
    """PATCH body; carries an optional reason for the status history."""

    reason = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta(InvoiceSerializer.Meta):
        fields = InvoiceSerializer.Meta.fields + ['reason']


class InvoiceStatusHistorySerializer(serializers.ModelSerializer):
    invoiceId = serializers.UUIDField(source='invoice_id', read_only=True)
    fromStatusId = serializers.UUIDField(source='from_status_id', read_only=True, allow_null=True)
    fromStatusName = serializers.SerializerMethodField()
    toStatusId = serializers.UUIDField(source='to_status_id', read_only=True)
    toStatusName = serializers.CharField(source='to_status.name', read_only=True)
    changedBy = serializers.UUIDField(source='changed_by_id', read_only=True, allow_null=True)
    changedByName = serializers.SerializerMethodField()
    changedAt = serializers.DateTimeField(source='changed_at', read_only=True)

    class Meta:
        model = InvoiceStatusHistory
        fields = [
            'id', 'invoiceId', 'fromStatusId', 'fromStatusName', 'toStatusId',
            'toStatusName', 'changedBy', 'changedByName', 'changedAt', 'reason',
        ]
        read_only_fields = fields

    def get_fromStatusName(self, obj):
        return obj.from_status.name if obj.from_status_id else None

    def get_changedByName(self, obj):
        return obj.changed_by.full_name if obj.changed_by_id else None
