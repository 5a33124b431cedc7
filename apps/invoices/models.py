"""
Invoices and their status audit trail.
"""
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.core.models import BaseModel

REQUIRED_AMOUNT_FIELDS = ('basic_amount', 'gst_amount', 'total_amount')

# field name -> constraint suffix
OPTIONAL_AMOUNT_FIELDS = {
    'passed_amount_by_client': 'passed_amount',
    'retention': 'retention',
    'gst_withheld': 'gst_withheld',
    'tds': 'tds',
    'gst_tds': 'gst_tds',
    'bocw': 'bocw',
    'low_depth_deduction': 'low_depth',
    'ld': 'ld',
    'sla_penalty': 'sla_penalty',
    'penalty': 'penalty',
    'other_deduction': 'other_deduction',
    'total_deduction': 'total_deduction',
    'net_payable': 'net_payable',
    'amount_paid_by_client': 'amount_paid',
    'balance_pending_amount': 'balance_pending',
}

AMOUNT_FIELDS = REQUIRED_AMOUNT_FIELDS + tuple(OPTIONAL_AMOUNT_FIELDS)


def _amount_field(required=False):
    if required:
        return models.DecimalField(max_digits=15, decimal_places=2)
    return models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)


def _nonnegative_constraints():
    constraints = [
        models.CheckConstraint(
            condition=Q(**{f'{name}__gte': 0}),
            name=f'chk_invoice_{name}_nonneg',
        )
        for name in REQUIRED_AMOUNT_FIELDS
    ]
    constraints += [
        models.CheckConstraint(
            condition=Q(**{f'{name}__isnull': True}) | Q(**{f'{name}__gte': 0}),
            name=f'chk_invoice_{suffix}_nonneg',
        )
        for name, suffix in OPTIONAL_AMOUNT_FIELDS.items()
    ]
    return constraints


class Invoice(BaseModel):
    """
    A client invoice raised against a project.

    Monetary columns are never negative; the database enforces it with one
    CHECK constraint per column.
    """

    created_by = models.ForeignKey(
        'iam.User',
        on_delete=models.PROTECT,
        related_name='invoices',
        db_column='created_by'
    )
    project = models.ForeignKey(
        'projects.Project',
        on_delete=models.PROTECT,
        related_name='invoices',
        db_column='project'
    )
    bill_category = models.ForeignKey(
        'master_data.BillCategory',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='invoices',
        db_column='bill_category'
    )
    milestone = models.ForeignKey(
        'master_data.Milestone',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='invoices',
        db_column='milestone'
    )
    state = models.ForeignKey(
        'master_data.State',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='invoices',
        db_column='state'
    )
    status = models.ForeignKey(
        'master_data.InvoiceStatus',
        on_delete=models.PROTECT,
        related_name='invoices',
        db_column='status'
    )
    gst_percentage = models.ForeignKey(
        'master_data.GstPercentage',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='invoices',
        db_column='gst_percentage_id'
    )

    invoice_number = models.CharField(max_length=255, db_index=True)
    invoice_date = models.DateField(null=True, blank=True)
    submission_date = models.DateField(null=True, blank=True)

    basic_amount = _amount_field(required=True)
    gst_amount = _amount_field(required=True)
    total_amount = _amount_field(required=True)

    passed_amount_by_client = _amount_field()
    retention = _amount_field()
    gst_withheld = _amount_field()
    tds = _amount_field()
    gst_tds = _amount_field()
    bocw = _amount_field()
    low_depth_deduction = _amount_field()
    ld = _amount_field()
    sla_penalty = _amount_field()
    penalty = _amount_field()
    other_deduction = _amount_field()
    total_deduction = _amount_field()
    net_payable = _amount_field()

    amount_paid_by_client = _amount_field()
    payment_date = models.DateField(null=True, blank=True)
    balance_pending_amount = _amount_field()

    remarks = models.TextField(null=True, blank=True)

    invoice_copy_url = models.CharField(max_length=1024, db_column='invoice_copy')
    proof_of_submission_url = models.CharField(max_length=1024, db_column='proof_of_submission')
    supporting_documents = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = 'invoice'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'created_at']),
            models.Index(fields=['created_by', 'created_at']),
            models.Index(fields=['status', 'created_at']),
        ]
        constraints = _nonnegative_constraints()

    def __str__(self):
        return self.invoice_number


class InvoiceStatusHistory(BaseModel):
    """
    One row per status transition, including the initial status on create.
    """

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='status_history',
        db_column='invoice_id'
    )
    from_status = models.ForeignKey(
        'master_data.InvoiceStatus',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        db_column='from_status'
    )
    to_status = models.ForeignKey(
        'master_data.InvoiceStatus',
        on_delete=models.PROTECT,
        related_name='+',
        db_column='to_status'
    )
    changed_by = models.ForeignKey(
        'iam.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        db_column='changed_by'
    )
    changed_at = models.DateTimeField(default=timezone.now, db_index=True)
    reason = models.TextField(null=True, blank=True)

    class Meta:
        db_table = 'invoice_status_history'
        ordering = ['-changed_at']

    def __str__(self):
        return f"{self.invoice_id}: {self.from_status_id} -> {self.to_status_id}"
