"""
Lookup tables referenced by projects and invoices.
"""
from django.db import models
from apps.core.models import BaseModel


class NamedLookup(BaseModel):
    """Abstract lookup with a single required name."""

    name = models.CharField(max_length=255, help_text="Display name")

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class State(NamedLookup):
    """State or region a project operates in."""

    class Meta:
        db_table = 'state'
        ordering = ['-created_at']


class ProjectMode(NamedLookup):
    """Mode of execution for a project."""

    class Meta:
        db_table = 'project_mode'
        ordering = ['-name']


class BillCategory(NamedLookup):

    class Meta:
        db_table = 'bill_category'
        ordering = ['-created_at']
        verbose_name_plural = 'bill categories'


class Milestone(NamedLookup):

    class Meta:
        db_table = 'milestone'
        ordering = ['-created_at']


class InvoiceStatus(NamedLookup):
    """
    Invoice lifecycle status.

    'Draft' and 'Paid' carry meaning: new invoices default to one of them and
    accountants only ever see 'Paid' invoices.
    """

    DRAFT = 'Draft'
    SUBMITTED = 'Submitted'
    PAID = 'Paid'

    WELL_KNOWN = [DRAFT, SUBMITTED, PAID]

    class Meta:
        db_table = 'status'
        ordering = ['-created_at']
        verbose_name_plural = 'invoice statuses'

    @classmethod
    def by_name(cls, name):
        return cls.objects.filter(name=name).order_by('created_at').first()


class GstPercentage(BaseModel):
    """Applicable GST rate."""

    label = models.CharField(max_length=255, null=True, blank=True)
    value = models.DecimalField(max_digits=5, decimal_places=2)

    class Meta:
        db_table = 'gst_percentage_applicable'
        ordering = ['-value']

    def __str__(self):
        return self.label or f"{self.value}%"
