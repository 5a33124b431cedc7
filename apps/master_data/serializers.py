"""
Serializers for lookup tables.
"""
from rest_framework import serializers

from apps.master_data.models import (
    State, ProjectMode, BillCategory, Milestone, InvoiceStatus, GstPercentage
)

NAMED_LOOKUP_FIELDS = ['id', 'name', 'createdAt', 'updatedAt']


class NamedLookupSerializer(serializers.ModelSerializer):
    """Base serializer for lookups that only carry a name."""

    name = serializers.CharField(max_length=255, trim_whitespace=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)


class StateSerializer(NamedLookupSerializer):
    class Meta:
        model = State
        fields = NAMED_LOOKUP_FIELDS


class ProjectModeSerializer(NamedLookupSerializer):
    class Meta:
        model = ProjectMode
        fields = NAMED_LOOKUP_FIELDS


class BillCategorySerializer(NamedLookupSerializer):
    class Meta:
        model = BillCategory
        fields = NAMED_LOOKUP_FIELDS


class MilestoneSerializer(NamedLookupSerializer):
    class Meta:
        model = Milestone
        fields = NAMED_LOOKUP_FIELDS


class InvoiceStatusSerializer(NamedLookupSerializer):
    class Meta:
        model = InvoiceStatus
        fields = NAMED_LOOKUP_FIELDS


class GstPercentageSerializer(serializers.ModelSerializer):
    """GST rate; value is a percentage between 0 and 100."""

    label = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    value = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = GstPercentage
        fields = ['id', 'label', 'value', 'createdAt', 'updatedAt']
