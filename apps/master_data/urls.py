"""
Master data URLs.

Each lookup kind gets a list and a detail route bound to its model.
"""
from django.urls import path

from apps.master_data.models import (
    State, ProjectMode, BillCategory, Milestone, InvoiceStatus, GstPercentage
)
from apps.master_data.serializers import (
    StateSerializer, ProjectModeSerializer, BillCategorySerializer,
    MilestoneSerializer, InvoiceStatusSerializer, GstPercentageSerializer
)
from apps.master_data.views import MasterDataListView, MasterDataDetailView

app_name = 'master_data'

LOOKUP_KINDS = {
    'bill-categories': (BillCategory, BillCategorySerializer),
    'milestones': (Milestone, MilestoneSerializer),
    'invoice-statuses': (InvoiceStatus, InvoiceStatusSerializer),
    'gst-percentages': (GstPercentage, GstPercentageSerializer),
    'states': (State, StateSerializer),
    'project-modes': (ProjectMode, ProjectModeSerializer),
}

urlpatterns = []
for kind, (model, serializer_class) in LOOKUP_KINDS.items():
    urlpatterns += [
        path(
            f'master-data/{kind}',
            MasterDataListView.as_view(model=model, serializer_class=serializer_class),
            name=f'{kind}-list'
        ),
        path(
            f'master-data/{kind}/<uuid:pk>',
            MasterDataDetailView.as_view(model=model, serializer_class=serializer_class),
            name=f'{kind}-detail'
        ),
    ]
