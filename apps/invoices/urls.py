"""
Invoice URLs.
"""
from django.urls import path
from apps.invoices.views import InvoiceListView, InvoiceDetailView, InvoiceHistoryView

app_name = 'invoices'

urlpatterns = [
    path('invoices', InvoiceListView.as_view(), name='invoice-list'),
    path('invoices/<uuid:invoice_id>', InvoiceDetailView.as_view(), name='invoice-detail'),
    path('invoices/<uuid:invoice_id>/history', InvoiceHistoryView.as_view(), name='invoice-history'),
]
