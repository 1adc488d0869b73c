from django.urls import path
from .views import (
    invoice_list_create, invoice_detail, invoice_by_order, invoice_pdf,
    customer_invoice_list, customer_invoice_detail, customer_invoice_pdf
)

urlpatterns = [
    # Admin invoices
    path('admin/invoices/', invoice_list_create, name='invoice-list-create'),
    path('admin/invoices/by-order/<int:order_id>/', invoice_by_order, name='invoice-by-order'),
    path('admin/invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('admin/invoices/<int:pk>/pdf/', invoice_pdf, name='invoice-pdf'),

    # Customer invoices
    path('invoices/', customer_invoice_list, name='customer-invoice-list'),
    path('invoices/<int:pk>/', customer_invoice_detail, name='customer-invoice-detail'),
    path('invoices/<int:pk>/pdf/', customer_invoice_pdf, name='customer-invoice-pdf'),
]
