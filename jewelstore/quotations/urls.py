from django.urls import path
from .views import (
    customer_quotation_list_create, customer_quotation_detail, customer_quotation_message,
    customer_quotation_confirm, customer_quotation_decline,
    admin_quotation_list, admin_quotation_statistics, admin_quotation_detail, admin_quotation_group_delete,
    admin_quotation_add_item, admin_quotation_change_product, admin_quotation_approve, admin_quotation_reject,
    admin_quotation_request_confirmation, admin_quotation_message
)

urlpatterns = [
    # Customer quotations
    path('quotations/', customer_quotation_list_create, name='customer-quotation-list-create'),
    path('quotations/<int:pk>/', customer_quotation_detail, name='customer-quotation-detail'),
    path('quotations/<int:pk>/messages/', customer_quotation_message, name='customer-quotation-message'),
    path('quotations/<int:pk>/confirm/', customer_quotation_confirm, name='customer-quotation-confirm'),
    path('quotations/<int:pk>/decline/', customer_quotation_decline, name='customer-quotation-decline'),

    # Admin quotations
    path('admin/quotations/', admin_quotation_list, name='admin-quotation-list'),
    path('admin/quotations/statistics/', admin_quotation_statistics, name='admin-quotation-statistics'),
    path('admin/quotations/<int:pk>/', admin_quotation_detail, name='admin-quotation-detail'),
    path('admin/quotations/<int:pk>/group/', admin_quotation_group_delete, name='admin-quotation-group-delete'),
    path('admin/quotations/<int:pk>/items/', admin_quotation_add_item, name='admin-quotation-add-item'),
    path('admin/quotations/<int:pk>/product/', admin_quotation_change_product, name='admin-quotation-change-product'),
    path('admin/quotations/<int:pk>/approve/', admin_quotation_approve, name='admin-quotation-approve'),
    path('admin/quotations/<int:pk>/reject/', admin_quotation_reject, name='admin-quotation-reject'),
    path('admin/quotations/<int:pk>/request-confirmation/', admin_quotation_request_confirmation, name='admin-quotation-request-confirmation'),
    path('admin/quotations/<int:pk>/messages/', admin_quotation_message, name='admin-quotation-message'),
]
