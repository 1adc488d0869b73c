from django.urls import path
from .views import (
    order_list, order_detail, order_update_status, order_statistics_view,
    order_status_list_create, order_status_detail, order_status_bulk_delete,
    customer_order_list, customer_order_detail
)

urlpatterns = [
    # Admin orders
    path('admin/orders/', order_list, name='order-list'),
    path('admin/orders/statistics/', order_statistics_view, name='order-statistics'),
    path('admin/orders/<int:pk>/', order_detail, name='order-detail'),
    path('admin/orders/<int:pk>/status/', order_update_status, name='order-update-status'),

    # Order statuses
    path('admin/order-statuses/', order_status_list_create, name='order-status-list-create'),
    path('admin/order-statuses/bulk-delete/', order_status_bulk_delete, name='order-status-bulk-delete'),
    path('admin/order-statuses/<int:pk>/', order_status_detail, name='order-status-detail'),

    # Customer orders
    path('orders/', customer_order_list, name='customer-order-list'),
    path('orders/<int:pk>/', customer_order_detail, name='customer-order-detail'),
]
