from django.urls import path
from .views import (
    admin_group_list_create, admin_group_detail, admin_group_bulk_delete, admin_group_admins,
    user_group_list_create, user_group_detail, user_group_bulk_delete,
    customer_group_list_create, customer_group_detail, customer_group_bulk_delete,
)

urlpatterns = [
    # AdminGroup endpoints
    path('admin/admin-groups/', admin_group_list_create, name='admin-group-list-create'),
    path('admin/admin-groups/bulk-delete/', admin_group_bulk_delete, name='admin-group-bulk-delete'),
    path('admin/admin-groups/<int:pk>/', admin_group_detail, name='admin-group-detail'),
    path('admin/admin-groups/<int:pk>/admins/', admin_group_admins, name='admin-group-admins'),

    # UserGroup endpoints
    path('admin/user-groups/', user_group_list_create, name='user-group-list-create'),
    path('admin/user-groups/bulk-delete/', user_group_bulk_delete, name='user-group-bulk-delete'),
    path('admin/user-groups/<int:pk>/', user_group_detail, name='user-group-detail'),

    # CustomerGroup endpoints
    path('admin/customer-groups/', customer_group_list_create, name='customer-group-list-create'),
    path('admin/customer-groups/bulk-delete/', customer_group_bulk_delete, name='customer-group-bulk-delete'),
    path('admin/customer-groups/<int:pk>/', customer_group_detail, name='customer-group-detail'),
]
