from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    customer_list, customer_detail, customer_toggle_status,
    customer_bulk_delete, customer_bulk_group_update,
    team_user_list_create, team_user_detail, team_user_group_update, team_user_bulk_delete,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Customer administration
    path('admin/customers/', customer_list, name='admin-customer-list'),
    path('admin/customers/bulk-delete/', customer_bulk_delete, name='admin-customer-bulk-delete'),
    path('admin/customers/bulk-group/', customer_bulk_group_update, name='admin-customer-bulk-group'),
    path('admin/customers/<int:pk>/', customer_detail, name='admin-customer-detail'),
    path('admin/customers/<int:pk>/toggle-status/', customer_toggle_status, name='admin-customer-toggle-status'),

    # Team user administration
    path('admin/team-users/', team_user_list_create, name='admin-team-user-list-create'),
    path('admin/team-users/bulk-delete/', team_user_bulk_delete, name='admin-team-user-bulk-delete'),
    path('admin/team-users/<int:pk>/', team_user_detail, name='admin-team-user-detail'),
    path('admin/team-users/<int:pk>/group/', team_user_group_update, name='admin-team-user-group'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
]
