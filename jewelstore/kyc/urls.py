from django.urls import path
from .views import (
    onboarding, profile, document_list_upload, document_delete, message_list_create,
    admin_update_status, admin_add_message, admin_update_document, admin_toggle_comments
)

urlpatterns = [
    # Customer onboarding
    path('kyc/onboarding/', onboarding, name='kyc-onboarding'),
    path('kyc/profile/', profile, name='kyc-profile'),
    path('kyc/documents/', document_list_upload, name='kyc-document-list-upload'),
    path('kyc/documents/<int:pk>/', document_delete, name='kyc-document-delete'),
    path('kyc/messages/', message_list_create, name='kyc-message-list-create'),

    # Admin review
    path('admin/customers/<int:pk>/kyc-status/', admin_update_status, name='admin-kyc-status'),
    path('admin/customers/<int:pk>/kyc-messages/', admin_add_message, name='admin-kyc-message'),
    path('admin/customers/<int:pk>/kyc-documents/<int:document_id>/', admin_update_document, name='admin-kyc-document'),
    path('admin/customers/<int:pk>/kyc-comments/', admin_toggle_comments, name='admin-kyc-comments'),
]
