from django.urls import path
from .views import (
    rate_list, rate_store, rate_sync,
    discount_list_create, discount_detail, discount_bulk_delete,
    tax_group_list_create, tax_group_detail, tax_list_create, tax_detail,
    product_price
)

urlpatterns = [
    # Rates
    path('admin/rates/', rate_list, name='rate-list'),
    path('admin/rates/sync/', rate_sync, name='rate-sync'),
    path('admin/rates/<str:metal>/', rate_store, name='rate-store'),
    path('admin/rates/<str:metal>/sync/', rate_sync, name='rate-sync-metal'),

    # Making charge discounts
    path('admin/offers/making-charge-discounts/', discount_list_create, name='discount-list-create'),
    path('admin/offers/making-charge-discounts/bulk-delete/', discount_bulk_delete, name='discount-bulk-delete'),
    path('admin/offers/making-charge-discounts/<int:pk>/', discount_detail, name='discount-detail'),

    # Taxes
    path('admin/settings/tax-groups/', tax_group_list_create, name='tax-group-list-create'),
    path('admin/settings/tax-groups/<int:pk>/', tax_group_detail, name='tax-group-detail'),
    path('admin/settings/taxes/', tax_list_create, name='tax-list-create'),
    path('admin/settings/taxes/<int:pk>/', tax_detail, name='tax-detail'),

    # Customer price quote
    path('products/<int:pk>/price/', product_price, name='product-price'),
]
