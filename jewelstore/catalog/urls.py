from django.urls import path
from .views import (
    MASTER_MODELS, master_data_list_create, master_data_detail, master_data_bulk_delete,
    product_options, product_list_create, product_detail, product_bulk_delete,
    catalog_list_create, catalog_detail, catalog_bulk_delete, catalog_products,
    customer_product_list, customer_product_detail
)

urlpatterns = [
    # Products
    path('admin/products/', product_list_create, name='product-list-create'),
    path('admin/products/options/', product_options, name='product-options'),
    path('admin/products/bulk-delete/', product_bulk_delete, name='product-bulk-delete'),
    path('admin/products/<int:pk>/', product_detail, name='product-detail'),

    # Catalogs
    path('admin/catalogs/', catalog_list_create, name='catalog-list-create'),
    path('admin/catalogs/bulk-delete/', catalog_bulk_delete, name='catalog-bulk-delete'),
    path('admin/catalogs/<int:pk>/', catalog_detail, name='catalog-detail'),
    path('admin/catalogs/<int:pk>/products/', catalog_products, name='catalog-products'),

    # Customer catalog
    path('products/', customer_product_list, name='customer-product-list'),
    path('products/<int:pk>/', customer_product_detail, name='customer-product-detail'),
]

# Brands, categories, styles, sizes, metals, purities, tones, diamonds
for resource in MASTER_MODELS:
    urlpatterns += [
        path(f'admin/{resource}/', master_data_list_create, {'resource': resource}, name=f'{resource}-list-create'),
        path(f'admin/{resource}/bulk-delete/', master_data_bulk_delete, {'resource': resource}, name=f'{resource}-bulk-delete'),
        path(f'admin/{resource}/<int:pk>/', master_data_detail, {'resource': resource}, name=f'{resource}-detail'),
    ]
