"""
URL configuration for jewelstore project.

Every app exposes its routes under ``api/v1/``. Staff-only routes are
prefixed with ``admin/`` inside each app's urls module.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Jewelstore Admin Panel"
admin.site.site_title = "Jewelstore Admin Portal"
admin.site.index_title = "Catalog, orders and KYC administration"

urlpatterns = [
    path('django-admin/', admin.site.urls),
    path('api/v1/', include('jewelstore.core.urls')),
    path('api/v1/', include('jewelstore.groups.urls')),
    path('api/v1/', include('jewelstore.catalog.urls')),
    path('api/v1/', include('jewelstore.pricing.urls')),
    path('api/v1/', include('jewelstore.orders.urls')),
    path('api/v1/', include('jewelstore.invoices.urls')),
    path('api/v1/', include('jewelstore.kyc.urls')),
    path('api/v1/', include('jewelstore.quotations.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
