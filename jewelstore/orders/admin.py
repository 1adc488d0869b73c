from django.contrib import admin
from .models import OrderStatus, Order, OrderItem, OrderStatusHistory, Payment


@admin.register(OrderStatus)
class OrderStatusAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'color', 'is_default', 'is_active', 'display_order']
    list_filter = ['is_active', 'is_default']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'variant', 'sku', 'name', 'quantity', 'unit_price', 'total_price']


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ['status', 'meta', 'created_by', 'created_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['reference', 'user', 'status', 'total_amount', 'currency', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['reference', 'user__email', 'user__name']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline, OrderStatusHistoryInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['order', 'amount', 'status', 'provider', 'reference', 'created_at']
    list_filter = ['status', 'provider']
