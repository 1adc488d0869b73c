from django.contrib import admin
from .models import Quotation, QuotationMessage


class QuotationMessageInline(admin.TabularInline):
    model = QuotationMessage
    extra = 0
    readonly_fields = ['user', 'sender_type', 'message', 'created_at']


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ['id', 'quotation_group_id', 'user', 'product', 'variant', 'quantity', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['quotation_group_id', 'product__name', 'user__email']
    inlines = [QuotationMessageInline]
