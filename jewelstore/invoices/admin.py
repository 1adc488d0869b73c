from django.contrib import admin
from .models import Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'order', 'status', 'issue_date', 'due_date', 'total_amount', 'currency']
    list_filter = ['status', 'issue_date']
    search_fields = ['invoice_number', 'order__reference']
    date_hierarchy = 'issue_date'
    readonly_fields = ['invoice_number', 'created_at', 'updated_at']
