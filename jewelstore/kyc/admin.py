from django.contrib import admin
from .models import KycProfile, KycDocument, KycMessage


@admin.register(KycProfile)
class KycProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'business_name', 'gst_number', 'city', 'state', 'updated_at']
    search_fields = ['business_name', 'gst_number', 'pan_number', 'user__email']


@admin.register(KycDocument)
class KycDocumentAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'status', 'created_at']
    list_filter = ['type', 'status']


@admin.register(KycMessage)
class KycMessageAdmin(admin.ModelAdmin):
    list_display = ['user', 'sender_type', 'admin', 'created_at']
    list_filter = ['sender_type']
