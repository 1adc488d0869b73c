from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Setting, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'name', 'type', 'kyc_status', 'is_active', 'is_staff', 'created_at']
    list_filter = ['type', 'kyc_status', 'is_active', 'is_staff', 'user_group', 'customer_group']
    search_fields = ['username', 'email', 'name', 'phone']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Customer', {'fields': ('name', 'phone', 'type', 'user_group', 'customer_group', 'admin_group')}),
        ('KYC', {'fields': ('kyc_status', 'kyc_notes', 'kyc_comments_enabled')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Customer', {'fields': ('name', 'phone', 'type')}),
    )


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'object_reference', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__username', 'model_name', 'object_id', 'object_reference']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'changes', 'ip_address', 'created_at']
