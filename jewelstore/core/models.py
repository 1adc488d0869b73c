from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Admins and customers share one table; ``is_staff`` marks admins"""
    TYPE_CHOICES = [
        ('admin', 'Admin'),
        ('retailer', 'Retailer'),
        ('wholesaler', 'Wholesaler'),
        ('sales', 'Sales'),
    ]
    CUSTOMER_TYPES = ('retailer', 'wholesaler', 'sales')

    KYC_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('review', 'In Review'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='retailer', db_index=True)
    kyc_status = models.CharField(max_length=20, choices=KYC_STATUS_CHOICES, default='pending', db_index=True)
    kyc_notes = models.TextField(blank=True, null=True)
    kyc_comments_enabled = models.BooleanField(default=True)
    user_group = models.ForeignKey('groups.UserGroup', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    customer_group = models.ForeignKey('groups.CustomerGroup', on_delete=models.SET_NULL, null=True, blank=True, related_name='customers')
    admin_group = models.ForeignKey('groups.AdminGroup', on_delete=models.SET_NULL, null=True, blank=True, related_name='admins')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_customer(self):
        return self.type in self.CUSTOMER_TYPES

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    @classmethod
    def get_value(cls, key, default=None):
        setting = cls.objects.filter(key=key).first()
        return setting.value if setting else default

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('bulk_delete', 'Bulk Delete'),
        ('invoice_create', 'Invoice Created'),
        ('invoice_update', 'Invoice Updated'),
        ('invoice_delete', 'Invoice Deleted'),
        ('invoice_send', 'Invoice Sent'),
        ('order_status', 'Order Status Changed'),
        ('kyc_status', 'KYC Status Changed'),
        ('quotation_approve', 'Quotation Approved'),
        ('quotation_reject', 'Quotation Rejected'),
        ('rate_update', 'Metal Rates Updated'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, invoice number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., invoice number, order reference, SKU)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_5c2b1d_idx'),
            models.Index(fields=['action'], name='audit_logs_action_8f0e4a_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_3a7c9e_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__b41d6f_idx'),
        ]
