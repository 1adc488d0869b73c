from django.db import models
from django.conf import settings
import uuid


class Quotation(models.Model):
    """
    One requested line (product, variant, quantity). Lines submitted together
    share a ``quotation_group_id`` and are approved or rejected as a group.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('pending_customer_confirmation', 'Pending Customer Confirmation'),
        ('customer_confirmed', 'Customer Confirmed'),
        ('customer_declined', 'Customer Declined'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='quotations')
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='quotations')
    variant = models.ForeignKey('catalog.ProductVariant', on_delete=models.SET_NULL, null=True, blank=True, related_name='quotations')
    quantity = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=40, choices=STATUS_CHOICES, default='pending', db_index=True)
    quotation_group_id = models.UUIDField(default=uuid.uuid4, db_index=True)
    notes = models.TextField(blank=True, null=True)
    admin_notes = models.TextField(blank=True, null=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='quotations')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Quotation #{self.id} - {self.product.name} x {self.quantity}"

    class Meta:
        db_table = 'quotations'
        ordering = ['-created_at']


class QuotationMessage(models.Model):
    SENDER_CHOICES = [
        ('admin', 'Admin'),
        ('customer', 'Customer'),
    ]

    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name='messages')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='quotation_messages')
    sender_type = models.CharField(max_length=20, choices=SENDER_CHOICES)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'quotation_messages'
        ordering = ['created_at', 'id']
