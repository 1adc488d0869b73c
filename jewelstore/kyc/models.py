from django.conf import settings
from django.db import models


class KycProfile(models.Model):
    """Business details a customer submits for verification"""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='kyc_profile')
    business_name = models.CharField(max_length=255, blank=True, null=True)
    business_website = models.CharField(max_length=255, blank=True, null=True)
    gst_number = models.CharField(max_length=50, blank=True, null=True)
    pan_number = models.CharField(max_length=50, blank=True, null=True)
    registration_number = models.CharField(max_length=100, blank=True, null=True)
    address_line1 = models.CharField(max_length=255, blank=True, null=True)
    address_line2 = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    state = models.CharField(max_length=100, blank=True, null=True)
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    country = models.CharField(max_length=100, blank=True, null=True)
    contact_name = models.CharField(max_length=200, blank=True, null=True)
    contact_phone = models.CharField(max_length=20, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.business_name or f"KYC profile of user {self.user_id}"

    class Meta:
        db_table = 'user_kyc_profiles'


class KycDocument(models.Model):
    DOCUMENT_TYPES = [
        ('gst_certificate', 'GST Certificate'),
        ('trade_license', 'Trade License'),
        ('pan_card', 'PAN Card'),
        ('aadhaar', 'Aadhaar'),
        ('bank_statement', 'Bank Statement'),
        ('store_photos', 'Store Photos'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='kyc_documents')
    type = models.CharField(max_length=50, choices=DOCUMENT_TYPES)
    file = models.FileField(upload_to='kyc-documents/%Y/%m/', max_length=500)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    remarks = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_type_display()} ({self.status})"

    class Meta:
        db_table = 'user_kyc_documents'
        ordering = ['-created_at']


class KycMessage(models.Model):
    """Conversation between a customer and the KYC reviewers"""
    SENDER_CHOICES = [
        ('admin', 'Admin'),
        ('customer', 'Customer'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='kyc_messages')
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='kyc_admin_messages')
    sender_type = models.CharField(max_length=20, choices=SENDER_CHOICES)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_kyc_messages'
        ordering = ['created_at']
