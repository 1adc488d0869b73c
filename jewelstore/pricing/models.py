from django.db import models
from django.utils import timezone
from decimal import Decimal


class PriceRate(models.Model):
    """Per-gram metal rate; the newest ``effective_at`` for a metal/purity wins"""
    metal = models.CharField(max_length=50, db_index=True)  # lower-cased metal name
    purity = models.CharField(max_length=50, blank=True, null=True)
    price_per_gram = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=10, default='INR')
    source = models.CharField(max_length=50, default='manual')
    effective_at = models.DateTimeField(default=timezone.now, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.metal} {self.purity or ''} @ {self.price_per_gram}/g"

    class Meta:
        db_table = 'price_rates'
        ordering = ['-effective_at', '-id']


class MakingChargeDiscount(models.Model):
    """Automatic discount on the making charge of matching products"""
    DISCOUNT_TYPE_CHOICES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed Amount'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, default='percentage')
    value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    brand = models.ForeignKey('catalog.Brand', on_delete=models.SET_NULL, null=True, blank=True, related_name='making_charge_discounts')
    category = models.ForeignKey('catalog.Category', on_delete=models.SET_NULL, null=True, blank=True, related_name='making_charge_discounts')
    customer_group = models.ForeignKey('groups.CustomerGroup', on_delete=models.SET_NULL, null=True, blank=True, related_name='making_charge_discounts')
    customer_types = models.JSONField(default=list, blank=True)  # e.g. ["retailer", "wholesaler"]
    min_cart_total = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_auto = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    starts_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'making_charge_discounts'
        ordering = ['-created_at']


class TaxGroup(models.Model):
    name = models.CharField(max_length=150, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'tax_groups'
        ordering = ['name']


class Tax(models.Model):
    """Tax rate in percent (e.g. GST 3.000)"""
    tax_group = models.ForeignKey(TaxGroup, on_delete=models.CASCADE, related_name='taxes')
    name = models.CharField(max_length=150)
    code = models.CharField(max_length=50, blank=True, null=True)
    rate = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal('0.000'))
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.rate}%)"

    class Meta:
        db_table = 'taxes'
        ordering = ['tax_group', 'name']
        verbose_name_plural = 'taxes'
