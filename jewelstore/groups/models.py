from django.db import models


class AdminGroup(models.Model):
    """Staff roles; ``features`` lists the admin areas the group can open"""
    name = models.CharField(max_length=150, unique=True)
    code = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    features = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'admin_groups'
        ordering = ['display_order', 'name']


class UserGroup(models.Model):
    """Customer segmentation used for listing and bulk assignment"""
    name = models.CharField(max_length=150, unique=True)
    code = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'user_groups'
        ordering = ['display_order', 'name']


class CustomerGroup(models.Model):
    """Pricing group; making-charge discounts can target a customer group"""
    name = models.CharField(max_length=150, unique=True)
    code = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customer_groups'
        ordering = ['display_order', 'name']
