from django.db import models
from decimal import Decimal


class MasterDataModel(models.Model):
    """Shared columns of the catalog lookup tables"""
    name = models.CharField(max_length=200, db_index=True)
    code = models.CharField(max_length=100, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True, db_index=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        abstract = True
        ordering = ['display_order', 'name']


class Brand(MasterDataModel):
    """Product brands"""

    class Meta(MasterDataModel.Meta):
        db_table = 'brands'


class Category(MasterDataModel):
    """Product categories; children of a category act as subcategories"""
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')

    class Meta(MasterDataModel.Meta):
        db_table = 'categories'
        verbose_name_plural = 'categories'


class Style(MasterDataModel):

    class Meta(MasterDataModel.Meta):
        db_table = 'styles'


class Size(MasterDataModel):
    value = models.CharField(max_length=50, blank=True, null=True)

    class Meta(MasterDataModel.Meta):
        db_table = 'sizes'


class Metal(MasterDataModel):
    """Gold, silver, platinum..."""

    class Meta(MasterDataModel.Meta):
        db_table = 'metals'


class MetalPurity(MasterDataModel):
    """Purity grade of a metal (e.g. 18K, 22K, 925); matches PriceRate.purity by name"""
    metal = models.ForeignKey(Metal, on_delete=models.CASCADE, related_name='purities')

    class Meta(MasterDataModel.Meta):
        db_table = 'metal_purities'
        verbose_name_plural = 'metal purities'


class MetalTone(MasterDataModel):
    metal = models.ForeignKey(Metal, on_delete=models.CASCADE, related_name='tones')

    class Meta(MasterDataModel.Meta):
        db_table = 'metal_tones'


class Diamond(MasterDataModel):
    """Priced diamond specification used by variants"""
    shape = models.CharField(max_length=100, blank=True, null=True)
    clarity = models.CharField(max_length=100, blank=True, null=True)
    color = models.CharField(max_length=100, blank=True, null=True)
    carat = models.DecimalField(max_digits=8, decimal_places=3, null=True, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta(MasterDataModel.Meta):
        db_table = 'diamonds'


class Product(models.Model):
    """Product master"""
    GENDER_CHOICES = [
        ('women', 'Women'),
        ('men', 'Men'),
        ('unisex', 'Unisex'),
        ('kids', 'Kids'),
    ]

    name = models.CharField(max_length=255, db_index=True)
    sku = models.CharField(max_length=100, unique=True, db_index=True)
    titleline = models.CharField(max_length=255, blank=True, null=True)
    brand = models.ForeignKey(Brand, on_delete=models.PROTECT, related_name='products')
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    subcategories = models.ManyToManyField(Category, blank=True, related_name='subcategory_products', db_table='product_subcategories')
    styles = models.ManyToManyField(Style, blank=True, related_name='products', db_table='product_styles')
    description = models.TextField(blank=True, null=True)
    collection = models.CharField(max_length=200, blank=True, null=True)
    producttype = models.CharField(max_length=100, blank=True, null=True)
    gender = models.CharField(max_length=20, choices=GENDER_CHOICES, blank=True, null=True)
    making_charge_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    making_charge_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def default_variant(self):
        return self.variants.filter(is_default=True).first() or self.variants.order_by('id').first()

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']


class ProductVariant(models.Model):
    """Sellable configuration of a product (size, metals, diamonds)"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    sku = models.CharField(max_length=120, unique=True)
    label = models.CharField(max_length=255)
    size = models.ForeignKey(Size, on_delete=models.SET_NULL, null=True, blank=True, related_name='variants')
    inventory_quantity = models.IntegerField(default=0)
    is_default = models.BooleanField(default=False)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.label}"

    class Meta:
        db_table = 'product_variants'
        ordering = ['-is_default', 'id']


class ProductVariantMetal(models.Model):
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='metals')
    metal = models.ForeignKey(Metal, on_delete=models.PROTECT, related_name='variant_metals')
    metal_purity = models.ForeignKey(MetalPurity, on_delete=models.SET_NULL, null=True, blank=True, related_name='variant_metals')
    metal_tone = models.ForeignKey(MetalTone, on_delete=models.SET_NULL, null=True, blank=True, related_name='variant_metals')
    metal_weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'product_variant_metals'
        ordering = ['display_order', 'id']


class ProductVariantDiamond(models.Model):
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='diamonds')
    diamond = models.ForeignKey(Diamond, on_delete=models.SET_NULL, null=True, blank=True, related_name='variant_diamonds')
    diamonds_count = models.IntegerField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'product_variant_diamonds'
        ordering = ['display_order', 'id']


class ProductMedia(models.Model):
    TYPE_CHOICES = [
        ('image', 'Image'),
        ('video', 'Video'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='media')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='image')
    url = models.CharField(max_length=500)
    display_order = models.IntegerField(default=0)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'product_medias'
        ordering = ['display_order', 'id']


class Catalog(models.Model):
    """Curated grouping of products for merchandising"""
    code = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    products = models.ManyToManyField(Product, blank=True, related_name='catalogs', db_table='catalog_products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'catalogs'
        ordering = ['display_order', 'name']
