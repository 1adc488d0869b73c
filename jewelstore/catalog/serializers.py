from rest_framework import serializers
from .models import (
    Brand, Category, Style, Size, Metal, MetalPurity, MetalTone, Diamond,
    Product, ProductVariant, ProductVariantMetal, ProductVariantDiamond, ProductMedia, Catalog
)

MASTER_FIELDS = ['id', 'name', 'code', 'description', 'is_active', 'display_order', 'created_at', 'updated_at']


class BrandSerializer(serializers.ModelSerializer):
    class Meta:
        model = Brand
        fields = MASTER_FIELDS


class CategorySerializer(serializers.ModelSerializer):
    parent_name = serializers.CharField(source='parent.name', read_only=True)

    class Meta:
        model = Category
        fields = MASTER_FIELDS + ['parent', 'parent_name']

    def validate_parent(self, value):
        if value and self.instance and value.pk == self.instance.pk:
            raise serializers.ValidationError('A category cannot be its own parent')
        return value


class StyleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Style
        fields = MASTER_FIELDS


class SizeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Size
        fields = MASTER_FIELDS + ['value']


class MetalSerializer(serializers.ModelSerializer):
    class Meta:
        model = Metal
        fields = MASTER_FIELDS


class MetalPuritySerializer(serializers.ModelSerializer):
    metal_name = serializers.CharField(source='metal.name', read_only=True)

    class Meta:
        model = MetalPurity
        fields = MASTER_FIELDS + ['metal', 'metal_name']


class MetalToneSerializer(serializers.ModelSerializer):
    metal_name = serializers.CharField(source='metal.name', read_only=True)

    class Meta:
        model = MetalTone
        fields = MASTER_FIELDS + ['metal', 'metal_name']


class DiamondSerializer(serializers.ModelSerializer):
    class Meta:
        model = Diamond
        fields = MASTER_FIELDS + ['shape', 'clarity', 'color', 'carat', 'price']


class ProductVariantMetalSerializer(serializers.ModelSerializer):
    metal_name = serializers.CharField(source='metal.name', read_only=True)
    metal_purity_name = serializers.CharField(source='metal_purity.name', read_only=True)
    metal_tone_name = serializers.CharField(source='metal_tone.name', read_only=True)

    class Meta:
        model = ProductVariantMetal
        fields = [
            'id', 'metal_id', 'metal_name', 'metal_purity_id', 'metal_purity_name',
            'metal_tone_id', 'metal_tone_name', 'metal_weight', 'metadata', 'display_order'
        ]


class ProductVariantDiamondSerializer(serializers.ModelSerializer):
    diamond_name = serializers.CharField(source='diamond.name', read_only=True)
    diamond_price = serializers.DecimalField(source='diamond.price', max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = ProductVariantDiamond
        fields = ['id', 'diamond_id', 'diamond_name', 'diamond_price', 'diamonds_count', 'metadata', 'display_order']


class ProductVariantSerializer(serializers.ModelSerializer):
    size_name = serializers.CharField(source='size.name', read_only=True)
    metals = ProductVariantMetalSerializer(many=True, read_only=True)
    diamonds = ProductVariantDiamondSerializer(many=True, read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            'id', 'sku', 'label', 'size_id', 'size_name', 'inventory_quantity', 'is_default',
            'metadata', 'metals', 'diamonds', 'created_at', 'updated_at'
        ]


class ProductMediaSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductMedia
        fields = ['id', 'type', 'url', 'display_order', 'metadata']


class ProductListSerializer(serializers.ModelSerializer):
    brand_name = serializers.CharField(source='brand.name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True)
    variants_count = serializers.SerializerMethodField()
    thumbnail = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'sku', 'titleline', 'brand_id', 'brand_name', 'category_id', 'category_name',
            'gender', 'is_active', 'variants_count', 'thumbnail', 'created_at', 'updated_at'
        ]

    def get_variants_count(self, obj):
        return len(obj.variants.all())

    def get_thumbnail(self, obj):
        media = [m for m in obj.media.all() if m.type == 'image']
        return media[0].url if media else None


class ProductDetailSerializer(serializers.ModelSerializer):
    brand = BrandSerializer(read_only=True)
    category = CategorySerializer(read_only=True)
    subcategory_ids = serializers.SerializerMethodField()
    style_ids = serializers.SerializerMethodField()
    catalog_ids = serializers.SerializerMethodField()
    variants = ProductVariantSerializer(many=True, read_only=True)
    media = ProductMediaSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'sku', 'titleline', 'brand', 'category', 'subcategory_ids', 'style_ids',
            'catalog_ids', 'description', 'collection', 'producttype', 'gender',
            'making_charge_amount', 'making_charge_percentage', 'is_active', 'metadata',
            'variants', 'media', 'created_at', 'updated_at'
        ]

    def get_subcategory_ids(self, obj):
        return [c.id for c in obj.subcategories.all()]

    def get_style_ids(self, obj):
        return [s.id for s in obj.styles.all()]

    def get_catalog_ids(self, obj):
        return [c.id for c in obj.catalogs.all()]


class ProductWriteSerializer(serializers.Serializer):
    """Validates the product payload; nested variants/media are handled by the sync code"""
    name = serializers.CharField(max_length=255)
    sku = serializers.CharField(max_length=100, required=False, allow_blank=True)
    titleline = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    brand_id = serializers.IntegerField()
    category_id = serializers.IntegerField()
    subcategory_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    style_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    catalog_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    collection = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    producttype = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    gender = serializers.ChoiceField(choices=Product.GENDER_CHOICES, required=False, allow_blank=True, allow_null=True)
    making_charge_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    making_charge_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)
    metadata = serializers.DictField(required=False)
    variants = serializers.ListField(child=serializers.DictField(), required=False)
    media = serializers.ListField(child=serializers.DictField(), required=False)


class CatalogSerializer(serializers.ModelSerializer):
    products_count = serializers.SerializerMethodField()

    class Meta:
        model = Catalog
        fields = ['id', 'code', 'name', 'description', 'is_active', 'display_order', 'products_count', 'created_at', 'updated_at']
        extra_kwargs = {
            'code': {'validators': []},
            'name': {'validators': []},
        }

    def get_products_count(self, obj):
        annotated = getattr(obj, 'products_total', None)
        return annotated if annotated is not None else obj.products.count()


class CatalogProductSerializer(serializers.ModelSerializer):
    """Product row on the catalog assignment screen"""
    selected = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'is_active', 'selected']

    def get_selected(self, obj):
        return obj.id in self.context.get('selected_ids', set())
