from rest_framework import serializers
from .models import PriceRate, MakingChargeDiscount, TaxGroup, Tax


class PriceRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = PriceRate
        fields = ['id', 'metal', 'purity', 'price_per_gram', 'currency', 'source', 'effective_at', 'created_at']
        read_only_fields = ['id', 'created_at']


class RateEntrySerializer(serializers.Serializer):
    purity = serializers.CharField(max_length=50)
    price_per_gram = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    currency = serializers.CharField(max_length=10, required=False, allow_blank=True)


class MetalRatesSerializer(serializers.Serializer):
    rates = RateEntrySerializer(many=True, allow_empty=False)
    currency = serializers.CharField(max_length=10, required=False, allow_blank=True)
    source = serializers.CharField(max_length=50, required=False, allow_blank=True)
    effective_at = serializers.DateTimeField(required=False, allow_null=True)


class MakingChargeDiscountSerializer(serializers.ModelSerializer):
    brand_name = serializers.CharField(source='brand.name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True)
    customer_group_name = serializers.CharField(source='customer_group.name', read_only=True)

    class Meta:
        model = MakingChargeDiscount
        fields = [
            'id', 'name', 'description', 'discount_type', 'value',
            'brand', 'brand_name', 'category', 'category_name',
            'customer_group', 'customer_group_name', 'customer_types', 'min_cart_total',
            'is_auto', 'is_active', 'starts_at', 'ends_at', 'metadata',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_customer_types(self, value):
        if value in (None, ''):
            return []
        if not isinstance(value, list):
            raise serializers.ValidationError('customer_types must be a list')
        return [str(item).lower() for item in value if str(item).strip()]

    def validate(self, attrs):
        discount_type = attrs.get('discount_type', getattr(self.instance, 'discount_type', 'percentage'))
        value = attrs.get('value', getattr(self.instance, 'value', None))
        if value is not None and value < 0:
            raise serializers.ValidationError({'value': 'Value cannot be negative'})
        if discount_type == 'percentage' and value is not None and value > 100:
            raise serializers.ValidationError({'value': 'Percentage cannot exceed 100'})
        starts_at = attrs.get('starts_at', getattr(self.instance, 'starts_at', None))
        ends_at = attrs.get('ends_at', getattr(self.instance, 'ends_at', None))
        if starts_at and ends_at and ends_at < starts_at:
            raise serializers.ValidationError({'ends_at': 'End date must be after start date'})
        return attrs


class TaxSerializer(serializers.ModelSerializer):
    tax_group_name = serializers.CharField(source='tax_group.name', read_only=True)

    class Meta:
        model = Tax
        fields = ['id', 'tax_group', 'tax_group_name', 'name', 'code', 'rate', 'description', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class TaxGroupSerializer(serializers.ModelSerializer):
    taxes = TaxSerializer(many=True, read_only=True)

    class Meta:
        model = TaxGroup
        fields = ['id', 'name', 'description', 'is_active', 'taxes', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
