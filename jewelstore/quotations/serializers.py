from rest_framework import serializers
from jewelstore.core.utils import format_status_label
from .models import Quotation, QuotationMessage


class QuotationMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = QuotationMessage
        fields = ['id', 'quotation_id', 'sender_type', 'sender_name', 'message', 'created_at']

    def get_sender_name(self, obj):
        return obj.user.display_name if obj.user_id else None


class QuotationSerializer(serializers.ModelSerializer):
    status_label = serializers.SerializerMethodField()
    product = serializers.SerializerMethodField()
    variant = serializers.SerializerMethodField()
    user = serializers.SerializerMethodField()
    order = serializers.SerializerMethodField()

    class Meta:
        model = Quotation
        fields = [
            'id', 'quotation_group_id', 'status', 'status_label', 'quantity', 'notes', 'admin_notes',
            'approved_at', 'product', 'variant', 'user', 'order', 'created_at', 'updated_at'
        ]

    def get_status_label(self, obj):
        return format_status_label(obj.status)

    def get_product(self, obj):
        thumbnail = next((m.url for m in obj.product.media.all() if m.type == 'image'), None)
        return {'id': obj.product_id, 'name': obj.product.name, 'sku': obj.product.sku, 'thumbnail': thumbnail}

    def get_variant(self, obj):
        if not obj.variant_id:
            return None
        return {
            'id': obj.variant_id,
            'sku': obj.variant.sku,
            'label': obj.variant.label,
            'inventory_quantity': obj.variant.inventory_quantity,
        }

    def get_user(self, obj):
        return {'id': obj.user_id, 'name': obj.user.display_name, 'email': obj.user.email}

    def get_order(self, obj):
        if not obj.order_id:
            return None
        return {'id': obj.order_id, 'reference': obj.order.reference, 'status': obj.order.status}


class QuotationItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    variant_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class QuotationCreateSerializer(serializers.Serializer):
    """Accepts ``items`` or a single item at the top level"""
    items = QuotationItemSerializer(many=True, required=False)
    product_id = serializers.IntegerField(required=False)
    variant_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        items = attrs.get('items')
        if not items:
            if not attrs.get('product_id'):
                raise serializers.ValidationError({'items': 'At least one item is required'})
            items = [{
                'product_id': attrs['product_id'],
                'variant_id': attrs.get('variant_id'),
                'quantity': attrs.get('quantity') or 1,
                'notes': attrs.get('notes'),
            }]
        return {'items': items}


class QuotationMessageCreateSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=5000)

    def validate_message(self, value):
        if not value.strip():
            raise serializers.ValidationError('Message cannot be empty')
        return value


class QuotationDecisionSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConfirmationRequestSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    variant_id = serializers.IntegerField(required=False, allow_null=True)


class QuotationGroupItemSerializer(serializers.Serializer):
    """Product line an admin adds to a group or swaps into it"""
    product_id = serializers.IntegerField()
    variant_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    admin_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
