from django.core.exceptions import ObjectDoesNotExist
from rest_framework import serializers
from jewelstore.core.utils import format_status_label
from .models import Order, OrderItem, OrderStatus, OrderStatusHistory, Payment
from .utils import STATUS_CODES, item_price_breakdown, status_options


def product_summary(product):
    if product is None:
        return None
    return {
        'id': product.id,
        'name': product.name,
        'sku': product.sku,
        'media': [
            {'url': m.url, 'alt': (m.metadata or {}).get('alt') or product.name}
            for m in product.media.all()
        ],
    }


class OrderStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatus
        fields = ['id', 'name', 'code', 'color', 'is_default', 'is_active', 'display_order', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'validators': []},
            'code': {'validators': []},
        }

    def validate_color(self, value):
        if value and not value.startswith('#'):
            raise serializers.ValidationError('Color must be a hex value like #64748b')
        return value


class OrderItemSerializer(serializers.ModelSerializer):
    price_breakdown = serializers.SerializerMethodField()
    calculated_making_charge = serializers.SerializerMethodField()
    product = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            'id', 'sku', 'name', 'quantity', 'unit_price', 'total_price', 'configuration',
            'metadata', 'price_breakdown', 'calculated_making_charge', 'product', 'variant_id'
        ]

    def get_price_breakdown(self, obj):
        return item_price_breakdown(obj)

    def get_calculated_making_charge(self, obj):
        breakdown = item_price_breakdown(obj)
        return breakdown['making'] if breakdown else None

    def get_product(self, obj):
        summary = product_summary(obj.product)
        if summary is not None:
            summary['making_charge_amount'] = str(obj.product.making_charge_amount) if obj.product.making_charge_amount is not None else None
            summary['making_charge_percentage'] = str(obj.product.making_charge_percentage) if obj.product.making_charge_percentage is not None else None
            summary['making_charge_types'] = (obj.product.metadata or {}).get('making_charge_types', [])
        return summary


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    status_label = serializers.SerializerMethodField()

    class Meta:
        model = OrderStatusHistory
        fields = ['id', 'status', 'status_label', 'meta', 'created_at']

    def get_status_label(self, obj):
        return format_status_label(obj.status)


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'amount', 'status', 'provider', 'reference', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    status_label = serializers.SerializerMethodField()
    user = serializers.SerializerMethodField()
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'reference', 'status', 'status_label', 'currency', 'subtotal_amount', 'tax_amount',
            'discount_amount', 'total_amount', 'user', 'items_count', 'created_at', 'updated_at'
        ]

    def get_status_label(self, obj):
        return format_status_label(obj.status)

    def get_user(self, obj):
        if obj.user_id:
            return {'id': obj.user_id, 'name': obj.user.display_name, 'email': obj.user.email}
        return None

    def get_items_count(self, obj):
        return len(obj.items.all())


class OrderDetailSerializer(OrderListSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    quotations = serializers.SerializerMethodField()
    invoice = serializers.SerializerMethodField()
    status_options = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            'price_breakdown', 'metadata', 'items', 'status_history', 'payments',
            'quotations', 'invoice', 'status_options'
        ]

    def get_quotations(self, obj):
        return [
            {
                'id': q.id,
                'status': q.status,
                'quantity': q.quantity,
                'product': product_summary(q.product),
            }
            for q in obj.quotations.all()
        ]

    def get_invoice(self, obj):
        try:
            invoice = obj.invoice
        except ObjectDoesNotExist:
            return None
        return {'id': invoice.id, 'invoice_number': invoice.invoice_number, 'status': invoice.status}

    def get_status_options(self, obj):
        return status_options()


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_CODES)
    meta = serializers.DictField(required=False)
