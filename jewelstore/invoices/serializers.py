from rest_framework import serializers
from .models import Invoice
from .utils import status_label


class InvoiceSerializer(serializers.ModelSerializer):
    status_label = serializers.SerializerMethodField()
    order = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_number', 'status', 'status_label', 'issue_date', 'due_date',
            'subtotal_amount', 'tax_amount', 'discount_amount', 'total_amount', 'currency',
            'notes', 'terms', 'metadata', 'order', 'created_at', 'updated_at'
        ]

    def get_status_label(self, obj):
        return status_label(obj.status)

    def get_order(self, obj):
        order = obj.order
        user = order.user
        return {
            'id': order.id,
            'reference': order.reference,
            'status': order.status,
            'user': {'id': user.id, 'name': user.display_name, 'email': user.email} if user else None,
            'items': [
                {
                    'id': item.id,
                    'name': item.name,
                    'sku': item.sku,
                    'quantity': item.quantity,
                    'unit_price': str(item.unit_price),
                    'total_price': str(item.total_price),
                }
                for item in order.items.all()
            ],
        }


class InvoiceCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    issue_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    terms = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    metadata = serializers.DictField(required=False)

    def validate(self, attrs):
        issue_date, due_date = attrs.get('issue_date'), attrs.get('due_date')
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the issue date'})
        return attrs


class InvoiceUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = ['status', 'issue_date', 'due_date', 'notes', 'terms', 'metadata']

    def validate(self, attrs):
        issue_date = attrs.get('issue_date', self.instance.issue_date if self.instance else None)
        due_date = attrs.get('due_date', self.instance.due_date if self.instance else None)
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the issue date'})
        return attrs
