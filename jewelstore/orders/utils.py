"""
Utility functions for order operations
"""
import random
import string
import logging
from jewelstore.core.utils import format_status_label
from .models import Order, OrderStatusHistory

logger = logging.getLogger(__name__)

REFERENCE_LENGTH = 10
STATUS_CODES = [code for code, _ in Order.STATUS_CHOICES]


def generate_order_reference(length=REFERENCE_LENGTH):
    """Random uppercase alphanumeric reference not used by another order"""
    alphabet = string.ascii_uppercase + string.digits
    reference = ''.join(random.choices(alphabet, k=length))
    while Order.objects.filter(reference=reference).exists():
        reference = ''.join(random.choices(alphabet, k=length))
    return reference


def status_options():
    return [{'value': code, 'label': format_status_label(code)} for code in STATUS_CODES]


def record_status_change(order, new_status, meta=None, user=None):
    """Set ``order.status`` and append a history row; returns the previous status"""
    previous = order.status
    order.status = new_status
    order.save(update_fields=['status', 'updated_at'])
    OrderStatusHistory.objects.create(
        order=order,
        status=new_status,
        meta=meta or {},
        created_by=user if user is not None and user.is_authenticated else None,
    )
    logger.info(f"Order {order.reference} status {previous} -> {new_status}")
    return previous


def item_price_breakdown(item):
    """Unit price breakdown of an order item, from its metadata or the order's breakdown"""
    breakdown = (item.metadata or {}).get('price_breakdown')
    if not breakdown:
        for line in (item.order.price_breakdown or {}).get('items', []):
            if line.get('variant_id') == item.variant_id and line.get('product_id') == item.product_id:
                breakdown = line.get('unit')
                break
    if not isinstance(breakdown, dict):
        return None
    return {
        'metal': float(breakdown.get('metal') or 0),
        'diamond': float(breakdown.get('diamond') or 0),
        'making': float(breakdown.get('making') or 0),
        'subtotal': float(breakdown.get('subtotal') or 0),
        'discount': float(breakdown.get('discount') or 0),
        'total': float(breakdown.get('total') if breakdown.get('total') is not None else item.unit_price),
    }
