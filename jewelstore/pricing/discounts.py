"""
Automatic making-charge discounts

A discount only ever reduces the making charge, never metal or diamond value.
"""
from django.db.models import Q
from django.utils import timezone
from decimal import Decimal, ROUND_HALF_UP
import logging
from .models import MakingChargeDiscount

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def empty_discount():
    return {
        'amount': 0.0,
        'type': None,
        'value': 0.0,
        'source': None,
        'name': None,
        'meta': {},
    }


def discount_priority(discount):
    if discount.customer_types:
        return 280
    if discount.customer_group_id:
        return 260
    if discount.brand_id or discount.category_id:
        return 220
    return 200


def discount_applies(discount, product, customer_type, customer_group_id, line_subtotal):
    if discount.brand_id and discount.brand_id != product.brand_id:
        return False
    if discount.category_id and discount.category_id != product.category_id:
        return False

    allowed_types = [str(t).lower() for t in (discount.customer_types or [])]
    if allowed_types and (not customer_type or customer_type not in allowed_types):
        return False

    if discount.customer_group_id and discount.customer_group_id != customer_group_id:
        return False

    if discount.min_cart_total is not None and line_subtotal < discount.min_cart_total:
        return False

    return True


def discount_amount(discount, making):
    value = max(Decimal('0'), discount.value or Decimal('0'))
    if discount.discount_type == 'percentage':
        amount = making * min(value, Decimal('100')) / Decimal('100')
    else:
        amount = value
    return min(amount, making).quantize(TWO_PLACES, rounding=ROUND_HALF_UP), value


def resolve_making_charge_discount(product, user, making, line_subtotal, now=None):
    """
    Pick the best automatic discount for ``product`` and ``user``.

    Best means the largest amount; equal amounts go to the more specific
    discount (customer types 280, customer group 260, brand/category 220,
    global 200).
    """
    making = Decimal(str(making or 0))
    line_subtotal = Decimal(str(line_subtotal or 0))
    if making <= 0:
        return empty_discount()

    now = now or timezone.now()
    customer_type = (getattr(user, 'type', None) or '').lower()
    customer_group_id = getattr(user, 'customer_group_id', None)

    discounts = MakingChargeDiscount.objects.filter(is_active=True, is_auto=True).filter(
        Q(starts_at__isnull=True) | Q(starts_at__lte=now),
        Q(ends_at__isnull=True) | Q(ends_at__gte=now),
    )

    best = None
    for discount in discounts:
        if not discount_applies(discount, product, customer_type, customer_group_id, line_subtotal):
            continue
        amount, value = discount_amount(discount, making)
        if value <= 0:
            continue
        priority = discount_priority(discount)
        if best is None or amount > best[0] or (amount == best[0] and priority > best[1]):
            best = (amount, priority, discount, value)

    if best is None:
        return empty_discount()

    amount, priority, discount, value = best
    logger.debug(f"Discount '{discount.name}' ({amount}) applies to product {product.id}")
    return {
        'amount': float(amount),
        'type': discount.discount_type,
        'value': float(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)),
        'source': 'global',
        'name': discount.name,
        'customer_types': discount.customer_types or None,
        'meta': {
            'discount_id': discount.id,
            'brand_id': discount.brand_id,
            'category_id': discount.category_id,
            'customer_group_id': discount.customer_group_id,
            'customer_types': discount.customer_types,
            'min_cart_total': float(discount.min_cart_total) if discount.min_cart_total is not None else None,
        },
    }
