"""
Product price calculation

Unit price of a variant = metal value (weight x latest rate) + diamond value
+ making charge - automatic making-charge discount.
"""
from decimal import Decimal, ROUND_HALF_UP
import logging
from .models import PriceRate, Tax
from .discounts import resolve_making_charge_discount

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def money(value):
    return Decimal(str(value or 0)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def latest_rate(metal_name, purity_name):
    return PriceRate.objects.filter(
        metal=metal_name.strip().lower(),
        purity=purity_name.strip(),
    ).order_by('-effective_at', '-id').first()


def calculate_metal_cost(variant):
    total = Decimal('0')
    if variant is None:
        return money(total)

    for variant_metal in variant.metals.select_related('metal', 'metal_purity'):
        if not (variant_metal.metal and variant_metal.metal_purity and variant_metal.metal_weight):
            continue
        rate = latest_rate(variant_metal.metal.name, variant_metal.metal_purity.name)
        if rate and rate.price_per_gram:
            total += variant_metal.metal_weight * rate.price_per_gram
    return money(total)


def calculate_diamond_cost(variant):
    total = Decimal('0')
    if variant is None:
        return money(total)

    for variant_diamond in variant.diamonds.select_related('diamond'):
        diamond = variant_diamond.diamond
        if diamond and diamond.price:
            total += diamond.price * (variant_diamond.diamonds_count or 1)
    return money(total)


def making_charge_types(product):
    types = (product.metadata or {}).get('making_charge_types') or []
    if types:
        return types

    types = []
    if product.making_charge_amount and product.making_charge_amount > 0:
        types.append('fixed')
    if product.making_charge_percentage and product.making_charge_percentage > 0:
        types.append('percentage')
    return types


def calculate_making_charge(product, metal_cost=Decimal('0')):
    types = making_charge_types(product)
    making = Decimal('0')

    if 'fixed' in types:
        making += max(Decimal('0'), product.making_charge_amount or Decimal('0'))

    if 'percentage' in types and metal_cost > 0:
        percentage = max(Decimal('0'), product.making_charge_percentage or Decimal('0'))
        making += metal_cost * percentage / Decimal('100')

    return money(making)


def calculate_product_price(product, user=None, variant=None, quantity=1):
    """
    Price one unit of ``variant`` (a ProductVariant, an id or None) for ``user``.

    ``quantity`` only feeds the discount's minimum cart total check.
    """
    if variant is not None and not hasattr(variant, 'metals'):
        variant = product.variants.filter(pk=variant).first()

    metal = calculate_metal_cost(variant)
    diamond = calculate_diamond_cost(variant)
    making = calculate_making_charge(product, metal)
    subtotal = metal + diamond + making

    try:
        quantity = max(1, int(quantity or 1))
    except (TypeError, ValueError):
        quantity = 1

    discount = resolve_making_charge_discount(product, user, making, subtotal * quantity)
    unit_discount = min(max(money(discount['amount']), Decimal('0')), making)
    total = max(Decimal('0'), subtotal - unit_discount)

    return {
        'metal': float(metal),
        'diamond': float(diamond),
        'stones': float(diamond),
        'making': float(making),
        'subtotal': float(money(subtotal)),
        'discount': float(unit_discount),
        'discount_details': discount,
        'tax': 0.0,
        'total': float(money(total)),
    }


def active_tax_rate():
    """Combined percentage of active taxes in active tax groups"""
    rate = Decimal('0')
    for tax in Tax.objects.filter(is_active=True, tax_group__is_active=True):
        rate += tax.rate or Decimal('0')
    return rate


def calculate_tax(amount):
    amount = Decimal(str(amount or 0))
    if amount <= 0:
        return 0.0
    return float(money(amount * active_tax_rate() / Decimal('100')))
