"""
Variant dimensions for customer selectors

Normalises a product's variants into comparable codes (metal, diamond, size)
and reports only the attributes that actually vary between variants.
"""
from jewelstore.pricing.calculator import calculate_product_price


def metal_code(variant_metal):
    return f"{variant_metal.metal_id}-{variant_metal.metal_purity_id or 0}-{variant_metal.metal_tone_id or 0}"


def metal_label(variant_metal):
    parts = [variant_metal.metal.name]
    if variant_metal.metal_purity_id:
        parts.append(variant_metal.metal_purity.name)
    if variant_metal.metal_tone_id:
        parts.append(variant_metal.metal_tone.name)
    return ' '.join(parts)


def diamond_code(variant_diamond):
    return f"{variant_diamond.diamond_id or 0}x{variant_diamond.diamonds_count or 1}"


def diamond_label(variant_diamond):
    name = variant_diamond.diamond.name if variant_diamond.diamond_id else 'Diamond'
    if variant_diamond.diamonds_count:
        return f"{name} ({variant_diamond.diamonds_count})"
    return name


def variant_size(variant):
    if variant.size_id:
        return variant.size.value or variant.size.name
    size_cm = (variant.metadata or {}).get('size_cm')
    return str(size_cm) if size_cm not in (None, '') else None


def normalize_variant(product, variant, user=None):
    metals = list(variant.metals.all())
    diamonds = list(variant.diamonds.all())
    price = calculate_product_price(product, user, variant)

    return {
        'id': variant.id,
        'sku': variant.sku or product.sku,
        'label': variant.label,
        'is_default': variant.is_default,
        'inventory_quantity': variant.inventory_quantity,
        'metal_code': '|'.join(metal_code(m) for m in metals) or None,
        'metal_label': ' / '.join(metal_label(m) for m in metals) or None,
        'metal_options': [{'value': metal_code(m), 'label': metal_label(m)} for m in metals],
        'diamond_code': '|'.join(diamond_code(d) for d in diamonds) or None,
        'diamond_label': ' / '.join(diamond_label(d) for d in diamonds) or None,
        'size': variant_size(variant),
        'price_total': price['total'],
        'price_breakup': price,
    }


def build_dimensions(variants):
    metal_options = {}
    diamond_options = {}
    sizes = []

    for variant in variants:
        for option in variant['metal_options']:
            metal_options.setdefault(option['value'], option['label'])
        if variant['diamond_code']:
            diamond_options.setdefault(variant['diamond_code'], variant['diamond_label'] or variant['diamond_code'])
        if variant['size'] and variant['size'] not in sizes:
            sizes.append(variant['size'])

    dimensions = []
    if len(metal_options) > 1:
        dimensions.append({
            'key': 'metal',
            'label': 'Metal',
            'type': 'chip',
            'options': [{'value': code, 'label': label} for code, label in metal_options.items()],
        })
    if len(diamond_options) > 1:
        dimensions.append({
            'key': 'diamond',
            'label': 'Diamond',
            'type': 'chip',
            'options': [{'value': code, 'label': label} for code, label in diamond_options.items()],
        })
    if len(sizes) > 1:
        dimensions.append({
            'key': 'size',
            'label': 'Size',
            'type': 'chip',
            'options': [{'value': size, 'label': size} for size in sorted(sizes)],
        })
    return dimensions


def compute_dimensions(product, user=None):
    """Return ``{'variants': [...], 'variant_dimensions': [...]}`` for ``product``"""
    variants = product.variants.select_related('size').prefetch_related(
        'metals__metal', 'metals__metal_purity', 'metals__metal_tone', 'diamonds__diamond',
    ).order_by('-is_default', 'label')

    normalized = [normalize_variant(product, variant, user) for variant in variants]
    return {
        'variants': normalized,
        'variant_dimensions': build_dimensions(normalized),
    }
