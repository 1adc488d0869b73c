"""
Variant synchronisation for product create/update

The payload is the complete desired list of variants for a product. Rows are
upserted (by id, then by SKU within the product) and every persisted variant,
metal or diamond missing from the payload is deleted. Callers run this inside
the product write transaction.
"""
from django.db import IntegrityError, transaction
import logging
from jewelstore.core.exceptions import ServiceError, NotFoundError, ConflictError
from jewelstore.core.utils import to_decimal, to_int
from .models import ProductVariant, Metal, MetalPurity, MetalTone, Diamond, Size
from .utils import generate_unique_variant_sku, random_sku_suffix

logger = logging.getLogger(__name__)

MAX_SKU_ATTEMPTS = 5


def positive_id(value):
    value = to_int(value)
    return value if value and value > 0 else None


def normalize_metals(variant_data):
    """Drop metal rows without a metal; fall back to a variant level metal_id"""
    metals = [m for m in (variant_data.get('metals') or []) if positive_id(m.get('metal_id'))]
    if not metals and positive_id(variant_data.get('metal_id')):
        metals = [{
            'metal_id': variant_data.get('metal_id'),
            'metal_purity_id': variant_data.get('metal_purity_id'),
            'metal_tone_id': None,
            'metal_weight': None,
            'metadata': {},
        }]
    return metals


def validate_variants(variants):
    """Every variant needs at least one metal; checked before anything is written"""
    for variant_data in variants:
        if not normalize_metals(variant_data):
            identifier = variant_data.get('label') or variant_data.get('sku') or 'Unknown'
            raise ServiceError(f'Variant "{identifier}" must have at least one metal.')


def resolve(model, pk, label):
    if pk is None:
        return None
    instance = model.objects.filter(pk=pk).first()
    if instance is None:
        raise NotFoundError(f"{label} {pk} not found")
    return instance


def variant_attributes(variant_data):
    attributes = {
        'label': (variant_data.get('label') or '').strip(),
        'inventory_quantity': max(to_int(variant_data.get('inventory_quantity'), 0), 0),
        'metadata': dict(variant_data.get('metadata') or {}),
    }
    if variant_data.get('size_cm') not in (None, ''):
        attributes['metadata']['size_cm'] = variant_data['size_cm']
    if 'size_id' in variant_data:
        attributes['size'] = resolve(Size, positive_id(variant_data.get('size_id')), 'Size')
    return attributes


def create_variant(product, sku, attributes):
    """Insert a variant, regenerating the SKU suffix when the unique index rejects it"""
    base_sku = sku or product.sku
    sku = generate_unique_variant_sku(base_sku)
    if not attributes.get('label'):
        attributes['label'] = f"Variant {sku}"

    for attempt in range(1, MAX_SKU_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                return ProductVariant.objects.create(product=product, sku=sku, **attributes)
        except IntegrityError:
            logger.warning(f"SKU {sku} collided for product {product.id} (attempt {attempt}/{MAX_SKU_ATTEMPTS})")
            sku = f"{base_sku}-{random_sku_suffix()}"

    raise ConflictError(f"Could not generate a unique SKU for variant {base_sku}")


def update_variant(variant, sku, attributes):
    """
    A requested SKU still held by another variant (one outside the payload,
    or of another product) is suffixed instead of taken over.
    """
    if sku and sku != variant.sku:
        variant.sku = generate_unique_variant_sku(sku, exclude_pk=variant.pk)
    if not attributes.get('label'):
        attributes['label'] = variant.label or f"Variant {variant.sku}"
    for field, value in attributes.items():
        setattr(variant, field, value)
    variant.save()
    return variant


def release_moved_skus(product, variants):
    """
    Park the SKUs that move between variants of the same payload (swaps,
    rotations) so every variant can take its requested SKU.
    """
    requested = {}
    for variant_data in variants:
        variant_id = positive_id(variant_data.get('id'))
        sku = (variant_data.get('sku') or '').strip()
        if variant_id and sku:
            requested[variant_id] = sku
    if not requested:
        return

    taken = set(requested.values())
    for variant in product.variants.filter(id__in=list(requested)):
        if variant.sku != requested[variant.id] and variant.sku in taken:
            variant.sku = f"{variant.sku}~{variant.pk}"
            variant.save(update_fields=['sku'])


def sync_variant_metals(variant, metals):
    persisted_ids = []

    for index, metal_data in enumerate(metals):
        metal = resolve(Metal, positive_id(metal_data.get('metal_id')), 'Metal')
        weight = metal_data.get('metal_weight')
        if weight in (None, ''):
            weight = metal_data.get('weight_grams')
        attributes = {
            'metal': metal,
            'metal_purity': resolve(MetalPurity, positive_id(metal_data.get('metal_purity_id')), 'Metal purity'),
            'metal_tone': resolve(MetalTone, positive_id(metal_data.get('metal_tone_id')), 'Metal tone'),
            'metal_weight': to_decimal(weight),
            'metadata': metal_data.get('metadata') or {},
            'display_order': index,
        }

        row_id = positive_id(metal_data.get('id'))
        row = variant.metals.filter(id=row_id).first() if row_id else None
        if row:
            for field, value in attributes.items():
                setattr(row, field, value)
            row.save()
        else:
            row = variant.metals.create(**attributes)
        persisted_ids.append(row.id)

    variant.metals.exclude(id__in=persisted_ids).delete()


def sync_variant_diamonds(variant, diamonds):
    if diamonds is None:
        variant.diamonds.all().delete()
        return

    persisted_ids = []
    entries = [d for d in diamonds if positive_id(d.get('diamond_id')) or to_int(d.get('diamonds_count'))]

    for index, diamond_data in enumerate(entries):
        attributes = {
            'diamond': resolve(Diamond, positive_id(diamond_data.get('diamond_id')), 'Diamond'),
            'diamonds_count': to_int(diamond_data.get('diamonds_count')),
            'metadata': diamond_data.get('metadata') or {},
            'display_order': index,
        }

        row_id = positive_id(diamond_data.get('id'))
        row = variant.diamonds.filter(id=row_id).first() if row_id else None
        if row:
            for field, value in attributes.items():
                setattr(row, field, value)
            row.save()
        else:
            row = variant.diamonds.create(**attributes)
        persisted_ids.append(row.id)

    variant.diamonds.exclude(id__in=persisted_ids).delete()


def sync_variants(product, variants):
    """
    Make the product's variants match ``variants`` exactly.

    Each entry: ``id``, ``sku``, ``label``, ``size_id``, ``inventory_quantity``,
    ``is_default``, ``metadata``, ``metals`` (``id``, ``metal_id``,
    ``metal_purity_id``, ``metal_tone_id``, ``metal_weight``, ``metadata``) and
    ``diamonds`` (``id``, ``diamond_id``, ``diamonds_count``, ``metadata``).

    Returns the product's variants after the sync.
    """
    variants = [dict(v) for v in (variants or [])]
    validate_variants(variants)
    release_moved_skus(product, variants)

    # exactly one default: the first flagged one, else the first variant
    default_index = next((i for i, v in enumerate(variants) if v.get('is_default')), 0)

    persisted_ids = []
    for index, variant_data in enumerate(variants):
        attributes = variant_attributes(variant_data)
        attributes['is_default'] = index == default_index
        sku = (variant_data.get('sku') or '').strip()

        variant = None
        variant_id = positive_id(variant_data.get('id'))
        if variant_id:
            variant = product.variants.filter(id=variant_id).first()
            if variant is None:
                raise NotFoundError(f"Variant {variant_id} not found for this product")
        elif sku:
            variant = product.variants.filter(sku=sku).first()

        if variant:
            variant = update_variant(variant, sku, attributes)
        else:
            variant = create_variant(product, sku, attributes)

        sync_variant_metals(variant, normalize_metals(variant_data))
        sync_variant_diamonds(variant, variant_data.get('diamonds'))
        persisted_ids.append(variant.id)

    removed, _ = product.variants.exclude(id__in=persisted_ids).delete()
    if removed:
        logger.info(f"Removed stale variants of product {product.id} ({removed} rows incl. metals/diamonds)")

    return list(product.variants.all())
