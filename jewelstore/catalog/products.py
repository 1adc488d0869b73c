"""
Product create/update

Each write (product row, relations, media and variants) is one transaction.
Uploaded files are stored before the transaction starts.
"""
from django.db import transaction
import json
import logging
from jewelstore.core.exceptions import ConflictError, NotFoundError, ServiceError
from .models import Product, ProductMedia, Brand, Category, Style, Catalog
from .utils import generate_unique_sku, save_uploaded_file, build_media_data
from .variant_sync import sync_variants, validate_variants

logger = logging.getLogger(__name__)

SCALAR_FIELDS = [
    'name', 'titleline', 'description', 'collection', 'producttype', 'gender',
    'making_charge_amount', 'making_charge_percentage', 'is_active', 'metadata',
]
JSON_FIELDS = ['variants', 'media', 'metadata', 'subcategory_ids', 'style_ids', 'catalog_ids']


def parse_product_payload(data):
    """
    Flatten request data into a plain dict. Multipart forms send the nested
    structures (variants, media, id lists) as JSON strings.
    """
    if hasattr(data, 'getlist'):
        payload = {}
        for key in data.keys():
            if key.endswith('[]'):
                payload[key[:-2]] = data.getlist(key)
            else:
                payload[key] = data.get(key)
    else:
        payload = dict(data)

    for key in JSON_FIELDS:
        value = payload.get(key)
        if isinstance(value, str):
            if not value.strip():
                payload.pop(key)
                continue
            try:
                payload[key] = json.loads(value)
            except ValueError:
                raise ServiceError(f"{key} must be valid JSON")
    return payload


def get_brand(brand_id):
    brand = Brand.objects.filter(pk=brand_id).first()
    if brand is None:
        raise NotFoundError('Brand not found')
    return brand


def get_category(category_id):
    category = Category.objects.filter(pk=category_id).first()
    if category is None:
        raise NotFoundError('Category not found')
    return category


def ensure_unique_sku(sku, exclude_pk=None):
    queryset = Product.objects.filter(sku=sku)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise ConflictError('Product with this SKU already exists')


def write_media(product, media, stored_paths):
    product.media.all().delete()
    ProductMedia.objects.bulk_create([
        ProductMedia(product=product, **item) for item in build_media_data(media, stored_paths)
    ])


def set_relations(product, data):
    if 'subcategory_ids' in data:
        product.subcategories.set(Category.objects.filter(id__in=data['subcategory_ids'] or []))
    if 'style_ids' in data:
        product.styles.set(Style.objects.filter(id__in=data['style_ids'] or []))
    if 'catalog_ids' in data:
        product.catalogs.set(Catalog.objects.filter(id__in=data['catalog_ids'] or []))


def create_product(data, uploaded_files=None):
    """``data`` is validated ProductWriteSerializer output"""
    variants = data.get('variants') or []
    validate_variants(variants)

    sku = (data.get('sku') or '').strip() or generate_unique_sku(data['name'])
    ensure_unique_sku(sku)
    brand = get_brand(data['brand_id'])
    category = get_category(data['category_id'])

    stored_paths = [save_uploaded_file(f, 'products') for f in uploaded_files or []]

    with transaction.atomic():
        product = Product(sku=sku, brand=brand, category=category)
        for field in SCALAR_FIELDS:
            if field in data:
                setattr(product, field, data[field])
        if product.metadata is None:
            product.metadata = {}
        product.save()

        set_relations(product, data)
        if stored_paths or data.get('media'):
            write_media(product, data.get('media'), stored_paths)
        sync_variants(product, variants)

    logger.info(f"Created product {product.id} ({product.sku}) with {len(variants)} variants")
    return product


def update_product(product, data, uploaded_files=None):
    """PATCH semantics: only keys present in ``data`` change"""
    if 'variants' in data:
        validate_variants(data['variants'] or [])

    if data.get('sku') and data['sku'] != product.sku:
        ensure_unique_sku(data['sku'], exclude_pk=product.pk)

    stored_paths = [save_uploaded_file(f, 'products') for f in uploaded_files or []]

    changes = {}
    with transaction.atomic():
        for field in SCALAR_FIELDS + ['sku']:
            if field not in data or (field == 'sku' and not data[field]):
                continue
            old_value = getattr(product, field)
            if old_value != data[field]:
                changes[field] = {'old': str(old_value) if old_value is not None else None, 'new': str(data[field]) if data[field] is not None else None}
            setattr(product, field, data[field])
        if 'brand_id' in data:
            product.brand = get_brand(data['brand_id'])
        if 'category_id' in data:
            product.category = get_category(data['category_id'])
        product.save()

        set_relations(product, data)
        if 'media' in data or stored_paths:
            write_media(product, data.get('media'), stored_paths)
        if 'variants' in data:
            sync_variants(product, data['variants'] or [])

    logger.info(f"Updated product {product.id} ({product.sku})")
    return product, changes
