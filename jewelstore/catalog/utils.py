"""
Utility functions for catalog operations
"""
from django.core.files.storage import default_storage
from django.utils import timezone
from django.utils.text import get_valid_filename
import logging
import random
import string
import uuid
from jewelstore.catalog.models import Product, ProductVariant

logger = logging.getLogger(__name__)

SKU_SUFFIX_LENGTH = 3
SKU_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_unique_sku(base_name=None):
    """Generate a unique product SKU"""
    prefix = base_name[:4].upper().replace(' ', '') if base_name else 'PRD'
    timestamp = timezone.now().strftime('%Y%m%d')
    unique_id = str(uuid.uuid4())[:8].upper()
    sku = f"{prefix}-{timestamp}-{unique_id}"

    while Product.objects.filter(sku=sku).exists():
        unique_id = str(uuid.uuid4())[:8].upper()
        sku = f"{prefix}-{timestamp}-{unique_id}"

    return sku


def random_sku_suffix(length=SKU_SUFFIX_LENGTH):
    return ''.join(random.choices(SKU_SUFFIX_ALPHABET, k=length))


def generate_unique_variant_sku(base_sku, exclude_pk=None):
    """
    Return ``base_sku`` when it is free, otherwise ``{base_sku}-XXX`` with a
    random uppercase alphanumeric suffix, retried until no variant uses it.
    """
    queryset = ProductVariant.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    if base_sku and not queryset.filter(sku=base_sku).exists():
        return base_sku

    base = base_sku or 'VAR'
    sku = f"{base}-{random_sku_suffix()}"
    while queryset.filter(sku=sku).exists():
        sku = f"{base}-{random_sku_suffix()}"
    return sku


def save_uploaded_file(uploaded_file, folder):
    """Store an upload under MEDIA_ROOT/<folder>/ and return the storage path"""
    filename = get_valid_filename(uploaded_file.name or 'upload')
    stamp = timezone.now().strftime('%Y%m%d%H%M%S')
    path = default_storage.save(f"{folder}/{stamp}-{uuid.uuid4().hex[:8]}-{filename}", uploaded_file)
    logger.debug(f"Stored upload {uploaded_file.name} at {path}")
    return path


def build_media_data(dto_media=None, uploaded_files=None):
    """
    Build ProductMedia rows: uploaded files first (as images, url ``/<path>``),
    then client supplied media whose URL does not point at one of the uploads.
    """
    uploaded_files = uploaded_files or []
    media_items = []

    for index, file_path in enumerate(uploaded_files):
        media_items.append({
            'type': 'image',
            'url': f"/{file_path}",
            'display_order': index,
            'metadata': {},
        })

    for index, media in enumerate(dto_media or []):
        url = media.get('url')
        if not url:
            continue
        if any(file_path in url for file_path in uploaded_files):
            continue
        media_items.append({
            'type': media.get('type') or 'image',
            'url': url,
            'display_order': len(uploaded_files) + index,
            'metadata': media.get('metadata') or {},
        })

    return media_items
