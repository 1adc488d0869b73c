"""
Cache invalidation signals
Drop the cached product options whenever master data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
from jewelstore.core.cache_utils import invalidate_payload, PRODUCT_OPTIONS

logger = logging.getLogger(__name__)

PRODUCT_OPTION_MODELS = [
    'Brand', 'Category', 'Style', 'Size', 'Metal', 'MetalPurity', 'MetalTone', 'Diamond', 'Catalog',
]


@receiver([post_save, post_delete])
def invalidate_product_options(sender, instance, **kwargs):
    """Invalidate product options when a brand/category/metal/... row changes"""
    if sender._meta.app_label != 'catalog' or sender.__name__ not in PRODUCT_OPTION_MODELS:
        return

    logger.debug(f"{sender.__name__} {instance.pk} changed, dropping product options")
    invalidate_payload(PRODUCT_OPTIONS)
