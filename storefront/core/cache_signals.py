"""
Cache invalidation signals
Automatically invalidate cached catalog listings when catalog data changes
"""
import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from storefront.catalog.models import Category, Product, ProductVariant
from .cache_utils import invalidate_cache_prefix, PRODUCTS_LIST_CACHE_PREFIX

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Product)
@receiver([post_save, post_delete], sender=ProductVariant)
@receiver([post_save, post_delete], sender=Category)
def invalidate_product_list_cache(sender, instance, **kwargs):
    """Product listings embed category names and variant stock"""
    invalidate_cache_prefix(PRODUCTS_LIST_CACHE_PREFIX)
    logger.debug(f"Product list cache invalidated by {sender.__name__} {instance.pk}")
