"""Stock and rating bookkeeping for catalog products"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Avg, Count, F

from storefront.core.exceptions import InsufficientStock
from .models import Product, ProductReview, ProductVariant

logger = logging.getLogger(__name__)


def check_stock(product, quantity):
    """Raise InsufficientStock when the product cannot cover the requested quantity"""
    available = product.total_stock()
    if available <= 0:
        raise InsufficientStock('This product is out of stock')
    if quantity > available:
        raise InsufficientStock(f'Only {available} items available in stock')
    return available


def set_stock(product_id, quantity):
    """Overwrite a product's own stock level, returns (product, previous stock)"""
    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product_id)
        previous = product.stock
        product.stock = quantity
        product.save(update_fields=['stock', 'updated_at'])
    logger.info(f"Stock for product {product.id} set from {previous} to {quantity}")
    return product, previous


def deduct_stock(product_id, quantity, variant_id=None):
    """
    Take sold units off the shelf.

    Products with variants give up stock from the chosen variant, or from the
    best stocked active one when none was chosen. Returns the variant id the
    units came from and whether anything was deducted.
    """
    if quantity <= 0:
        return None, False
    variants = ProductVariant.objects.filter(product_id=product_id, is_active=True)
    if variant_id is None and variants.exists():
        variant_id = variants.order_by('-stock', 'id').values_list('id', flat=True).first()

    if variant_id is not None:
        updated = ProductVariant.objects.filter(
            pk=variant_id, product_id=product_id, stock__gte=quantity
        ).update(stock=F('stock') - quantity)
    else:
        updated = Product.objects.filter(pk=product_id, stock__gte=quantity).update(stock=F('stock') - quantity)

    if not updated:
        logger.warning(f"Could not deduct {quantity} units from product {product_id} variant {variant_id}")
        return variant_id, False
    logger.info(f"Deducted {quantity} units from product {product_id} variant {variant_id}")
    return variant_id, True


def restore_stock(product_id, quantity, variant_id=None):
    """Put returned units back on the shelf, returns False for unknown products"""
    if quantity <= 0:
        return False
    if variant_id is not None:
        updated = ProductVariant.objects.filter(pk=variant_id, product_id=product_id).update(stock=F('stock') + quantity)
    else:
        updated = Product.objects.filter(pk=product_id).update(stock=F('stock') + quantity)
    if not updated:
        logger.warning(f"Stock restore skipped: product {product_id} variant {variant_id} not found")
        return False
    logger.info(f"Restored {quantity} units to product {product_id} variant {variant_id}")
    return True


def update_product_rating(product):
    """Recompute average_rating and total_reviews from approved reviews"""
    stats = ProductReview.objects.filter(product=product, status='approved').aggregate(
        avg=Avg('rating'), count=Count('id')
    )
    average = Decimal(str(stats['avg'] or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    product.average_rating = average
    product.total_reviews = stats['count']
    product.save(update_fields=['average_rating', 'total_reviews', 'updated_at'])
    return product
