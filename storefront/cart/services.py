"""
Cart bookkeeping.

Lines are keyed by the product id string the client sent. Numeric ids are
linked to catalog products, the custom embroidery id never is.
"""
import logging

from django.conf import settings
from django.db import transaction

from storefront.catalog.models import Product
from storefront.catalog.services import check_stock
from storefront.core.exceptions import ProductNotFound
from storefront.pricing.calculators import calculate_item_price, calculate_order_totals, money
from .models import CartItem

logger = logging.getLogger(__name__)


def is_custom_embroidery(product_key):
    return str(product_key) == settings.STOREFRONT['CUSTOM_EMBROIDERY_PRODUCT_ID']


def find_product(product_key, active_only=True):
    """Catalog product for a numeric key, None for anything else"""
    key = str(product_key).strip()
    if not key.isdigit():
        return None
    queryset = Product.objects.all()
    if active_only:
        queryset = queryset.filter(status='active')
    return queryset.filter(pk=int(key)).first()


def fallback_price(customization):
    """Stored pricing breakdown total, used when the product is unknown"""
    if isinstance(customization, dict):
        breakdown = customization.get('pricingBreakdown')
        if isinstance(breakdown, dict):
            return breakdown.get('totalPrice')
    return None


def unit_price(item):
    product_price = item.product.price if item.product is not None else None
    return calculate_item_price(item.product_key, item.customization, product_price, fallback_price(item.customization))


def cart_lines(user):
    return CartItem.objects.filter(user=user).select_related('product').order_by('created_at', 'id')


def open_lines(queryset):
    """Lines that have not been handed to an order review"""
    return queryset.filter(order_review__isnull=True).exclude(review_status='submitted')


def cart_totals(items):
    """Totals over the lines that have not been submitted for review"""
    pairs = [(unit_price(item), item.quantity) for item in items if not item.is_submitted]
    return calculate_order_totals(pairs)


def line_total(item):
    return money(unit_price(item) * item.quantity)


def _stock_check(product, quantity):
    if product is not None:
        check_stock(product, quantity)


def add_item(user, product_key, quantity=1, customization=None):
    """
    Add a line, or merge it into an existing line with the same product and customization.

    Returns (item, created).
    """
    product_key = str(product_key).strip()
    product = None
    if not is_custom_embroidery(product_key):
        product = find_product(product_key)
        if product is None:
            raise ProductNotFound(f"Product {product_key} not found or inactive")

    with transaction.atomic():
        existing = None
        for line in open_lines(CartItem.objects.select_for_update().filter(user=user, product_key=product_key)):
            if line.customization == customization:
                existing = line
                break

        if existing is not None:
            new_quantity = existing.quantity + quantity
            if new_quantity > settings.STOREFRONT['CART_MAX_QUANTITY']:
                new_quantity = settings.STOREFRONT['CART_MAX_QUANTITY']
            _stock_check(product, new_quantity)
            existing.quantity = new_quantity
            existing.save(update_fields=['quantity', 'updated_at'])
            logger.info(f"Cart line {existing.id} merged for user {user.id}: quantity now {new_quantity}")
            return existing, False

        _stock_check(product, quantity)
        item = CartItem.objects.create(
            user=user,
            product_key=product_key,
            product=product,
            quantity=quantity,
            customization=customization,
            review_status='pending' if customization else 'approved',
        )
    logger.info(f"Cart line {item.id} added for user {user.id}: product {product_key} x {quantity}")
    return item, True


def update_item(item, quantity, customization=None, replace_customization=False):
    """Change a line's quantity and optionally its customization"""
    with transaction.atomic():
        item = CartItem.objects.select_for_update().select_related('product').get(pk=item.pk)
        _stock_check(item.product, quantity)
        item.quantity = quantity
        fields = ['quantity', 'updated_at']
        if replace_customization:
            item.customization = customization
            # a changed design goes back through review
            item.review_status = 'pending' if customization else 'approved'
            fields += ['customization', 'review_status']
        item.save(update_fields=fields)
    logger.info(f"Cart line {item.id} updated: quantity {quantity}")
    return item


def clear_cart(user):
    deleted_count, _ = CartItem.objects.filter(user=user).delete()
    logger.info(f"Cart cleared for user {user.id}: {deleted_count} lines removed")
    return deleted_count


def _valid_quantity(value):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return None
    if quantity < 1:
        return None
    return min(quantity, settings.STOREFRONT['CART_MAX_QUANTITY'])


def sync_cart(user, entries):
    """
    Replace the user's open cart lines with a client-local list.

    An empty list leaves the cart alone. Entries without a product id or with
    a quantity below one are skipped. Returns (items, skipped).
    """
    if not entries:
        return list(cart_lines(user)), 0

    created = []
    skipped = 0
    with transaction.atomic():
        open_lines(CartItem.objects.filter(user=user)).delete()
        for entry in entries:
            if not isinstance(entry, dict):
                skipped += 1
                continue
            product_key = entry.get('product_id', entry.get('productId'))
            product_key = '' if product_key is None else str(product_key).strip()
            quantity = _valid_quantity(entry.get('quantity'))
            if not product_key or quantity is None:
                skipped += 1
                continue
            product = None if is_custom_embroidery(product_key) else find_product(product_key, active_only=False)
            customization = entry.get('customization')
            created.append(CartItem.objects.create(
                user=user,
                product_key=product_key,
                product=product,
                quantity=quantity,
                customization=customization if isinstance(customization, dict) else None,
                review_status='pending',
            ))

    if skipped:
        logger.warning(f"Cart sync for user {user.id} skipped {skipped} invalid entries")
    logger.info(f"Cart synced for user {user.id}: {len(created)} lines")
    return created, skipped
