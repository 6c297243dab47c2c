"""Order review submission and the admin review workflow"""
import logging

from django.db import transaction
from django.utils import timezone

from storefront.cart.models import CartItem
from storefront.cart.services import open_lines, unit_price
from storefront.catalog.services import check_stock, deduct_stock
from storefront.core.exceptions import InvalidRequest, InvalidTransition
from storefront.pricing.calculators import calculate_order_totals, money
from .models import OrderReview

logger = logging.getLogger(__name__)

# Review decisions that are mirrored onto the submitted cart lines
CART_PROPAGATED_STATUSES = ('approved', 'rejected', 'needs-changes')


def submit_for_review(user, item_ids=None, shipping_address=None, billing_address=None,
                      shipping_method=None, customer_notes=''):
    """Snapshot the selected open cart lines into a new OrderReview"""
    with transaction.atomic():
        lines = open_lines(CartItem.objects.select_for_update().filter(user=user))
        if item_ids:
            lines = lines.filter(pk__in=item_ids)
        lines = list(lines.select_related('product').order_by('created_at', 'id'))
        if not lines:
            raise InvalidRequest('No cart items to submit for review')

        snapshot = []
        pairs = []
        for line in lines:
            if line.product is not None:
                check_stock(line.product, line.quantity)
            price = unit_price(line)
            pairs.append((price, line.quantity))
            snapshot.append({
                'item_id': line.id,
                'product_id': line.product_key,
                'title': line.product.title if line.product is not None else None,
                'quantity': line.quantity,
                'customization': line.customization,
                'unit_price': str(price),
                'line_total': str(money(price * line.quantity)),
            })

        totals = calculate_order_totals(pairs, shipping_method)
        order = OrderReview.objects.create(
            user=user,
            order_data=snapshot,
            subtotal=totals['subtotal'],
            tax=totals['tax'],
            shipping=totals['shipping'],
            total=totals['total'],
            shipping_address=shipping_address or {},
            billing_address=billing_address or {},
            shipping_method=shipping_method or {},
            customer_notes=customer_notes or '',
        )
        CartItem.objects.filter(pk__in=[line.id for line in lines]).update(
            review_status='submitted', order_review=order, updated_at=timezone.now()
        )

    logger.info(f"Order {order.order_number} submitted by user {user.id} with {len(lines)} lines, total {order.total}")
    return order


def _selected_variant_id(customization):
    if isinstance(customization, dict):
        variant = customization.get('selectedVariant')
        if isinstance(variant, dict) and str(variant.get('id', '')).isdigit():
            return int(variant['id'])
    return None


def deduct_stock_for_order(order):
    """
    Take the order's catalog units off the shelf, once per order.

    Custom embroidery lines have no stock. What was actually deducted is kept
    on the order so refunds can only put back those units.
    """
    locked = OrderReview.objects.select_for_update().get(pk=order.pk)
    if locked.stock_deducted_at is not None:
        order.stock_deductions = locked.stock_deductions
        order.stock_deducted_at = locked.stock_deducted_at
        return []

    deductions = []
    for line in order.order_data or []:
        if not isinstance(line, dict):
            continue
        product_key = str(line.get('product_id') or '').strip()
        if not product_key.isdigit():
            continue
        try:
            quantity = int(line.get('quantity') or 0)
        except (TypeError, ValueError):
            continue
        variant_id, deducted = deduct_stock(int(product_key), quantity, _selected_variant_id(line.get('customization')))
        if deducted:
            deductions.append({'product_id': product_key, 'variant_id': variant_id, 'quantity': quantity, 'restored': 0})

    order.stock_deductions = deductions
    order.stock_deducted_at = timezone.now()
    order.save(update_fields=['stock_deductions', 'stock_deducted_at', 'updated_at'])
    logger.info(f"Stock deducted for order {order.order_number}: {len(deductions)} lines")
    return deductions


def set_review_status(order, new_status, admin_notes=None):
    """Apply an admin review decision or fulfilment step"""
    allowed = OrderReview.ADMIN_DECISION_STATUSES + OrderReview.FULFILMENT_STATUSES
    if new_status not in allowed:
        raise InvalidTransition(f"Status '{new_status}' cannot be set on a review")

    now = timezone.now()
    old_status = order.status
    order.status = new_status
    order.reviewed_at = now
    if admin_notes is not None:
        order.admin_notes = admin_notes
    if new_status == 'shipped' and order.shipped_at is None:
        order.shipped_at = now
    if new_status == 'delivered':
        if order.shipped_at is None:
            order.shipped_at = now
        order.delivered_at = now

    with transaction.atomic():
        if new_status in OrderReview.FULFILMENT_STATUSES:
            deduct_stock_for_order(order)
        order.save()
        if new_status in CART_PROPAGATED_STATUSES:
            order.cart_items.update(review_status=new_status, updated_at=now)

    logger.info(f"Order {order.order_number} moved from {old_status} to {new_status}")
    return order, old_status


def add_picture_replies(order, replies):
    """Attach admin proof pictures and wait for the customer's confirmation"""
    now = timezone.now()
    stamped = []
    for reply in replies:
        stamped.append({
            'item_id': reply['item_id'],
            'image': reply['image'],
            'notes': reply.get('notes', ''),
            'uploaded_at': now.isoformat(),
        })
    order.admin_picture_replies = list(order.admin_picture_replies or []) + stamped
    order.picture_reply_uploaded_at = now
    order.status = 'picture-reply-pending'
    order.save()
    logger.info(f"{len(stamped)} picture replies added to order {order.order_number}")
    return order


def confirm_pictures(order, confirmations):
    """Record the customer's verdict on the proof pictures"""
    if order.status != 'picture-reply-pending':
        raise InvalidTransition('There are no picture replies awaiting confirmation')

    now = timezone.now()
    order.customer_confirmations = [
        {
            'item_id': entry['item_id'],
            'confirmed': entry['confirmed'],
            'notes': entry.get('notes', ''),
            'confirmed_at': now.isoformat(),
        }
        for entry in confirmations
    ]
    all_confirmed = all(entry['confirmed'] for entry in confirmations)
    order.status = 'picture-reply-approved' if all_confirmed else 'picture-reply-rejected'
    order.customer_confirmed_at = now
    order.save()
    logger.info(f"Order {order.order_number} pictures {order.status}")
    return order
