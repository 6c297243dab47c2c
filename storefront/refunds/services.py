"""
Refund requests against order reviews.

There is no payment gateway behind approval: approving a refund records it
as completed, updates the order's refunded amount and puts resellable stock
back.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from storefront.catalog.services import restore_stock
from storefront.core.exceptions import InvalidTransition, RefundNotAllowed
from storefront.orders.models import OrderReview
from .models import RefundRequest

logger = logging.getLogger(__name__)

REFUNDABLE_ORDER_STATUSES = ['delivered', 'shipped', 'in-production', 'ready-for-checkout']
# Returned goods for these reasons are not put back on sale
NO_RESTOCK_REASONS = ['damaged_defective', 'quality_issues']


def check_eligibility(order):
    """Raise RefundNotAllowed unless the order can take a new refund request"""
    if order.refund_status == 'full' or order.status == 'refunded':
        raise RefundNotAllowed('Order has already been refunded')
    if order.status not in REFUNDABLE_ORDER_STATUSES:
        raise RefundNotAllowed('Order is not in a refundable state')

    limit = settings.STOREFRONT['REFUND_TIME_LIMIT_DAYS']
    reference = order.delivered_at or order.shipped_at or order.created_at
    if (timezone.now() - reference).days > limit:
        raise RefundNotAllowed(f'Refund window has expired ({limit} days limit)')

    if RefundRequest.objects.filter(order_review=order, status__in=RefundRequest.OPEN_STATUSES).exists():
        raise RefundNotAllowed('A refund request is already pending for this order')


def settled_refund_status(order):
    return 'partial' if order.refunded_amount > 0 else 'none'


def create_refund_request(user, order, reason, description='', refund_type='full', refund_amount=None,
                          refund_items=None, images=None):
    with transaction.atomic():
        order = OrderReview.objects.select_for_update().get(pk=order.pk)
        check_eligibility(order)

        remaining = order.remaining_refundable
        if refund_amount is None:
            if refund_type == 'partial':
                raise RefundNotAllowed('A refund amount is required for partial refunds')
            refund_amount = remaining
        if refund_amount <= 0:
            raise RefundNotAllowed('Refund amount must be greater than zero')
        if refund_amount > remaining:
            raise RefundNotAllowed(f'Refund amount cannot exceed {remaining}')

        refund = RefundRequest.objects.create(
            order_review=order,
            order_number=order.order_number,
            user=user,
            refund_type=refund_type,
            refund_amount=refund_amount,
            original_amount=order.total,
            currency=settings.STOREFRONT['CURRENCY'],
            reason=reason,
            description=description or '',
            customer_email=user.email or '',
            customer_name=user.full_name,
            images=images or [],
            refund_items=refund_items or [],
        )
        order.refund_status = 'requested'
        order.save(update_fields=['refund_status', 'updated_at'])

    logger.info(f"Refund {refund.id} requested for order {order.order_number}: {refund_amount}")
    return refund


def _lock(refund):
    return RefundRequest.objects.select_for_update().get(pk=refund.pk)


def cancel_refund(refund):
    with transaction.atomic():
        refund = _lock(refund)
        if not refund.can_be_cancelled():
            raise InvalidTransition(f'Refund cannot be cancelled while {refund.status}')
        refund.status = 'cancelled'
        refund.cancelled_at = timezone.now()
        refund.save()
        order = OrderReview.objects.select_for_update().get(pk=refund.order_review_id)
        order.refund_status = settled_refund_status(order)
        order.save(update_fields=['refund_status', 'updated_at'])
    logger.info(f"Refund {refund.id} cancelled by customer")
    return refund


def start_review(refund, admin, admin_notes=None):
    with transaction.atomic():
        refund = _lock(refund)
        if refund.status not in ('pending', 'under_review'):
            raise InvalidTransition(f'Refund cannot be reviewed while {refund.status}')
        refund.status = 'under_review'
        refund.reviewed_by = admin
        refund.reviewed_at = timezone.now()
        if admin_notes is not None:
            refund.admin_notes = admin_notes
        refund.save()
    logger.info(f"Refund {refund.id} under review by {admin.username}")
    return refund


def _refund_quantity(item):
    try:
        return int(item.get('quantity') or 0)
    except (TypeError, ValueError):
        return 0


def restore_refund_inventory(refund, order=None):
    """
    Put refunded stock items back, skipping made-to-order and damaged goods.

    Only units the order actually took off the shelf can come back, and each
    deducted unit comes back at most once across all of the order's refunds.
    """
    if refund.inventory_restored:
        return 0
    if refund.reason in NO_RESTOCK_REASONS:
        logger.info(f"Not restoring inventory for refund {refund.id}: reason {refund.reason}")
        return 0

    with transaction.atomic():
        if order is None:
            order = OrderReview.objects.select_for_update().get(pk=refund.order_review_id)
        deductions = [dict(entry) for entry in order.stock_deductions or [] if isinstance(entry, dict)]

        restored = 0
        for item in refund.refund_items or []:
            if not isinstance(item, dict):
                continue
            product_id = str(item.get('product_id', '')).strip()
            quantity = _refund_quantity(item)
            if not product_id.isdigit() or quantity <= 0:
                continue
            customization = item.get('customization')
            if isinstance(customization, dict) and (customization.get('designs') or customization.get('embroideryData')):
                logger.info(f"Skipping restock of embroidered product {product_id} for refund {refund.id}")
                continue

            variant_id = item.get('variant_id')
            for entry in deductions:
                if quantity <= 0:
                    break
                if str(entry.get('product_id')) != product_id:
                    continue
                if variant_id and str(entry.get('variant_id')) != str(variant_id):
                    continue
                take = min(quantity, int(entry.get('quantity', 0)) - int(entry.get('restored', 0)))
                if take <= 0:
                    continue
                if restore_stock(int(product_id), take, entry.get('variant_id')):
                    entry['restored'] = int(entry.get('restored', 0)) + take
                    restored += take
                    quantity -= take
            if quantity > 0:
                logger.info(f"Refund {refund.id}: {quantity} units of product {product_id} were never deducted, not restocked")

        order.stock_deductions = deductions
        order.save(update_fields=['stock_deductions', 'updated_at'])
        refund.inventory_restored = True
        refund.inventory_restored_at = timezone.now()
        refund.save(update_fields=['inventory_restored', 'inventory_restored_at', 'updated_at'])
    return restored


def approve_refund(refund, admin, admin_notes=None, refund_method=None):
    """Approve and complete a refund"""
    with transaction.atomic():
        refund = _lock(refund)
        if not refund.can_be_approved():
            raise InvalidTransition(f'Refund cannot be approved while {refund.status}')
        order = OrderReview.objects.select_for_update().get(pk=refund.order_review_id)
        if refund.refund_amount > order.remaining_refundable:
            raise RefundNotAllowed(f'Refund amount exceeds the remaining refundable {order.remaining_refundable}')

        now = timezone.now()
        refund.status = 'completed'
        refund.reviewed_by = admin
        refund.reviewed_at = refund.reviewed_at or now
        refund.approved_at = now
        refund.completed_at = now
        if admin_notes is not None:
            refund.admin_notes = admin_notes
        if refund_method:
            refund.refund_method = refund_method
        refund.save()

        order.refunded_amount = order.refunded_amount + refund.refund_amount
        if order.refunded_amount >= order.total:
            order.refund_status = 'full'
            order.status = 'refunded'
        else:
            order.refund_status = 'partial'
        order.save(update_fields=['refunded_amount', 'refund_status', 'status', 'updated_at'])

        restored = restore_refund_inventory(refund, order)

    logger.info(
        f"Refund {refund.id} completed by {admin.username}: {refund.refund_amount} on order "
        f"{order.order_number} ({order.refund_status}), {restored} units restocked"
    )
    return refund


def reject_refund(refund, admin, rejection_reason, admin_notes=None):
    with transaction.atomic():
        refund = _lock(refund)
        if refund.status not in ('pending', 'under_review', 'failed'):
            raise InvalidTransition(f'Refund cannot be rejected while {refund.status}')
        now = timezone.now()
        refund.status = 'rejected'
        refund.rejection_reason = rejection_reason
        refund.reviewed_by = admin
        refund.reviewed_at = refund.reviewed_at or now
        refund.rejected_at = now
        if admin_notes is not None:
            refund.admin_notes = admin_notes
        refund.save()
        order = OrderReview.objects.select_for_update().get(pk=refund.order_review_id)
        order.refund_status = settled_refund_status(order)
        order.save(update_fields=['refund_status', 'updated_at'])
    logger.info(f"Refund {refund.id} rejected by {admin.username}")
    return refund


def refund_stats():
    counts = {row['status']: row['count'] for row in RefundRequest.objects.values('status').annotate(count=Count('id'))}
    requested = RefundRequest.objects.aggregate(total=Sum('refund_amount'))['total'] or Decimal('0.00')
    completed = RefundRequest.objects.filter(status='completed').aggregate(total=Sum('refund_amount'))['total'] or Decimal('0.00')
    return {
        'total': sum(counts.values()),
        'by_status': {value: counts.get(value, 0) for value, _ in RefundRequest.STATUS_CHOICES},
        'total_requested_amount': str(requested),
        'total_refunded_amount': str(completed),
    }
