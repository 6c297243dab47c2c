import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_order_number():
    """ORD-YYYYMMDD-XXXXXXXX"""
    return f"ORD-{timezone.now().strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"


class OrderReview(models.Model):
    """A submitted cart waiting on, or past, the admin approval step"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('needs-changes', 'Needs Changes'),
        ('pending-payment', 'Pending Payment'),
        ('approved-processing', 'Approved Processing'),
        ('picture-reply-pending', 'Picture Reply Pending'),
        ('picture-reply-rejected', 'Picture Reply Rejected'),
        ('picture-reply-approved', 'Picture Reply Approved'),
        ('ready-for-production', 'Ready for Production'),
        ('in-production', 'In Production'),
        ('ready-for-checkout', 'Ready for Checkout'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('refunded', 'Refunded'),
    ]

    # Statuses an admin may set through the review endpoint
    ADMIN_DECISION_STATUSES = ['pending', 'approved', 'rejected', 'needs-changes', 'pending-payment', 'approved-processing']
    FULFILMENT_STATUSES = ['ready-for-production', 'in-production', 'ready-for-checkout', 'shipped', 'delivered']

    REFUND_STATUS_CHOICES = [
        ('none', 'None'),
        ('requested', 'Requested'),
        ('partial', 'Partially Refunded'),
        ('full', 'Fully Refunded'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='order_reviews')
    order_number = models.CharField(max_length=50, unique=True, default=generate_order_number)
    order_data = models.JSONField(default=list, blank=True, help_text="Snapshot of submitted cart lines")
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending', db_index=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    admin_notes = models.TextField(blank=True)
    admin_picture_replies = models.JSONField(default=list, blank=True)
    customer_confirmations = models.JSONField(default=list, blank=True)
    picture_reply_uploaded_at = models.DateTimeField(null=True, blank=True)
    customer_confirmed_at = models.DateTimeField(null=True, blank=True)
    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    shipping_method = models.JSONField(default=dict, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    tracking_url = models.CharField(max_length=500, blank=True)
    shipping_carrier = models.CharField(max_length=100, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    customer_notes = models.TextField(blank=True)
    refund_status = models.CharField(max_length=20, choices=REFUND_STATUS_CHOICES, default='none')
    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    # Units taken off the shelf when fulfilment started, with how many came back through refunds
    stock_deductions = models.JSONField(default=list, blank=True)
    stock_deducted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'order_reviews'
        ordering = ['-submitted_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='order_review_user_status_idx'),
        ]

    def __str__(self):
        return self.order_number

    @property
    def remaining_refundable(self):
        return max(self.total - self.refunded_amount, Decimal('0.00'))
