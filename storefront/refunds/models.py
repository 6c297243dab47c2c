from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class RefundRequest(models.Model):
    REFUND_TYPE_CHOICES = [
        ('full', 'Full'),
        ('partial', 'Partial'),
    ]

    REASON_CHOICES = [
        ('damaged_defective', 'Damaged or Defective'),
        ('wrong_item', 'Wrong Item Received'),
        ('not_as_described', 'Not as Described'),
        ('changed_mind', 'Changed Mind'),
        ('duplicate_order', 'Duplicate Order'),
        ('shipping_delay', 'Shipping Delay'),
        ('quality_issues', 'Quality Issues'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending Review'),
        ('under_review', 'Under Review'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('processing', 'Processing'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('cancelled', 'Cancelled'),
    ]

    REFUND_METHOD_CHOICES = [
        ('original_payment', 'Original Payment Method'),
        ('store_credit', 'Store Credit'),
        ('manual', 'Manual'),
    ]

    # Refunds in these states block a new request for the same order
    OPEN_STATUSES = ['pending', 'under_review', 'approved', 'processing']
    APPROVABLE_STATUSES = ['pending', 'under_review', 'failed']
    CANCELLABLE_STATUSES = ['pending', 'under_review']

    order_review = models.ForeignKey('orders.OrderReview', on_delete=models.CASCADE, related_name='refund_requests')
    order_number = models.CharField(max_length=50, db_index=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='refund_requests')
    refund_type = models.CharField(max_length=10, choices=REFUND_TYPE_CHOICES, default='full')
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    original_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    reason = models.CharField(max_length=30, choices=REASON_CHOICES)
    description = models.TextField(blank=True)
    customer_email = models.EmailField(blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    images = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    admin_notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    refund_method = models.CharField(max_length=20, choices=REFUND_METHOD_CHOICES, default='original_payment')
    refund_items = models.JSONField(default=list, blank=True)
    inventory_restored = models.BooleanField(default=False)
    reviewed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviewed_refunds')
    requested_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    inventory_restored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'refund_requests'
        ordering = ['-requested_at']

    def __str__(self):
        return f"Refund {self.id} for {self.order_number}"

    def can_be_approved(self):
        return self.status in self.APPROVABLE_STATUSES

    def can_be_cancelled(self):
        return self.status in self.CANCELLABLE_STATUSES
