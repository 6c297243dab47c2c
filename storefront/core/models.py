from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Storefront account - customers, admins and sellers share one table"""
    ROLE_CHOICES = [
        ('customer', 'Customer'),
        ('admin', 'Admin'),
        ('seller', 'Seller'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='customer', db_index=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin_role(self):
        return self.role == 'admin' or self.is_superuser

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.username

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical storefront operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('cart_add', 'Add to Cart'),
        ('cart_update', 'Cart Update'),
        ('cart_remove', 'Remove from Cart'),
        ('cart_clear', 'Cart Cleared'),
        ('cart_sync', 'Cart Synced'),
        ('order_submit', 'Order Submitted for Review'),
        ('order_review', 'Order Review Status Changed'),
        ('picture_reply', 'Picture Reply Uploaded'),
        ('picture_confirm', 'Picture Reply Confirmed'),
        ('stock_adjust', 'Stock Adjustment'),
        ('refund_request', 'Refund Requested'),
        ('refund_cancel', 'Refund Cancelled'),
        ('refund_review', 'Refund Under Review'),
        ('refund_approve', 'Refund Approved'),
        ('refund_reject', 'Refund Rejected'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_created_idx'),
            models.Index(fields=['action'], name='audit_action_idx'),
            models.Index(fields=['model_name'], name='audit_model_idx'),
            models.Index(fields=['object_reference'], name='audit_reference_idx'),
        ]
