from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class CartItem(models.Model):
    """One line of a customer's persistent cart"""
    REVIEW_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('needs-changes', 'Needs Changes'),
        ('submitted', 'Submitted'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart_items')
    # Numeric product id or the custom embroidery id, as the client sent it
    product_key = models.CharField(max_length=100, db_index=True)
    product = models.ForeignKey('catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='cart_items')
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(settings.STOREFRONT['CART_MAX_QUANTITY'])]
    )
    customization = models.JSONField(null=True, blank=True)
    review_status = models.CharField(max_length=20, choices=REVIEW_STATUS_CHOICES, default='pending')
    order_review = models.ForeignKey('orders.OrderReview', on_delete=models.SET_NULL, null=True, blank=True, related_name='cart_items')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product_key} x {self.quantity}"

    @property
    def is_submitted(self):
        """Lines handed to an order review stay closed whatever the review decides"""
        return self.review_status == 'submitted' or self.order_review_id is not None
