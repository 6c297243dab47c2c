from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class EmbroideryOption(models.Model):
    """A selectable style option in the embroidery configurator"""
    CATEGORY_CHOICES = [
        ('coverage', 'Coverage'),
        ('threads', 'Threads'),
        ('material', 'Material'),
        ('border', 'Border'),
        ('backing', 'Backing'),
        ('upgrades', 'Upgrades'),
        ('cutting', 'Cutting'),
    ]

    LEVEL_CHOICES = [
        ('basic', 'Basic'),
        ('standard', 'Standard'),
        ('premium', 'Premium'),
        ('luxury', 'Luxury'),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                validators=[MinValueValidator(Decimal('0.00'))])
    image = models.CharField(max_length=500, blank=True)
    stitches = models.PositiveIntegerField(default=0)
    estimated_time = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, db_index=True)
    level = models.CharField(max_length=20, choices=LEVEL_CHOICES, default='basic')
    is_popular = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    incompatible_with = models.JSONField(default=list, blank=True, help_text="Ids of options that cannot be combined with this one")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'embroidery_options'
        ordering = ['category', 'price', 'name']

    def __str__(self):
        return f"{self.name} ({self.category})"


class CustomEmbroideryOrder(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('in_production', 'In Production'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='custom_embroidery_orders')
    design_name = models.CharField(max_length=255)
    design_file = models.CharField(max_length=500, blank=True)
    design_preview = models.TextField(blank=True)
    dimensions = models.JSONField(default=dict)
    selected_styles = models.JSONField(default=dict, blank=True)
    material_costs = models.JSONField(default=dict, blank=True)
    options_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    notes = models.TextField(blank=True)
    estimated_delivery = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'custom_embroidery_orders'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.design_name} ({self.status})"
