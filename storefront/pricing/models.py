from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class MaterialCost(models.Model):
    """Raw material price row used by the patch material cost formulas"""
    name = models.CharField(max_length=100, unique=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    width = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'),
                                validators=[MinValueValidator(Decimal('0'))], help_text="Width in inches")
    length = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'),
                                 validators=[MinValueValidator(Decimal('0'))], help_text="Length in inches, stitches for bobbin/thread")
    waste_factor = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal('1.00'),
                                       validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('10'))])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'material_costs'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.cost})"
