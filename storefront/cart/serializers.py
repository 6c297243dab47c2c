from django.conf import settings
from rest_framework import serializers

from .models import CartItem
from .services import line_total, unit_price


class CartProductSerializer(serializers.Serializer):
    """Product summary embedded in cart lines"""
    id = serializers.IntegerField()
    title = serializers.CharField()
    slug = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    image = serializers.CharField()
    alt = serializers.CharField()
    status = serializers.CharField()
    stock = serializers.IntegerField()


class CartItemSerializer(serializers.ModelSerializer):
    product_id = serializers.CharField(source='product_key', read_only=True)
    product = CartProductSerializer(read_only=True)
    unit_price = serializers.SerializerMethodField()
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ['id', 'product_id', 'product', 'quantity', 'customization', 'review_status', 'order_review',
                  'unit_price', 'line_total', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_unit_price(self, obj):
        return str(unit_price(obj))

    def get_line_total(self, obj):
        return str(line_total(obj))


def validate_customization(value):
    if value is not None and not isinstance(value, dict):
        raise serializers.ValidationError('Customization must be an object.')
    return value


class CartAddSerializer(serializers.Serializer):
    product_id = serializers.CharField(max_length=100)
    quantity = serializers.IntegerField(default=1, min_value=1)
    customization = serializers.JSONField(required=False, allow_null=True, default=None,
                                          validators=[validate_customization])

    def validate_quantity(self, value):
        maximum = settings.STOREFRONT['CART_MAX_QUANTITY']
        if value > maximum:
            raise serializers.ValidationError(f'Quantity cannot exceed {maximum}.')
        return value


class CartUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    customization = serializers.JSONField(required=False, allow_null=True, validators=[validate_customization])

    def validate_quantity(self, value):
        maximum = settings.STOREFRONT['CART_MAX_QUANTITY']
        if value > maximum:
            raise serializers.ValidationError(f'Quantity cannot exceed {maximum}.')
        return value
