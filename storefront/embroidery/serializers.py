from decimal import Decimal

from rest_framework import serializers

from .models import EmbroideryOption, CustomEmbroideryOrder


class EmbroideryOptionSerializer(serializers.ModelSerializer):
    incompatible_with = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)

    class Meta:
        model = EmbroideryOption
        fields = ['id', 'name', 'description', 'price', 'image', 'stitches', 'estimated_time', 'category',
                  'level', 'is_popular', 'is_active', 'incompatible_with', 'created_at', 'updated_at']


class CustomEmbroideryOrderSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = CustomEmbroideryOrder
        fields = ['id', 'user', 'username', 'design_name', 'design_file', 'design_preview', 'dimensions',
                  'selected_styles', 'material_costs', 'options_price', 'total_price', 'status', 'notes',
                  'estimated_delivery', 'created_at', 'updated_at']
        read_only_fields = fields


class DimensionsSerializer(serializers.Serializer):
    width = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0.01'))
    height = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0.01'))


class CustomEmbroideryCreateSerializer(serializers.Serializer):
    design_name = serializers.CharField(max_length=255)
    design_file = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    design_preview = serializers.CharField(required=False, allow_blank=True, default='')
    dimensions = DimensionsSerializer()
    selected_styles = serializers.DictField(required=False, default=dict)
    stitch_count = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CustomEmbroideryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CustomEmbroideryOrder.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True)
    estimated_delivery = serializers.DateField(required=False, allow_null=True)
