from decimal import Decimal

from rest_framework import serializers

from .models import MaterialCost


class MaterialCostSerializer(serializers.ModelSerializer):
    class Meta:
        model = MaterialCost
        fields = ['id', 'name', 'cost', 'width', 'length', 'waste_factor', 'is_active', 'created_at', 'updated_at']


class QuoteRequestSerializer(serializers.Serializer):
    width = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0.01'))
    height = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0.01'))
    unit = serializers.ChoiceField(choices=['inches', 'cm'], default='inches')
    stitch_count = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    selected_styles = serializers.DictField(required=False, default=dict)
