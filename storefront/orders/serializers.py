from decimal import Decimal

from rest_framework import serializers

from .models import OrderReview


class OrderReviewSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    customer_email = serializers.CharField(source='user.email', read_only=True)

    class Meta:
        model = OrderReview
        fields = ['id', 'order_number', 'user', 'username', 'customer_email', 'order_data', 'subtotal',
                  'shipping', 'tax', 'total', 'status', 'submitted_at', 'reviewed_at', 'admin_notes',
                  'admin_picture_replies', 'customer_confirmations', 'picture_reply_uploaded_at',
                  'customer_confirmed_at', 'shipping_address', 'billing_address', 'shipping_method',
                  'tracking_number', 'tracking_url', 'shipping_carrier', 'shipped_at', 'delivered_at',
                  'customer_notes', 'refund_status', 'refunded_amount', 'created_at', 'updated_at']
        read_only_fields = fields


class OrderReviewListSerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = OrderReview
        fields = ['id', 'order_number', 'status', 'subtotal', 'shipping', 'tax', 'total', 'item_count',
                  'submitted_at', 'reviewed_at', 'refund_status', 'tracking_number']

    def get_item_count(self, obj):
        return sum(int(line.get('quantity', 0)) for line in obj.order_data or [] if isinstance(line, dict))


class OrderTrackingSerializer(serializers.ModelSerializer):
    """Customer facing status and timeline"""
    timeline = serializers.SerializerMethodField()

    class Meta:
        model = OrderReview
        fields = ['id', 'order_number', 'status', 'order_data', 'subtotal', 'shipping', 'tax', 'total',
                  'admin_notes', 'admin_picture_replies', 'customer_confirmations', 'shipping_address',
                  'shipping_method', 'tracking_number', 'tracking_url', 'shipping_carrier',
                  'refund_status', 'refunded_amount', 'timeline']

    def get_timeline(self, obj):
        return {
            'submitted_at': obj.submitted_at,
            'reviewed_at': obj.reviewed_at,
            'picture_reply_uploaded_at': obj.picture_reply_uploaded_at,
            'customer_confirmed_at': obj.customer_confirmed_at,
            'shipped_at': obj.shipped_at,
            'delivered_at': obj.delivered_at,
        }


class SubmitForReviewSerializer(serializers.Serializer):
    item_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)
    shipping_address = serializers.DictField(required=False)
    billing_address = serializers.DictField(required=False)
    shipping_method = serializers.DictField(required=False, allow_null=True)
    customer_notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_shipping_method(self, value):
        if not value or value.get('totalCost') is None:
            return value
        field = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
        try:
            cost = field.run_validation(value['totalCost'])
        except serializers.ValidationError as exc:
            raise serializers.ValidationError({'totalCost': exc.detail})
        return {**value, 'totalCost': str(cost)}


class ReviewStatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=30)
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class PictureReplySerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    image = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class PictureConfirmationSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    confirmed = serializers.BooleanField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class ShippingInfoSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=100)
    tracking_url = serializers.CharField(max_length=500, required=False, allow_blank=True)
    shipping_carrier = serializers.CharField(max_length=100, required=False, allow_blank=True)
