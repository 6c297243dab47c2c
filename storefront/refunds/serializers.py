from decimal import Decimal

from rest_framework import serializers

from .models import RefundRequest


class RefundRequestSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    reason_display = serializers.CharField(source='get_reason_display', read_only=True)
    can_be_cancelled = serializers.BooleanField(read_only=True)
    can_be_approved = serializers.BooleanField(read_only=True)

    class Meta:
        model = RefundRequest
        fields = ['id', 'order_review', 'order_number', 'user', 'refund_type', 'refund_amount', 'original_amount',
                  'currency', 'reason', 'reason_display', 'description', 'customer_email', 'customer_name',
                  'images', 'status', 'status_display', 'admin_notes', 'rejection_reason', 'refund_method',
                  'refund_items', 'inventory_restored', 'reviewed_by', 'requested_at', 'reviewed_at',
                  'approved_at', 'rejected_at', 'completed_at', 'cancelled_at', 'inventory_restored_at',
                  'can_be_cancelled', 'can_be_approved']
        read_only_fields = fields


class RefundCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    reason = serializers.ChoiceField(choices=RefundRequest.REASON_CHOICES)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    refund_type = serializers.ChoiceField(choices=RefundRequest.REFUND_TYPE_CHOICES, default='full')
    refund_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True,
                                             min_value=Decimal('0.01'))
    refund_items = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    images = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class RefundReviewSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class RefundApproveSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(required=False, allow_blank=True)
    refund_method = serializers.ChoiceField(choices=RefundRequest.REFUND_METHOD_CHOICES, required=False)


class RefundRejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField()
    admin_notes = serializers.CharField(required=False, allow_blank=True)
