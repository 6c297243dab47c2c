import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from storefront.core.permissions import IsAdminRole, IsCustomer
from storefront.core.utils import create_audit_log
from .models import OrderReview
from .serializers import (
    OrderReviewSerializer, OrderReviewListSerializer, OrderTrackingSerializer, SubmitForReviewSerializer,
    ReviewStatusUpdateSerializer, PictureReplySerializer, PictureConfirmationSerializer, ShippingInfoSerializer,
)
from .services import add_picture_replies, confirm_pictures, set_review_status, submit_for_review

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomer])
def submit_order_for_review(request):
    """Turn the customer's open cart lines into an order review"""
    serializer = SubmitForReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    order = submit_for_review(
        request.user,
        item_ids=data.get('item_ids'),
        shipping_address=data.get('shipping_address'),
        billing_address=data.get('billing_address'),
        shipping_method=data.get('shipping_method'),
        customer_notes=data.get('customer_notes', ''),
    )
    create_audit_log(
        request=request,
        action='order_submit',
        model_name='OrderReview',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'total': str(order.total), 'lines': len(order.order_data)},
    )
    return Response(OrderReviewSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCustomer])
def my_review_orders(request):
    orders = OrderReview.objects.filter(user=request.user).order_by('-submitted_at', '-id')
    return Response(OrderReviewListSerializer(orders, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def review_order_tracking(request, pk):
    """Status, timeline and tracking for one of the caller's orders"""
    order = get_object_or_404(OrderReview, pk=pk, user=request.user)
    return Response(OrderTrackingSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_review_orders(request):
    orders = OrderReview.objects.select_related('user').order_by('-submitted_at', '-id')
    order_status = request.query_params.get('status')
    if order_status:
        orders = orders.filter(status=order_status)
    return Response(OrderReviewSerializer(orders, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_update_review_status(request, pk):
    """Record an admin decision on a submitted order"""
    order = get_object_or_404(OrderReview, pk=pk)
    serializer = ReviewStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    order, old_status = set_review_status(
        order,
        serializer.validated_data['status'],
        serializer.validated_data.get('admin_notes'),
    )
    create_audit_log(
        request=request,
        action='order_review',
        model_name='OrderReview',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'status': {'old': old_status, 'new': order.status}},
    )
    return Response(OrderReviewSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_picture_reply(request, pk):
    """Upload proof pictures for the customer to confirm"""
    order = get_object_or_404(OrderReview, pk=pk)
    serializer = PictureReplySerializer(data=request.data.get('replies'), many=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if not serializer.validated_data:
        return Response({'error': 'At least one picture reply is required', 'code': 'INVALID_REQUEST'},
                        status=status.HTTP_400_BAD_REQUEST)

    order = add_picture_replies(order, serializer.validated_data)
    create_audit_log(
        request=request,
        action='picture_reply',
        model_name='OrderReview',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'replies': len(serializer.validated_data)},
    )
    return Response(OrderReviewSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomer])
def customer_confirm_pictures(request, pk):
    """Approve or reject the proof pictures"""
    order = get_object_or_404(OrderReview, pk=pk, user=request.user)
    serializer = PictureConfirmationSerializer(data=request.data.get('confirmations'), many=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if not serializer.validated_data:
        return Response({'error': 'At least one confirmation is required', 'code': 'INVALID_REQUEST'},
                        status=status.HTTP_400_BAD_REQUEST)

    order = confirm_pictures(order, serializer.validated_data)
    create_audit_log(
        request=request,
        action='picture_confirm',
        model_name='OrderReview',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'status': order.status},
    )
    return Response(OrderTrackingSerializer(order).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_update_shipping(request, pk):
    order = get_object_or_404(OrderReview, pk=pk)
    serializer = ShippingInfoSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    for field, value in serializer.validated_data.items():
        setattr(order, field, value)
    order.save()
    logger.info(f"Tracking {order.tracking_number} set on order {order.order_number}")
    create_audit_log(
        request=request,
        action='update',
        model_name='OrderReview',
        object_id=order.id,
        object_reference=order.order_number,
        changes=dict(serializer.validated_data),
    )
    return Response(OrderReviewSerializer(order).data)
