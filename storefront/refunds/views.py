import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from storefront.core.permissions import IsAdminRole, IsCustomer
from storefront.core.utils import create_audit_log
from storefront.orders.models import OrderReview
from .models import RefundRequest
from .serializers import (
    RefundRequestSerializer, RefundCreateSerializer, RefundReviewSerializer, RefundApproveSerializer,
    RefundRejectSerializer,
)
from .services import (
    approve_refund, cancel_refund, create_refund_request, refund_stats, reject_refund, start_review,
)

logger = logging.getLogger(__name__)


def refund_audit(request, refund, action, changes=None):
    create_audit_log(
        request=request,
        action=action,
        model_name='RefundRequest',
        object_id=refund.id,
        object_reference=refund.order_number,
        changes=changes or {'status': refund.status},
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomer])
def refund_request_create(request):
    """Request a refund for one of the caller's orders"""
    serializer = RefundCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    order = get_object_or_404(OrderReview, pk=data['order_id'], user=request.user)
    refund = create_refund_request(
        request.user,
        order,
        reason=data['reason'],
        description=data.get('description', ''),
        refund_type=data['refund_type'],
        refund_amount=data.get('refund_amount'),
        refund_items=data.get('refund_items'),
        images=data.get('images'),
    )
    refund_audit(request, refund, 'refund_request', {'amount': str(refund.refund_amount), 'reason': refund.reason})
    return Response(RefundRequestSerializer(refund).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_refunds(request):
    refunds = RefundRequest.objects.filter(user=request.user)
    return Response(RefundRequestSerializer(refunds, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def refund_detail(request, pk):
    """A refund visible to its owner or an admin"""
    refund = get_object_or_404(RefundRequest, pk=pk)
    if refund.user_id != request.user.id and not request.user.is_admin_role:
        return Response({'error': 'Refund request not found', 'code': 'NOT_FOUND'}, status=status.HTTP_404_NOT_FOUND)
    return Response(RefundRequestSerializer(refund).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def refund_cancel(request, pk):
    refund = get_object_or_404(RefundRequest, pk=pk, user=request.user)
    refund = cancel_refund(refund)
    refund_audit(request, refund, 'refund_cancel')
    return Response(RefundRequestSerializer(refund).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_refund_list(request):
    """All refunds, filterable by status, reason and a free text search"""
    refunds = RefundRequest.objects.select_related('user', 'order_review')
    refund_status = request.query_params.get('status')
    if refund_status:
        refunds = refunds.filter(status=refund_status)
    reason = request.query_params.get('reason')
    if reason:
        refunds = refunds.filter(reason=reason)
    search = request.query_params.get('search')
    if search:
        refunds = refunds.filter(
            Q(order_number__icontains=search) |
            Q(customer_email__icontains=search) |
            Q(customer_name__icontains=search)
        )
    return Response(RefundRequestSerializer(refunds, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_refund_stats(request):
    return Response(refund_stats())


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def refund_review(request, pk):
    refund = get_object_or_404(RefundRequest, pk=pk)
    serializer = RefundReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    refund = start_review(refund, request.user, serializer.validated_data.get('admin_notes'))
    refund_audit(request, refund, 'refund_review')
    return Response(RefundRequestSerializer(refund).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def refund_approve(request, pk):
    """Approve a refund and record it as completed"""
    refund = get_object_or_404(RefundRequest, pk=pk)
    serializer = RefundApproveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    refund = approve_refund(
        refund,
        request.user,
        admin_notes=serializer.validated_data.get('admin_notes'),
        refund_method=serializer.validated_data.get('refund_method'),
    )
    refund_audit(request, refund, 'refund_approve', {'amount': str(refund.refund_amount), 'status': refund.status})
    return Response(RefundRequestSerializer(refund).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def refund_reject(request, pk):
    refund = get_object_or_404(RefundRequest, pk=pk)
    serializer = RefundRejectSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    refund = reject_refund(
        refund,
        request.user,
        serializer.validated_data['rejection_reason'],
        serializer.validated_data.get('admin_notes'),
    )
    refund_audit(request, refund, 'refund_reject', {'rejection_reason': refund.rejection_reason})
    return Response(RefundRequestSerializer(refund).data)
