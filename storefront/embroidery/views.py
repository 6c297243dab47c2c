import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from storefront.core.permissions import IsAdminRole, IsAdminOrReadOnly
from storefront.core.utils import create_audit_log
from .models import EmbroideryOption, CustomEmbroideryOrder
from .serializers import (
    EmbroideryOptionSerializer, CustomEmbroideryOrderSerializer, CustomEmbroideryCreateSerializer,
    CustomEmbroideryStatusSerializer,
)
from .services import quote_design

logger = logging.getLogger(__name__)


def parse_bool(value):
    return str(value).lower() in ('1', 'true', 'yes')


# Embroidery option views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def embroidery_option_list_create(request):
    """List embroidery options or create a new one"""
    if request.method == 'GET':
        options = EmbroideryOption.objects.all()
        category = request.query_params.get('category')
        if category:
            options = options.filter(category=category)
        level = request.query_params.get('level')
        if level:
            options = options.filter(level=level)
        is_admin = request.user.is_authenticated and request.user.is_admin_role
        is_active = request.query_params.get('is_active')
        if is_active is not None and is_admin:
            options = options.filter(is_active=parse_bool(is_active))
        elif not is_admin:
            options = options.filter(is_active=True)
        return Response(EmbroideryOptionSerializer(options, many=True).data)
    else:
        serializer = EmbroideryOptionSerializer(data=request.data)
        if serializer.is_valid():
            option = serializer.save()
            create_audit_log(request=request, action='create', model_name='EmbroideryOption',
                             object_id=option.id, object_reference=option.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def embroidery_option_detail(request, pk):
    """Retrieve, update or delete an embroidery option"""
    option = get_object_or_404(EmbroideryOption, pk=pk)

    if request.method == 'GET':
        return Response(EmbroideryOptionSerializer(option).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = EmbroideryOptionSerializer(option, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        option.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def embroidery_option_toggle(request, pk):
    option = get_object_or_404(EmbroideryOption, pk=pk)
    option.is_active = not option.is_active
    option.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Embroidery option {option.id} active={option.is_active}")
    return Response(EmbroideryOptionSerializer(option).data)


# Custom embroidery order views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def custom_embroidery_list_create(request):
    """Admins list every custom order, any signed in user can place one"""
    if request.method == 'GET':
        if not request.user.is_admin_role:
            return Response({'detail': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)
        orders = CustomEmbroideryOrder.objects.select_related('user')
        order_status = request.query_params.get('status')
        if order_status:
            orders = orders.filter(status=order_status)
        return Response(CustomEmbroideryOrderSerializer(orders, many=True).data)

    serializer = CustomEmbroideryCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    dimensions = data['dimensions']

    # client totals are ignored, the design is priced from the catalog
    quote = quote_design(dimensions['width'], dimensions['height'], data['selected_styles'], data.get('stitch_count'))
    order = CustomEmbroideryOrder.objects.create(
        user=request.user,
        design_name=data['design_name'],
        design_file=data['design_file'],
        design_preview=data['design_preview'],
        dimensions={'width': str(dimensions['width']), 'height': str(dimensions['height'])},
        selected_styles=quote['selected_styles'],
        material_costs=quote['material_costs'],
        options_price=quote['options_price'],
        total_price=quote['total_price'],
        notes=data['notes'],
    )
    create_audit_log(
        request=request,
        action='create',
        model_name='CustomEmbroideryOrder',
        object_id=order.id,
        object_reference=order.design_name,
        changes={'total_price': str(order.total_price)},
    )
    logger.info(f"Custom embroidery order {order.id} placed by user {request.user.id}: {order.total_price}")
    return Response(CustomEmbroideryOrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_custom_embroidery_orders(request):
    orders = CustomEmbroideryOrder.objects.filter(user=request.user)
    return Response(CustomEmbroideryOrderSerializer(orders, many=True).data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def custom_embroidery_detail(request, pk):
    """Owner or admin view; owners may delete while the order is pending"""
    order = get_object_or_404(CustomEmbroideryOrder, pk=pk)
    is_admin = request.user.is_admin_role
    if order.user_id != request.user.id and not is_admin:
        return Response({'error': 'Custom embroidery order not found', 'code': 'NOT_FOUND'},
                        status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(CustomEmbroideryOrderSerializer(order).data)

    if not is_admin and order.status != 'pending':
        return Response({'error': 'Only pending orders can be deleted', 'code': 'INVALID_STATUS'},
                        status=status.HTTP_400_BAD_REQUEST)
    order_id = order.id
    order.delete()
    create_audit_log(request=request, action='delete', model_name='CustomEmbroideryOrder', object_id=order_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def custom_embroidery_status(request, pk):
    order = get_object_or_404(CustomEmbroideryOrder, pk=pk)
    serializer = CustomEmbroideryStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    for field, value in serializer.validated_data.items():
        setattr(order, field, value)
    order.save()
    create_audit_log(
        request=request,
        action='update',
        model_name='CustomEmbroideryOrder',
        object_id=order.id,
        object_reference=order.design_name,
        changes={'status': {'old': old_status, 'new': order.status}},
    )
    return Response(CustomEmbroideryOrderSerializer(order).data)
