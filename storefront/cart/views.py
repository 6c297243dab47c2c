import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from storefront.core.permissions import IsCustomer
from storefront.core.utils import create_audit_log
from .models import CartItem
from .serializers import CartItemSerializer, CartAddSerializer, CartUpdateSerializer
from .services import add_item, cart_lines, cart_totals, clear_cart, sync_cart, update_item

logger = logging.getLogger(__name__)


def cart_response(user, status_code=status.HTTP_200_OK):
    items = list(cart_lines(user))
    totals = cart_totals(items)
    return Response({
        'items': CartItemSerializer(items, many=True).data,
        'totals': {key: str(value) for key, value in totals.items()},
    }, status=status_code)


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated, IsCustomer])
def cart(request):
    """Get, add to, or clear the current customer's cart"""
    if request.method == 'GET':
        return cart_response(request.user)

    if request.method == 'DELETE':
        deleted_count = clear_cart(request.user)
        create_audit_log(
            request=request,
            action='cart_clear',
            model_name='CartItem',
            object_id=request.user.id,
            changes={'deleted_count': deleted_count},
        )
        return Response({'deleted_count': deleted_count})

    serializer = CartAddSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    item, created = add_item(request.user, data['product_id'], data['quantity'], data.get('customization'))
    create_audit_log(
        request=request,
        action='cart_add',
        model_name='CartItem',
        object_id=item.id,
        object_reference=item.product_key,
        changes={'quantity': item.quantity, 'merged': not created},
    )
    return Response(
        CartItemSerializer(item).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsCustomer])
def cart_item_detail(request, item_id):
    """Update or remove one cart line"""
    item = get_object_or_404(CartItem, pk=item_id, user=request.user)

    if request.method == 'DELETE':
        product_key = item.product_key
        item.delete()
        create_audit_log(
            request=request,
            action='cart_remove',
            model_name='CartItem',
            object_id=item_id,
            object_reference=product_key,
        )
        logger.info(f"Cart line {item_id} removed for user {request.user.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    if item.is_submitted:
        return Response(
            {'error': 'This item has been submitted for review and can no longer be changed', 'code': 'INVALID_STATUS'},
            status=status.HTTP_400_BAD_REQUEST
        )

    serializer = CartUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    old_quantity = item.quantity
    item = update_item(
        item,
        data['quantity'],
        customization=data.get('customization'),
        replace_customization='customization' in data,
    )
    create_audit_log(
        request=request,
        action='cart_update',
        model_name='CartItem',
        object_id=item.id,
        object_reference=item.product_key,
        changes={'quantity': {'old': old_quantity, 'new': item.quantity}},
    )
    return Response(CartItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomer])
def cart_sync(request):
    """Replace the cart with the client's local copy"""
    entries = request.data.get('items')
    if not isinstance(entries, list):
        return Response(
            {'error': 'Items array is required', 'code': 'INVALID_ITEMS'},
            status=status.HTTP_400_BAD_REQUEST
        )

    items, skipped = sync_cart(request.user, entries)
    if entries:
        create_audit_log(
            request=request,
            action='cart_sync',
            model_name='CartItem',
            object_id=request.user.id,
            changes={'synced': len(items), 'skipped': skipped},
        )
    return Response({
        'items': CartItemSerializer(items, many=True).data,
        'skipped': skipped,
    })
