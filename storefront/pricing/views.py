import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from storefront.core.permissions import IsAdminRole, IsAdminOrReadOnly
from storefront.core.utils import create_audit_log
from .calculators import (
    CM_PER_INCH, calculate_base_price, calculate_material_costs, calculate_tiered_price, money, style_addons_total,
)
from .models import MaterialCost
from .serializers import MaterialCostSerializer, QuoteRequestSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def material_cost_list_create(request):
    """List material costs or create a new one"""
    if request.method == 'GET':
        materials = MaterialCost.objects.all()
        if not request.user.is_authenticated or not request.user.is_admin_role:
            materials = materials.filter(is_active=True)
        return Response(MaterialCostSerializer(materials, many=True).data)
    else:
        serializer = MaterialCostSerializer(data=request.data)
        if serializer.is_valid():
            material = serializer.save()
            create_audit_log(
                request=request,
                action='create',
                model_name='MaterialCost',
                object_id=material.id,
                object_reference=material.name,
                changes={'cost': str(material.cost)},
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def material_cost_detail(request, pk):
    """Retrieve, update or delete a material cost"""
    material = get_object_or_404(MaterialCost, pk=pk)

    if request.method == 'GET':
        return Response(MaterialCostSerializer(material).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = MaterialCostSerializer(material, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='MaterialCost',
                object_id=material.id,
                object_reference=material.name,
                changes={k: str(v) for k, v in serializer.validated_data.items()},
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        material_id = material.id
        name = material.name
        material.delete()
        create_audit_log(request=request, action='delete', model_name='MaterialCost',
                         object_id=material_id, object_reference=name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def material_cost_toggle_status(request, pk):
    material = get_object_or_404(MaterialCost, pk=pk)
    material.is_active = not material.is_active
    material.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Material cost {material.name} active={material.is_active}")
    return Response(MaterialCostSerializer(material).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def pricing_quote(request):
    """Price a patch from its size and selected styles"""
    serializer = QuoteRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    width, height, unit = data['width'], data['height'], data['unit']
    # material formulas work in inches
    patch_width, patch_height = width, height
    if unit == 'cm':
        patch_width = width / CM_PER_INCH
        patch_height = height / CM_PER_INCH

    materials = calculate_material_costs(patch_width, patch_height, data.get('stitch_count'))
    options_price = style_addons_total(data.get('selected_styles'))
    tiered = calculate_tiered_price(width, height, unit)

    return Response({
        'material_costs': materials,
        'options_price': options_price,
        'total_price': money(materials['total'] + options_price),
        'base_price': calculate_base_price(width, height, unit),
        'tiered_price': tiered,
    })
