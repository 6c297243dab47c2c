import logging

from django.conf import settings
from django.core.paginator import Paginator
from django.db.models import F
from django.http import QueryDict
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from storefront.core.cache_utils import cached_query, product_list_cache_ttl, PRODUCTS_LIST_CACHE_PREFIX
from storefront.core.exceptions import InvalidRequest
from storefront.core.permissions import IsAdminRole, IsAdminOrReadOnly, IsAdminSellerOrReadOnly
from storefront.core.utils import create_audit_log
from .filters import ProductFilter
from .models import Category, Product, ProductVariant, ProductReview
from .serializers import (
    CategorySerializer, ProductSerializer, ProductListSerializer, ProductVariantSerializer,
    ProductReviewSerializer, ReviewStatusSerializer,
)
from .services import set_stock, update_product_rating

logger = logging.getLogger(__name__)


def is_catalog_manager(user):
    return bool(user and user.is_authenticated and (user.is_admin_role or user.role == 'seller'))


def visible_products(request):
    """Managers see every product, everyone else only active ones"""
    queryset = Product.objects.select_related('category')
    if is_catalog_manager(request.user):
        return queryset
    return queryset.filter(status='active')


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def category_list_create(request):
    """List active categories or create a new category"""
    if request.method == 'GET':
        categories = Category.objects.all()
        if not request.user.is_authenticated or not request.user.is_admin_role:
            categories = categories.filter(is_active=True)
        serializer = CategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        serializer = CategorySerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        serializer = CategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@cached_query(cache_ttl=product_list_cache_ttl(), key_prefix=PRODUCTS_LIST_CACHE_PREFIX)
def product_list_page(query):
    """One page of the filtered product list, query is the sorted (param, values) pairs"""
    params = QueryDict(mutable=True)
    for key, values in query:
        params.setlist(key, values)

    filterset = ProductFilter(params, queryset=Product.objects.select_related('category'))
    if not filterset.is_valid():
        raise ValidationError(filterset.errors)
    queryset = filterset.qs.order_by('-featured', '-created_at')

    try:
        page = max(int(params.get('page', 1)), 1)
        limit = min(max(int(params.get('limit', 24)), 1), 100)
    except ValueError:
        raise InvalidRequest('page and limit must be integers')

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = ProductListSerializer(page_obj, many=True)
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminSellerOrReadOnly])
def product_list_create(request):
    """List products or create a new product"""
    if request.method == 'GET':
        params = request.query_params.copy()
        if not is_catalog_manager(request.user) or not params.get('status'):
            params['status'] = 'active'
        return Response(product_list_page(sorted(params.lists())))
    else:  # POST
        serializer = ProductSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Product',
                object_id=product.id,
                object_reference=product.slug,
                changes={'title': product.title, 'price': str(product.price)},
            )
            logger.info(f"Product {product.id} created by {request.user.username}")
            return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminSellerOrReadOnly])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    if request.method == 'GET':
        product = get_object_or_404(visible_products(request).prefetch_related('variants'), pk=pk)
        return Response(ProductSerializer(product).data)

    product = get_object_or_404(Product, pk=pk)
    if request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Product',
                object_id=product.id,
                object_reference=product.slug,
                changes={k: str(v) for k, v in serializer.validated_data.items()},
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_id = product.id
        reference = product.slug
        product.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=product_id,
            object_reference=reference,
        )
        logger.info(f"Product {product_id} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_by_slug(request, slug):
    """Retrieve a product by its slug"""
    product = get_object_or_404(visible_products(request).prefetch_related('variants'), slug=slug)
    return Response(ProductSerializer(product).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminSellerOrReadOnly])
def product_inventory(request, pk):
    """Set a product's stock level"""
    get_object_or_404(Product, pk=pk)
    raw = request.data.get('stock')
    try:
        quantity = int(raw)
    except (TypeError, ValueError):
        return Response({'error': 'stock must be a non-negative integer'}, status=status.HTTP_400_BAD_REQUEST)
    if quantity < 0:
        return Response({'error': 'stock must be a non-negative integer'}, status=status.HTTP_400_BAD_REQUEST)

    product, previous = set_stock(pk, quantity)
    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='Product',
        object_id=product.id,
        object_reference=product.slug,
        changes={'stock': {'old': previous, 'new': quantity}},
    )
    return Response({'id': product.id, 'stock': product.stock, 'previous_stock': previous})


@api_view(['GET'])
@permission_classes([AllowAny])
def inventory_status(request):
    """Stock levels for every active product"""
    threshold = settings.STOREFRONT['LOW_STOCK_THRESHOLD']
    results = []
    for product in Product.objects.filter(status='active').prefetch_related('variants'):
        stock = product.total_stock()
        results.append({
            'id': product.id,
            'title': product.title,
            'stock': stock,
            'in_stock': stock > 0,
            'low_stock': 0 < stock <= threshold,
        })
    return Response(results)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminSellerOrReadOnly])
def product_variants(request, pk):
    """List or create variants for a product"""
    product = get_object_or_404(visible_products(request), pk=pk)

    if request.method == 'GET':
        variants = product.variants.all()
        if not is_catalog_manager(request.user):
            variants = variants.filter(is_active=True)
        return Response(ProductVariantSerializer(variants, many=True).data)
    else:
        serializer = ProductVariantSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(product=product)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Review views
def has_delivered_order_with(user, product_id):
    """True when one of the user's delivered orders contains the product"""
    from storefront.orders.models import OrderReview

    for order in OrderReview.objects.filter(user=user, status='delivered').only('id', 'order_data'):
        for line in order.order_data or []:
            if isinstance(line, dict) and str(line.get('product_id')) == str(product_id):
                return order
    return None


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def review_create(request):
    """Submit a product review, verified when the user received the product"""
    serializer = ProductReviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = serializer.validated_data['product']
    if ProductReview.objects.filter(user=request.user, product=product).exists():
        return Response(
            {'error': 'You have already reviewed this product', 'code': 'DUPLICATE_REVIEW'},
            status=status.HTTP_400_BAD_REQUEST
        )

    order = has_delivered_order_with(request.user, product.id)
    review = serializer.save(user=request.user, order_review=order, is_verified=order is not None)
    logger.info(f"Review {review.id} submitted for product {product.id} by {request.user.username}")
    return Response(ProductReviewSerializer(review).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_reviews(request, product_id):
    """Approved reviews for a product"""
    product = get_object_or_404(Product, pk=product_id)
    reviews = ProductReview.objects.filter(product=product, status='approved').select_related('user')
    return Response({
        'average_rating': product.average_rating,
        'total_reviews': product.total_reviews,
        'results': ProductReviewSerializer(reviews, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def review_admin_list(request):
    reviews = ProductReview.objects.select_related('user', 'product')
    review_status = request.query_params.get('status')
    if review_status:
        reviews = reviews.filter(status=review_status)
    return Response(ProductReviewSerializer(reviews, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def review_admin_status(request, pk):
    """Approve or reject a review and refresh the product rating"""
    review = get_object_or_404(ProductReview, pk=pk)
    serializer = ReviewStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    review.status = serializer.validated_data['status']
    if 'admin_response' in serializer.validated_data:
        review.admin_response = serializer.validated_data['admin_response']
    review.save()
    update_product_rating(review.product)
    logger.info(f"Review {review.id} marked {review.status} by {request.user.username}")
    return Response(ProductReviewSerializer(review).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def review_admin_delete(request, pk):
    review = get_object_or_404(ProductReview, pk=pk)
    product = review.product
    review.delete()
    update_product_rating(product)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([AllowAny])
def review_helpful(request, pk):
    """Count a helpful vote"""
    review = get_object_or_404(ProductReview, pk=pk, status='approved')
    ProductReview.objects.filter(pk=review.pk).update(helpful_votes=F('helpful_votes') + 1)
    review.refresh_from_db(fields=['helpful_votes'])
    return Response({'id': review.id, 'helpful_votes': review.helpful_votes})
