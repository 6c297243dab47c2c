import django_filters
from django.db.models import Q, Exists, OuterRef

from .models import Product, ProductVariant


class ProductFilter(django_filters.FilterSet):
    """Storefront product filters"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(method='filter_category', label='Category id or slug')
    status = django_filters.ChoiceFilter(choices=Product.STATUS_CHOICES)
    featured = django_filters.BooleanFilter(field_name='featured')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'status', 'featured', 'min_price', 'max_price', 'in_stock']

    def filter_search(self, queryset, name, value):
        """Every word must appear in the title, description, sku or category name"""
        if not value:
            return queryset
        for word in value.split():
            queryset = queryset.filter(
                Q(title__icontains=word) |
                Q(description__icontains=word) |
                Q(sku__icontains=word) |
                Q(category__name__icontains=word)
            )
        return queryset

    def filter_category(self, queryset, name, value):
        if not value:
            return queryset
        if value.isdigit():
            return queryset.filter(category_id=int(value))
        return queryset.filter(category__slug=value)

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        stocked_variant = ProductVariant.objects.filter(product=OuterRef('pk'), is_active=True, stock__gt=0)
        any_variant = ProductVariant.objects.filter(product=OuterRef('pk'), is_active=True)
        queryset = queryset.annotate(
            has_stocked_variant=Exists(stocked_variant),
            has_variants=Exists(any_variant),
        )
        in_stock_q = Q(has_stocked_variant=True) | Q(has_variants=False, stock__gt=0)
        if value:
            return queryset.filter(in_stock_q)
        return queryset.exclude(in_stock_q)
