from django.utils.text import slugify
from rest_framework import serializers

from .models import Category, Product, ProductVariant, ProductReview


def unique_slug(model, value, instance_pk=None):
    """Slugify value and append a counter until it is unused"""
    base = slugify(value) or 'item'
    slug = base
    counter = 2
    queryset = model.objects.all()
    if instance_pk:
        queryset = queryset.exclude(pk=instance_pk)
    while queryset.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


class CategorySerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False)

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'parent', 'description', 'is_active', 'sort_order', 'created_at', 'updated_at']

    def create(self, validated_data):
        if not validated_data.get('slug'):
            validated_data['slug'] = unique_slug(Category, validated_data['name'])
        return super().create(validated_data)


class ProductVariantSerializer(serializers.ModelSerializer):
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = ProductVariant
        fields = ['id', 'product', 'name', 'color', 'size', 'sku', 'stock', 'price', 'effective_price',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['product']


class ProductListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for listings"""
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    total_stock = serializers.SerializerMethodField()
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'title', 'slug', 'price', 'image', 'alt', 'category', 'category_name', 'status',
                  'featured', 'badges', 'average_rating', 'total_reviews', 'total_stock', 'in_stock']

    def get_total_stock(self, obj):
        return obj.total_stock()

    def get_in_stock(self, obj):
        return obj.total_stock() > 0


class ProductSerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    variants = ProductVariantSerializer(many=True, read_only=True)
    total_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'title', 'slug', 'description', 'price', 'image', 'images', 'alt', 'category',
                  'category_name', 'status', 'featured', 'badges', 'available_colors', 'available_sizes',
                  'stock', 'total_stock', 'sku', 'weight', 'materials', 'care_instructions',
                  'average_rating', 'total_reviews', 'variants', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['average_rating', 'total_reviews', 'created_by']

    def get_total_stock(self, obj):
        return obj.total_stock()

    def validate(self, data):
        for field in ('images', 'badges', 'available_colors', 'available_sizes'):
            if field in data and not isinstance(data[field], list):
                raise serializers.ValidationError({field: 'Must be a list.'})
        return data

    def create(self, validated_data):
        if not validated_data.get('slug'):
            validated_data['slug'] = unique_slug(Product, validated_data['title'])
        return super().create(validated_data)


class ProductReviewSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    product_title = serializers.CharField(source='product.title', read_only=True)

    class Meta:
        model = ProductReview
        fields = ['id', 'product', 'product_title', 'user', 'username', 'order_review', 'rating', 'title',
                  'comment', 'status', 'is_verified', 'helpful_votes', 'admin_response',
                  'created_at', 'updated_at']
        read_only_fields = ['user', 'order_review', 'status', 'is_verified', 'helpful_votes', 'admin_response']


class ReviewStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ProductReview.STATUS_CHOICES)
    admin_response = serializers.CharField(required=False, allow_blank=True)
