"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from storefront.catalog.models import Category, Product, ProductVariant, ProductReview
from storefront.pricing.models import MaterialCost
from storefront.embroidery.models import EmbroideryOption
from storefront.cart.models import CartItem
from storefront.orders.models import OrderReview
from storefront.refunds.models import RefundRequest

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""
    __test__ = False

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='customer', is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role='admin', **kwargs)

    @staticmethod
    def create_seller(**kwargs):
        return TestDataFactory.create_user(role='seller', **kwargs)

    @staticmethod
    def create_category(name=None, slug=None, is_active=True):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'category-{TestDataFactory.random_string(8)}'
        return Category.objects.create(name=name, slug=slug, is_active=is_active)

    @staticmethod
    def create_product(title=None, price=Decimal('25.00'), stock=10, status='active', category=None,
                       featured=False, slug=None):
        """Create a test product"""
        if not title:
            title = f'Product {TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'product-{TestDataFactory.random_string(8)}'
        return Product.objects.create(
            title=title,
            slug=slug,
            price=price,
            stock=stock,
            status=status,
            category=category,
            featured=featured,
        )

    @staticmethod
    def create_variant(product, name=None, stock=5, price=None, is_active=True):
        """Create a test product variant"""
        return ProductVariant.objects.create(
            product=product,
            name=name or f'Variant {TestDataFactory.random_string(4)}',
            sku=f'SKU-{TestDataFactory.random_string(10).upper()}',
            stock=stock,
            price=price,
            is_active=is_active,
        )

    @staticmethod
    def create_review(product, user, rating=5, status='pending'):
        return ProductReview.objects.create(product=product, user=user, rating=rating, status=status,
                                            title='Great', comment='Lovely stitching')

    @staticmethod
    def create_material_cost(name='Fabric', cost=Decimal('34'), width=Decimal('30'), length=Decimal('36'),
                             waste_factor=Decimal('1.5'), is_active=True):
        """Create a material cost row"""
        return MaterialCost.objects.create(
            name=name,
            cost=cost,
            width=width,
            length=length,
            waste_factor=waste_factor,
            is_active=is_active,
        )

    @staticmethod
    def create_embroidery_option(name=None, category='coverage', price=Decimal('5.00'), level='basic',
                                 is_active=True, incompatible_with=None):
        """Create an embroidery style option"""
        return EmbroideryOption.objects.create(
            name=name or f'Option {TestDataFactory.random_string(6)}',
            category=category,
            price=price,
            level=level,
            is_active=is_active,
            incompatible_with=incompatible_with or [],
        )

    @staticmethod
    def create_cart_item(user, product=None, quantity=1, customization=None, review_status=None, product_id=None):
        """Create a cart line for a product or for a raw product id"""
        if product_id is None:
            product_id = str(product.id)
        if review_status is None:
            review_status = 'pending' if customization else 'approved'
        return CartItem.objects.create(
            user=user,
            product=product,
            product_key=product_id,
            quantity=quantity,
            customization=customization,
            review_status=review_status,
        )

    @staticmethod
    def create_order_review(user, status='pending', total=Decimal('100.00'), order_data=None,
                            delivered_days_ago=None, shipped_days_ago=None):
        """Create an order review with optional delivery/shipping timestamps"""
        now = timezone.now()
        order = OrderReview.objects.create(
            user=user,
            order_data=order_data if order_data is not None else [],
            subtotal=total,
            tax=Decimal('0.00'),
            shipping=Decimal('0.00'),
            total=total,
            status=status,
            delivered_at=now - timezone.timedelta(days=delivered_days_ago) if delivered_days_ago is not None else None,
            shipped_at=now - timezone.timedelta(days=shipped_days_ago) if shipped_days_ago is not None else None,
        )
        return order

    @staticmethod
    def create_refund(order, user=None, refund_amount=None, status='pending', reason='damaged_defective',
                      refund_type='full', refund_items=None):
        """Create a refund request against an order review"""
        user = user or order.user
        return RefundRequest.objects.create(
            order_review=order,
            order_number=order.order_number,
            user=user,
            refund_type=refund_type,
            refund_amount=refund_amount if refund_amount is not None else order.total,
            original_amount=order.total,
            reason=reason,
            description='Item arrived damaged',
            customer_email=user.email,
            customer_name=user.full_name,
            status=status,
            refund_items=refund_items or [],
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
