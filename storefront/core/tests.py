"""
Test suite for core: authentication, audit logging, permissions, errors and caching
"""
from django.test import TestCase, SimpleTestCase
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.test import APIRequestFactory
from rest_framework_simplejwt.tokens import AccessToken

from storefront.core.cache_utils import make_cache_key, invalidate_cache_prefix, cached_query
from storefront.core.exceptions import InsufficientStock, ProductNotFound
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.utils import create_audit_log, get_client_ip


class AuthAPITests(TestCase):
    """Test JWT login, refresh and the current user endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='jane', password='s3cret-pass')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_role_claim(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'jane', 'password': 's3cret-pass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'customer')
        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], 'customer')
        self.assertEqual(token['username'], 'jane')

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'jane', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_issues_new_access_token(self):
        login = self.client.post('/api/v1/auth/login/', {'username': 'jane', 'password': 's3cret-pass'}, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'jane')


class AuditLogTests(TestCase):
    """Test audit log helper and the admin listing"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_with_user(self):
        log = create_audit_log(user=self.customer, action='cart_add', model_name='CartItem', object_id=5,
                               object_reference='12', changes={'quantity': 2})
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '5')
        self.assertEqual(log.user, self.customer)

    def test_create_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(user=self.customer, action='cart_add', model_name=None, object_id=1))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_get_client_ip_prefers_forwarded_header(self):
        request = APIRequestFactory().get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2')
        self.assertEqual(get_client_ip(request), '10.0.0.1')

    def test_audit_log_list_admin_only(self):
        create_audit_log(user=self.customer, action='order_submit', model_name='OrderReview', object_id=1,
                         object_reference='ORD-20250101-ABCDEF12')
        create_audit_log(user=self.customer, action='cart_add', model_name='CartItem', object_id=2)

        self.client.authenticate_user(self.customer)
        self.assertEqual(self.client.get('/api/v1/audit-logs/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'action': 'order_submit'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_reference'], 'ORD-20250101-ABCDEF12')


class PermissionTests(TestCase):

    def test_superuser_counts_as_admin(self):
        user = TestDataFactory.create_user(is_superuser=True)
        self.assertTrue(user.is_admin_role)

    def test_seller_is_not_admin(self):
        user = TestDataFactory.create_seller()
        self.assertFalse(user.is_admin_role)

    def test_admin_cannot_use_customer_cart(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_admin())
        self.assertEqual(client.get('/api/v1/cart/').status_code, status.HTTP_403_FORBIDDEN)


@api_view(['GET'])
@permission_classes([AllowAny])
def out_of_stock_view(request):
    raise InsufficientStock('Only 2 items available in stock')


@api_view(['GET'])
@permission_classes([AllowAny])
def missing_product_view(request):
    raise ProductNotFound()


class ExceptionHandlerTests(SimpleTestCase):

    def setUp(self):
        self.factory = APIRequestFactory()

    def test_domain_error_renders_message_and_code(self):
        response = out_of_stock_view(self.factory.get('/'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Only 2 items available in stock', 'code': 'INSUFFICIENT_STOCK'})

    def test_domain_error_default_message_and_status(self):
        response = missing_product_view(self.factory.get('/'))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'PRODUCT_NOT_FOUND')


class CacheUtilsTests(SimpleTestCase):

    def test_invalidate_prefix_changes_keys(self):
        before = make_cache_key('test_prefix', 1, page=2)
        self.assertEqual(before, make_cache_key('test_prefix', 1, page=2))
        invalidate_cache_prefix('test_prefix')
        self.assertNotEqual(before, make_cache_key('test_prefix', 1, page=2))

    def test_cached_query_reuses_result_until_invalidated(self):
        calls = []

        @cached_query(cache_ttl=60, key_prefix='test_cached_query')
        def compute(value):
            calls.append(value)
            return value * 2

        invalidate_cache_prefix('test_cached_query')
        self.assertEqual(compute(21), 42)
        self.assertEqual(compute(21), 42)
        self.assertEqual(len(calls), 1)
        invalidate_cache_prefix('test_cached_query')
        compute(21)
        self.assertEqual(len(calls), 2)
