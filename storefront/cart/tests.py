"""
Test suite for the persistent cart
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import CartItem
from .services import add_item, cart_totals, fallback_price, sync_cart, unit_price


class CartServiceTests(TestCase):
    """Test cart pricing helpers"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(price=Decimal('25.00'))

    def test_fallback_price(self):
        self.assertEqual(fallback_price({'pricingBreakdown': {'totalPrice': 12}}), 12)
        self.assertIsNone(fallback_price({'pricingBreakdown': 'bad'}))
        self.assertIsNone(fallback_price(None))

    def test_unit_price_for_unknown_product_uses_breakdown(self):
        item = TestDataFactory.create_cart_item(
            self.user, product_id='9999', customization={'pricingBreakdown': {'totalPrice': '18.75'}}
        )
        self.assertEqual(unit_price(item), Decimal('18.75'))

    def test_unit_price_ignores_breakdown_for_known_product(self):
        item = TestDataFactory.create_cart_item(
            self.user, self.product, customization={'pricingBreakdown': {'totalPrice': '1.00'}}
        )
        self.assertEqual(unit_price(item), Decimal('25.00'))

    def test_totals_skip_submitted_lines(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        TestDataFactory.create_cart_item(self.user, self.product, quantity=4, review_status='submitted')
        totals = cart_totals(CartItem.objects.filter(user=self.user))
        self.assertEqual(totals['subtotal'], Decimal('50.00'))
        self.assertEqual(totals['tax'], Decimal('4.00'))
        self.assertEqual(totals['shipping'], Decimal('9.99'))
        self.assertEqual(totals['total'], Decimal('63.99'))


    def test_totals_skip_lines_linked_to_a_review(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        order = TestDataFactory.create_order_review(self.user, status='approved')
        reviewed = TestDataFactory.create_cart_item(self.user, self.product, quantity=4, review_status='approved')
        CartItem.objects.filter(pk=reviewed.id).update(order_review=order)
        totals = cart_totals(CartItem.objects.filter(user=self.user))
        self.assertEqual(totals['subtotal'], Decimal('50.00'))

    def test_add_does_not_merge_into_reviewed_line(self):
        order = TestDataFactory.create_order_review(self.user, status='approved')
        reviewed = TestDataFactory.create_cart_item(self.user, self.product, quantity=1, review_status='approved')
        CartItem.objects.filter(pk=reviewed.id).update(order_review=order)
        item, created = add_item(self.user, str(self.product.id), 2)
        self.assertTrue(created)
        self.assertNotEqual(item.id, reviewed.id)
        reviewed.refresh_from_db()
        self.assertEqual(reviewed.quantity, 1)


class CartAPITests(TestCase):
    """Test cart endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(title='Eagle Patch', price=Decimal('25.00'), stock=10)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_get_empty_cart(self):
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])
        self.assertEqual(response.data['totals']['subtotal'], '0.00')

    def test_add_then_merge(self):
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_id'], str(self.product.id))
        self.assertEqual(response.data['unit_price'], '25.00')
        self.assertEqual(response.data['review_status'], 'approved')

        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 5)
        self.assertEqual(response.data['line_total'], '125.00')
        self.assertEqual(CartItem.objects.filter(user=self.user).count(), 1)
        self.assertTrue(AuditLog.objects.filter(action='cart_add').exists())

    def test_different_customization_makes_new_line(self):
        self.client.post('/api/v1/cart/', {'product_id': self.product.id}, format='json')
        response = self.client.post('/api/v1/cart/', {
            'product_id': self.product.id,
            'customization': {'selectedStyles': {'coverage': {'price': '3.00'}}},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['unit_price'], '28.00')
        self.assertEqual(response.data['review_status'], 'pending')
        self.assertEqual(CartItem.objects.filter(user=self.user).count(), 2)

    def test_add_more_than_stock(self):
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 11}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INSUFFICIENT_STOCK')
        self.assertEqual(response.data['error'], 'Only 10 items available in stock')

    def test_merge_checks_stock(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=8)
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(CartItem.objects.get(user=self.user).quantity, 8)

    def test_add_inactive_product(self):
        draft = TestDataFactory.create_product(status='draft')
        response = self.client.post('/api/v1/cart/', {'product_id': draft.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'PRODUCT_NOT_FOUND')

        response = self.client.post('/api/v1/cart/', {'product_id': 'not-a-product'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_rejects_bad_quantity(self):
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/cart/', {'product_id': self.product.id, 'quantity': 1000}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_custom_embroidery(self):
        response = self.client.post('/api/v1/cart/', {
            'product_id': 'custom-embroidery',
            'customization': {'designs': [{'totalPrice': 30}]},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['unit_price'], '30.00')
        self.assertIsNone(response.data['product'])

    def test_cart_totals(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['items'][0]['product']['title'], 'Eagle Patch')
        self.assertEqual(response.data['totals'], {
            'subtotal': '50.00', 'tax': '4.00', 'shipping': '9.99', 'total': '63.99',
        })

    def test_update_quantity(self):
        item = TestDataFactory.create_cart_item(self.user, self.product)
        response = self.client.put(f'/api/v1/cart/{item.id}/', {'quantity': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 4)

        response = self.client.put(f'/api/v1/cart/{item.id}/', {'quantity': 50}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INSUFFICIENT_STOCK')

    def test_update_customization_resets_review(self):
        item = TestDataFactory.create_cart_item(self.user, self.product, review_status='approved')
        response = self.client.put(f'/api/v1/cart/{item.id}/', {
            'quantity': 1, 'customization': {'notes': 'new colours'},
        }, format='json')
        self.assertEqual(response.data['review_status'], 'pending')

    def test_update_submitted_line_rejected(self):
        item = TestDataFactory.create_cart_item(self.user, self.product, review_status='submitted')
        response = self.client.put(f'/api/v1/cart/{item.id}/', {'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_STATUS')

    def test_cannot_touch_another_users_line(self):
        other_item = TestDataFactory.create_cart_item(TestDataFactory.create_user(), self.product)
        response = self.client.delete(f'/api/v1/cart/{other_item.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(CartItem.objects.filter(pk=other_item.id).exists())

    def test_remove_line(self):
        item = TestDataFactory.create_cart_item(self.user, self.product)
        response = self.client.delete(f'/api/v1/cart/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CartItem.objects.filter(pk=item.id).exists())

    def test_clear_cart(self):
        TestDataFactory.create_cart_item(self.user, self.product)
        TestDataFactory.create_cart_item(self.user, product_id='custom-embroidery', customization={'designs': []})
        response = self.client.delete('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted_count'], 2)
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())


class CartSyncTests(TestCase):
    """Test replacing the cart with a client copy"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(price=Decimal('10.00'))

    def test_sync_replaces_open_lines_and_keeps_submitted(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=1)
        submitted = TestDataFactory.create_cart_item(self.user, self.product, review_status='submitted')

        response = self.client.post('/api/v1/cart/sync/', {'items': [
            {'product_id': self.product.id, 'quantity': 2},
            {'quantity': 1},
            {'product_id': self.product.id, 'quantity': 0},
            {'productId': 'custom-embroidery', 'quantity': 5000, 'customization': {'designs': []}},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['skipped'], 2)
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['items'][1]['quantity'], 999)

        remaining = CartItem.objects.filter(user=self.user)
        self.assertEqual(remaining.count(), 3)
        self.assertTrue(remaining.filter(pk=submitted.id).exists())
        self.assertEqual(remaining.filter(review_status='pending').count(), 2)

    def test_sync_skips_blank_product_ids(self):
        items, skipped = sync_cart(self.user, [
            {'productId': '   ', 'quantity': 1},
            {'product_id': '', 'quantity': 1},
            {'product_id': f' {self.product.id} ', 'quantity': 1},
        ])
        self.assertEqual(skipped, 2)
        self.assertEqual([item.product_key for item in items], [str(self.product.id)])

    def test_sync_keeps_lines_linked_to_a_review(self):
        order = TestDataFactory.create_order_review(self.user, status='needs-changes')
        reviewed = TestDataFactory.create_cart_item(self.user, self.product, review_status='needs-changes')
        CartItem.objects.filter(pk=reviewed.id).update(order_review=order)
        sync_cart(self.user, [{'product_id': self.product.id, 'quantity': 2}])
        self.assertTrue(CartItem.objects.filter(pk=reviewed.id).exists())

    def test_empty_sync_keeps_cart(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=3)
        response = self.client.post('/api/v1/cart/sync/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['skipped'], 0)

    def test_sync_requires_item_list(self):
        response = self.client.post('/api/v1/cart/sync/', {'items': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_ITEMS')
