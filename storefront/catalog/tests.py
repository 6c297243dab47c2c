"""
Test suite for the catalog: products, stock, variants, categories and reviews
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from storefront.catalog.models import Product, ProductReview
from storefront.catalog.services import check_stock, restore_stock, update_product_rating
from storefront.core.exceptions import InsufficientStock
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductModelTests(TestCase):
    """Test product stock helpers"""

    def setUp(self):
        self.product = TestDataFactory.create_product(stock=7, price=Decimal('20.00'))

    def test_total_stock_without_variants(self):
        self.assertEqual(self.product.total_stock(), 7)

    def test_total_stock_sums_active_variants(self):
        TestDataFactory.create_variant(self.product, stock=2)
        TestDataFactory.create_variant(self.product, stock=4)
        TestDataFactory.create_variant(self.product, stock=50, is_active=False)
        self.assertEqual(self.product.total_stock(), 6)
        self.assertTrue(self.product.in_stock)

    def test_variant_effective_price_falls_back_to_product(self):
        plain = TestDataFactory.create_variant(self.product)
        priced = TestDataFactory.create_variant(self.product, price=Decimal('24.50'))
        self.assertEqual(plain.effective_price(), Decimal('20.00'))
        self.assertEqual(priced.effective_price(), Decimal('24.50'))

    def test_check_stock_out_of_stock(self):
        self.product.stock = 0
        self.product.save()
        with self.assertRaisesMessage(InsufficientStock, 'This product is out of stock'):
            check_stock(self.product, 1)

    def test_check_stock_not_enough(self):
        with self.assertRaisesMessage(InsufficientStock, 'Only 7 items available in stock'):
            check_stock(self.product, 8)

    def test_check_stock_enough(self):
        self.assertEqual(check_stock(self.product, 7), 7)

    def test_restore_stock(self):
        self.assertTrue(restore_stock(self.product.id, 3))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertFalse(restore_stock(999999, 3))


class ProductAPITests(TestCase):
    """Test product endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.seller = TestDataFactory.create_seller()
        self.customer = TestDataFactory.create_user()
        self.category = TestDataFactory.create_category(name='Patches', slug='patches')
        self.patch = TestDataFactory.create_product(title='Eagle Patch', price=Decimal('12.00'),
                                                    category=self.category, featured=True)
        self.hat = TestDataFactory.create_product(title='Trucker Hat', price=Decimal('30.00'), stock=0)
        self.draft = TestDataFactory.create_product(title='Secret Jacket', status='draft')

    def results(self, response):
        return [item['title'] for item in response.data['results']]

    def test_public_list_shows_active_products_only(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertNotIn('Secret Jacket', self.results(response))
        # featured products come first
        self.assertEqual(self.results(response)[0], 'Eagle Patch')

    def test_public_cannot_list_drafts(self):
        response = self.client.get('/api/v1/products/', {'status': 'draft'})
        self.assertNotIn('Secret Jacket', self.results(response))

    def test_manager_can_list_drafts(self):
        self.client.authenticate_user(self.seller)
        response = self.client.get('/api/v1/products/', {'status': 'draft'})
        self.assertEqual(self.results(response), ['Secret Jacket'])

    def test_filters(self):
        response = self.client.get('/api/v1/products/', {'search': 'eagle'})
        self.assertEqual(self.results(response), ['Eagle Patch'])
        response = self.client.get('/api/v1/products/', {'category': 'patches'})
        self.assertEqual(self.results(response), ['Eagle Patch'])
        response = self.client.get('/api/v1/products/', {'category': str(self.category.id)})
        self.assertEqual(self.results(response), ['Eagle Patch'])
        response = self.client.get('/api/v1/products/', {'min_price': '20'})
        self.assertEqual(self.results(response), ['Trucker Hat'])
        response = self.client.get('/api/v1/products/', {'max_price': '20'})
        self.assertEqual(self.results(response), ['Eagle Patch'])
        response = self.client.get('/api/v1/products/', {'in_stock': 'true'})
        self.assertEqual(self.results(response), ['Eagle Patch'])
        response = self.client.get('/api/v1/products/', {'in_stock': 'false'})
        self.assertEqual(self.results(response), ['Trucker Hat'])

    def test_list_cache_is_invalidated_on_save(self):
        self.client.get('/api/v1/products/')
        TestDataFactory.create_product(title='Fresh Patch')
        response = self.client.get('/api/v1/products/')
        self.assertIn('Fresh Patch', self.results(response))

    def test_list_page_is_served_from_cache(self):
        first = self.client.get('/api/v1/products/', {'limit': 5})
        with self.assertNumQueries(0):
            second = self.client.get('/api/v1/products/', {'limit': 5})
        self.assertEqual(first.data, second.data)

    def test_list_rejects_bad_paging(self):
        response = self.client.get('/api/v1/products/', {'page': 'two'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_REQUEST')

    def test_product_detail_and_slug(self):
        response = self.client.get(f'/api/v1/products/{self.patch.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['category_name'], 'Patches')
        response = self.client.get(f'/api/v1/products/slug/{self.patch.slug}/')
        self.assertEqual(response.data['id'], self.patch.id)
        response = self.client.get(f'/api/v1/products/{self.draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_product_requires_manager(self):
        data = {'title': 'Rose Patch', 'price': '9.50', 'stock': 4}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.seller)
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'rose-patch')
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_create_product_rejects_negative_price(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/products/', {'title': 'Bad', 'price': '-1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)

    def test_update_and_delete_product(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/products/{self.patch.id}/', {'price': '14.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.patch.refresh_from_db()
        self.assertEqual(self.patch.price, Decimal('14.00'))

        response = self.client.delete(f'/api/v1/products/{self.hat.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=self.hat.id).exists())

    def test_set_inventory(self):
        self.client.authenticate_user(self.seller)
        response = self.client.put(f'/api/v1/products/{self.hat.id}/inventory/', {'stock': 12}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['previous_stock'], 0)
        self.hat.refresh_from_db()
        self.assertEqual(self.hat.stock, 12)
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust').exists())

    def test_set_inventory_rejects_negative(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/products/{self.hat.id}/inventory/', {'stock': -2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inventory_status(self):
        low = TestDataFactory.create_product(title='Low Patch', stock=3)
        response = self.client.get('/api/v1/products/inventory/status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_id = {row['id']: row for row in response.data}
        self.assertTrue(by_id[low.id]['low_stock'])
        self.assertFalse(by_id[self.patch.id]['low_stock'])
        self.assertFalse(by_id[self.hat.id]['in_stock'])
        self.assertNotIn(self.draft.id, by_id)

    def test_variants(self):
        TestDataFactory.create_variant(self.patch, name='Small', stock=2)
        response = self.client.get(f'/api/v1/products/{self.patch.id}/variants/')
        self.assertEqual(len(response.data), 1)

        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/products/{self.patch.id}/variants/',
                                    {'name': 'Large', 'sku': 'EAGLE-L', 'stock': 5, 'price': '15.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['effective_price'], '15.00')
        self.assertEqual(self.patch.total_stock(), 7)


class CategoryAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_public_list_hides_inactive(self):
        TestDataFactory.create_category(name='Hats')
        TestDataFactory.create_category(name='Old', is_active=False)
        response = self.client.get('/api/v1/categories/')
        self.assertEqual([c['name'] for c in response.data], ['Hats'])

    def test_admin_creates_category_with_slug(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/categories/', {'name': 'Iron On Patches'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'iron-on-patches')

    def test_customer_cannot_create_category(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/categories/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ReviewAPITests(TestCase):
    """Test product review endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product()

    def test_create_review_unverified(self):
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/reviews/', {'product': self.product.id, 'rating': 4, 'comment': 'Nice'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['is_verified'])
        self.assertEqual(response.data['status'], 'pending')

    def test_create_review_verified_after_delivery(self):
        order = TestDataFactory.create_order_review(
            self.customer, status='delivered', order_data=[{'product_id': str(self.product.id), 'quantity': 1}]
        )
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/reviews/', {'product': self.product.id, 'rating': 5}, format='json')
        self.assertTrue(response.data['is_verified'])
        self.assertEqual(response.data['order_review'], order.id)

    def test_one_review_per_product(self):
        TestDataFactory.create_review(self.product, self.customer)
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/reviews/', {'product': self.product.id, 'rating': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'DUPLICATE_REVIEW')

    def test_rating_out_of_range(self):
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/reviews/', {'product': self.product.id, 'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approval_recomputes_rating(self):
        other = TestDataFactory.create_user()
        TestDataFactory.create_review(self.product, other, rating=4, status='approved')
        review = TestDataFactory.create_review(self.product, self.customer, rating=5)

        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/reviews/admin/{review.id}/status/', {'status': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.total_reviews, 2)
        self.assertEqual(self.product.average_rating, Decimal('4.50'))

    def test_public_list_shows_approved_only(self):
        TestDataFactory.create_review(self.product, self.customer, status='approved')
        TestDataFactory.create_review(self.product, TestDataFactory.create_user(), status='pending')
        response = self.client.get(f'/api/v1/reviews/product/{self.product.id}/')
        self.assertEqual(len(response.data['results']), 1)

    def test_admin_delete_updates_rating(self):
        review = TestDataFactory.create_review(self.product, self.customer, rating=2, status='approved')
        update_product_rating(self.product)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/reviews/admin/{review.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.product.refresh_from_db()
        self.assertEqual(self.product.total_reviews, 0)
        self.assertFalse(ProductReview.objects.exists())

    def test_helpful_vote(self):
        review = TestDataFactory.create_review(self.product, self.customer, status='approved')
        response = self.client.post(f'/api/v1/reviews/{review.id}/helpful/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['helpful_votes'], 1)

    def test_admin_list_requires_admin(self):
        self.client.authenticate_user(self.customer)
        self.assertEqual(self.client.get('/api/v1/reviews/admin/').status_code, status.HTTP_403_FORBIDDEN)
