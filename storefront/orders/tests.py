"""
Test suite for order review submission and the admin review workflow
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from storefront.cart.models import CartItem
from storefront.core.exceptions import InvalidRequest, InvalidTransition
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.refunds.services import approve_refund
from .models import OrderReview
from .services import confirm_pictures, deduct_stock_for_order, set_review_status, submit_for_review


class OrderReviewModelTests(TestCase):

    def test_order_number_format(self):
        order = TestDataFactory.create_order_review(TestDataFactory.create_user())
        self.assertRegex(order.order_number, r'^ORD-\d{8}-[0-9A-F]{8}$')

    def test_remaining_refundable(self):
        order = TestDataFactory.create_order_review(TestDataFactory.create_user(), total=Decimal('80.00'))
        order.refunded_amount = Decimal('30.00')
        self.assertEqual(order.remaining_refundable, Decimal('50.00'))
        order.refunded_amount = Decimal('90.00')
        self.assertEqual(order.remaining_refundable, Decimal('0.00'))


class SubmitForReviewTests(TestCase):
    """Test turning cart lines into an order review"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(title='Eagle Patch', price=Decimal('20.00'), stock=10)

    def test_submit_snapshots_cart(self):
        line = TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        custom = TestDataFactory.create_cart_item(
            self.user, product_id='custom-embroidery', customization={'designs': [{'totalPrice': 30}]}
        )
        response = self.client.post('/api/v1/orders/submit-for-review/', {
            'shipping_address': {'city': 'Austin'},
            'customer_notes': 'Please hurry',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['subtotal'], '70.00')
        self.assertEqual(response.data['tax'], '5.60')
        self.assertEqual(response.data['shipping'], '0.00')
        self.assertEqual(response.data['total'], '75.60')

        snapshot = response.data['order_data']
        self.assertEqual(len(snapshot), 2)
        self.assertEqual(snapshot[0]['item_id'], line.id)
        self.assertEqual(snapshot[0]['title'], 'Eagle Patch')
        self.assertEqual(snapshot[0]['unit_price'], '20.00')
        self.assertEqual(snapshot[0]['line_total'], '40.00')
        self.assertEqual(snapshot[1]['product_id'], 'custom-embroidery')

        order = OrderReview.objects.get(pk=response.data['id'])
        for item in CartItem.objects.filter(pk__in=[line.id, custom.id]):
            self.assertEqual(item.review_status, 'submitted')
            self.assertEqual(item.order_review_id, order.id)

    def test_submit_with_selected_shipping_rate(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=1)
        response = self.client.post('/api/v1/orders/submit-for-review/', {
            'shipping_method': {'carrier': 'UPS', 'totalCost': '7.50'},
        }, format='json')
        self.assertEqual(response.data['shipping'], '7.50')
        self.assertEqual(response.data['total'], '29.10')

    def test_submit_selected_items_only(self):
        chosen = TestDataFactory.create_cart_item(self.user, self.product, quantity=1)
        left = TestDataFactory.create_cart_item(self.user, self.product, quantity=3,
                                                customization={'notes': 'gold'})
        response = self.client.post('/api/v1/orders/submit-for-review/', {'item_ids': [chosen.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['order_data']), 1)
        left.refresh_from_db()
        self.assertEqual(left.review_status, 'pending')

    def test_submit_empty_cart(self):
        response = self.client.post('/api/v1/orders/submit-for-review/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_REQUEST')
        self.assertEqual(response.data['error'], 'No cart items to submit for review')

    def test_submitted_lines_are_not_resubmitted(self):
        TestDataFactory.create_cart_item(self.user, self.product)
        self.client.post('/api/v1/orders/submit-for-review/', {}, format='json')
        response = self.client.post('/api/v1/orders/submit-for-review/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(OrderReview.objects.count(), 1)

    def test_reviewed_lines_are_not_resubmitted(self):
        line = TestDataFactory.create_cart_item(self.user, self.product, quantity=2)
        first = submit_for_review(self.user)
        set_review_status(first, 'approved')
        line.refresh_from_db()
        self.assertEqual(line.review_status, 'approved')

        with self.assertRaises(InvalidRequest):
            submit_for_review(self.user)
        line.refresh_from_db()
        self.assertEqual(line.order_review_id, first.id)
        self.assertEqual(OrderReview.objects.count(), 1)

        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.data['totals']['subtotal'], '0.00')

    def test_negative_shipping_rate_rejected(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=1)
        response = self.client.post('/api/v1/orders/submit-for-review/', {
            'shipping_method': {'carrier': 'UPS', 'totalCost': -100},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('shipping_method', response.data)
        self.assertFalse(OrderReview.objects.exists())

    def test_service_never_charges_negative_shipping(self):
        TestDataFactory.create_cart_item(self.user, self.product, quantity=1)
        order = submit_for_review(self.user, shipping_method={'totalCost': -100})
        self.assertEqual(order.shipping, Decimal('0.00'))
        self.assertEqual(order.total, Decimal('21.60'))

    def test_submit_rechecks_stock(self):
        line = TestDataFactory.create_cart_item(self.user, self.product, quantity=5)
        self.product.stock = 2
        self.product.save()
        response = self.client.post('/api/v1/orders/submit-for-review/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INSUFFICIENT_STOCK')
        line.refresh_from_db()
        self.assertEqual(line.review_status, 'approved')
        self.assertFalse(OrderReview.objects.exists())

    def test_my_review_orders(self):
        TestDataFactory.create_order_review(self.user, order_data=[{'quantity': 2}, {'quantity': 1}])
        TestDataFactory.create_order_review(TestDataFactory.create_user())
        response = self.client.get('/api/v1/orders/review-orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['item_count'], 3)

    def test_tracking_hidden_from_other_users(self):
        order = TestDataFactory.create_order_review(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/orders/review-orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        mine = TestDataFactory.create_order_review(self.user)
        response = self.client.get(f'/api/v1/orders/review-orders/{mine.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('timeline', response.data)


class AdminReviewTests(TestCase):
    """Test the admin side of the review workflow"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product()
        self.line = TestDataFactory.create_cart_item(self.customer, self.product, customization={'notes': 'x'})
        self.order = TestDataFactory.create_order_review(self.customer)
        CartItem.objects.filter(pk=self.line.id).update(review_status='submitted', order_review=self.order)
        self.client.authenticate_user(self.admin)

    def url(self, suffix=''):
        return f'/api/v1/orders/admin/review-orders/{self.order.id}/{suffix}'

    def test_admin_lists_orders(self):
        response = self.client.get('/api/v1/orders/admin/review-orders/', {'status': 'pending'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_customer_cannot_review(self):
        self.client.authenticate_user(self.customer)
        response = self.client.patch(self.url(), {'status': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_approve_propagates_to_cart_lines(self):
        response = self.client.patch(self.url(), {'status': 'approved', 'admin_notes': 'Nice design'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')
        self.assertIsNotNone(response.data['reviewed_at'])
        self.line.refresh_from_db()
        self.assertEqual(self.line.review_status, 'approved')

    def test_fulfilment_status_leaves_cart_lines(self):
        response = self.client.patch(self.url(), {'status': 'in-production'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.line.refresh_from_db()
        self.assertEqual(self.line.review_status, 'submitted')

    def test_shipped_and_delivered_stamp_dates(self):
        self.client.patch(self.url(), {'status': 'shipped'}, format='json')
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.shipped_at)
        self.assertIsNone(self.order.delivered_at)

        self.client.patch(self.url(), {'status': 'delivered'}, format='json')
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.delivered_at)

    def test_refunded_cannot_be_set_directly(self):
        response = self.client.patch(self.url(), {'status': 'refunded'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_STATUS')

    def test_set_review_status_rejects_unknown(self):
        with self.assertRaises(InvalidTransition):
            set_review_status(self.order, 'lost-in-transit')

    def test_shipping_info(self):
        response = self.client.patch(self.url('shipping/'), {
            'tracking_number': '1Z999', 'shipping_carrier': 'UPS',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tracking_number'], '1Z999')

        response = self.client.patch(self.url('shipping/'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StockDeductionTests(TestCase):
    """Test taking ordered units off the shelf when fulfilment starts"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(price=Decimal('10.00'), stock=10)
        TestDataFactory.create_cart_item(self.user, self.product, quantity=3)
        TestDataFactory.create_cart_item(self.user, product_id='custom-embroidery',
                                         customization={'designs': [{'totalPrice': 12}]})
        self.order = submit_for_review(self.user)

    def test_review_decisions_leave_stock_alone(self):
        set_review_status(self.order, 'approved')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertIsNone(self.order.stock_deducted_at)

    def test_first_fulfilment_step_deducts_once(self):
        set_review_status(self.order, 'approved')
        set_review_status(self.order, 'in-production')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

        set_review_status(self.order, 'shipped')
        set_review_status(self.order, 'delivered')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.stock_deducted_at)
        self.assertEqual(self.order.stock_deductions, [
            {'product_id': str(self.product.id), 'variant_id': None, 'quantity': 3, 'restored': 0},
        ])

    def test_deducts_from_best_stocked_variant(self):
        small = TestDataFactory.create_variant(self.product, stock=2)
        large = TestDataFactory.create_variant(self.product, stock=8)
        deduct_stock_for_order(self.order)
        small.refresh_from_db()
        large.refresh_from_db()
        self.assertEqual((small.stock, large.stock), (2, 5))
        self.assertEqual(self.order.stock_deductions[0]['variant_id'], large.id)

    def test_refund_after_delivery_restores_deducted_units(self):
        for step in ('approved', 'shipped', 'delivered'):
            set_review_status(self.order, step)
        refund = TestDataFactory.create_refund(self.order, reason='changed_mind', refund_items=[
            {'product_id': str(self.product.id), 'quantity': 3},
        ])
        approve_refund(refund, TestDataFactory.create_admin())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)


class PictureReplyTests(TestCase):
    """Test proof pictures and customer confirmation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.order = TestDataFactory.create_order_review(self.customer, status='approved')

    def upload(self, replies):
        self.client.authenticate_user(self.admin)
        return self.client.post(f'/api/v1/orders/admin/review-orders/{self.order.id}/picture-reply/',
                                {'replies': replies}, format='json')

    def confirm(self, confirmations):
        self.client.authenticate_user(self.customer)
        return self.client.post(f'/api/v1/orders/review-orders/{self.order.id}/confirm-pictures/',
                                {'confirmations': confirmations}, format='json')

    def test_upload_sets_pending_confirmation(self):
        response = self.upload([{'item_id': 1, 'image': 'https://cdn.example.com/proof.jpg'}])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'picture-reply-pending')
        self.assertEqual(len(response.data['admin_picture_replies']), 1)
        self.assertIsNotNone(response.data['picture_reply_uploaded_at'])

    def test_upload_requires_replies(self):
        self.assertEqual(self.upload([]).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.upload([{'item_id': 1}]).status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_approves_pictures(self):
        self.upload([{'item_id': 1, 'image': 'a.jpg'}, {'item_id': 2, 'image': 'b.jpg'}])
        response = self.confirm([{'item_id': 1, 'confirmed': True}, {'item_id': 2, 'confirmed': True}])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'picture-reply-approved')
        self.assertIsNotNone(response.data['timeline']['customer_confirmed_at'])

    def test_customer_rejects_one_picture(self):
        self.upload([{'item_id': 1, 'image': 'a.jpg'}, {'item_id': 2, 'image': 'b.jpg'}])
        response = self.confirm([{'item_id': 1, 'confirmed': True},
                                 {'item_id': 2, 'confirmed': False, 'notes': 'Wrong colour'}])
        self.assertEqual(response.data['status'], 'picture-reply-rejected')

    def test_confirm_without_pending_pictures(self):
        response = self.confirm([{'item_id': 1, 'confirmed': True}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_STATUS')

    def test_confirm_pictures_service_guard(self):
        with self.assertRaises(InvalidTransition):
            confirm_pictures(self.order, [{'item_id': 1, 'confirmed': True}])

    def test_other_customer_cannot_confirm(self):
        self.upload([{'item_id': 1, 'image': 'a.jpg'}])
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post(f'/api/v1/orders/review-orders/{self.order.id}/confirm-pictures/',
                                    {'confirmations': [{'item_id': 1, 'confirmed': True}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
