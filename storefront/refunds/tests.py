"""
Test suite for refund requests and their admin processing
"""
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from storefront.core.exceptions import InvalidTransition, RefundNotAllowed
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import RefundRequest
from .services import approve_refund, check_eligibility, restore_refund_inventory


class RefundEligibilityTests(TestCase):
    """Test which orders may take a refund request"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_delivered_order_is_eligible(self):
        order = TestDataFactory.create_order_review(self.user, status='delivered', delivered_days_ago=3)
        check_eligibility(order)

    def test_unshipped_order_is_not_eligible(self):
        order = TestDataFactory.create_order_review(self.user, status='pending')
        with self.assertRaisesMessage(RefundNotAllowed, 'Order is not in a refundable state'):
            check_eligibility(order)

    def test_window_expired(self):
        order = TestDataFactory.create_order_review(self.user, status='delivered', delivered_days_ago=31)
        with self.assertRaisesMessage(RefundNotAllowed, 'Refund window has expired (30 days limit)'):
            check_eligibility(order)

    def test_shipped_date_used_before_delivery(self):
        order = TestDataFactory.create_order_review(self.user, status='shipped', shipped_days_ago=45)
        with self.assertRaises(RefundNotAllowed):
            check_eligibility(order)

    def test_fully_refunded_order(self):
        order = TestDataFactory.create_order_review(self.user, status='delivered', delivered_days_ago=1)
        order.refund_status = 'full'
        with self.assertRaisesMessage(RefundNotAllowed, 'Order has already been refunded'):
            check_eligibility(order)

    def test_open_refund_blocks_new_request(self):
        order = TestDataFactory.create_order_review(self.user, status='delivered', delivered_days_ago=1)
        TestDataFactory.create_refund(order, status='under_review')
        with self.assertRaisesMessage(RefundNotAllowed, 'already pending'):
            check_eligibility(order)

    def test_closed_refund_allows_new_request(self):
        order = TestDataFactory.create_order_review(self.user, status='delivered', delivered_days_ago=1)
        TestDataFactory.create_refund(order, status='rejected')
        check_eligibility(order)


class RefundRequestAPITests(TestCase):
    """Test customer refund endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order_review(self.user, status='delivered', total=Decimal('100.00'),
                                                         delivered_days_ago=2)

    def request_refund(self, **extra):
        payload = {'order_id': self.order.id, 'reason': 'wrong_item', 'description': 'Got a hat, ordered a patch'}
        payload.update(extra)
        return self.client.post('/api/v1/refunds/request/', payload, format='json')

    def test_full_refund_request(self):
        response = self.request_refund()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['refund_amount'], '100.00')
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['order_number'], self.order.order_number)
        self.assertTrue(response.data['can_be_cancelled'])
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_status, 'requested')
        self.assertTrue(AuditLog.objects.filter(action='refund_request').exists())

    def test_partial_refund_requires_amount(self):
        response = self.request_refund(refund_type='partial')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'REFUND_REQUEST_FAILED')

    def test_amount_cannot_exceed_order(self):
        response = self.request_refund(refund_type='partial', refund_amount='100.01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('cannot exceed', response.data['error'])

    def test_second_request_blocked(self):
        self.request_refund()
        response = self.request_refund()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(RefundRequest.objects.count(), 1)

    def test_other_users_order(self):
        other_order = TestDataFactory.create_order_review(TestDataFactory.create_user(), status='delivered',
                                                          delivered_days_ago=1)
        response = self.request_refund(order_id=other_order.id)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_invalid_reason(self):
        response = self.request_refund(reason='bored')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reason', response.data)

    def test_user_refund_list_and_detail(self):
        refund_id = self.request_refund().data['id']
        response = self.client.get('/api/v1/refunds/user/')
        self.assertEqual([r['id'] for r in response.data], [refund_id])

        response = self.client.get(f'/api/v1/refunds/{refund_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/refunds/{refund_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_pending_refund(self):
        refund_id = self.request_refund().data['id']
        response = self.client.post(f'/api/v1/refunds/{refund_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_status, 'none')

    def test_cannot_cancel_completed_refund(self):
        refund = TestDataFactory.create_refund(self.order, status='completed')
        response = self.client.post(f'/api/v1/refunds/{refund.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_STATUS')


class RefundAdminTests(TestCase):
    """Test admin review, approval and rejection"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(stock=4)
        self.order = TestDataFactory.create_order_review(self.customer, status='delivered', total=Decimal('100.00'),
                                                         delivered_days_ago=2)
        self.order.stock_deductions = [{'product_id': str(self.product.id), 'variant_id': None, 'quantity': 5, 'restored': 0}]
        self.order.stock_deducted_at = timezone.now()
        self.order.save()
        self.client.authenticate_user(self.admin)

    def test_customer_cannot_approve(self):
        refund = TestDataFactory.create_refund(self.order)
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/v1/refunds/{refund.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_start_review(self):
        refund = TestDataFactory.create_refund(self.order)
        response = self.client.put(f'/api/v1/refunds/{refund.id}/review/', {'admin_notes': 'Checking photos'},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'under_review')
        self.assertEqual(response.data['reviewed_by'], self.admin.id)

    def test_approve_full_refund(self):
        refund = TestDataFactory.create_refund(self.order, reason='wrong_item', refund_items=[
            {'product_id': str(self.product.id), 'quantity': 2},
        ])
        response = self.client.post(f'/api/v1/refunds/{refund.id}/approve/', {'refund_method': 'store_credit'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertEqual(response.data['refund_method'], 'store_credit')
        self.assertTrue(response.data['inventory_restored'])

        self.order.refresh_from_db()
        self.assertEqual(self.order.refunded_amount, Decimal('100.00'))
        self.assertEqual(self.order.refund_status, 'full')
        self.assertEqual(self.order.status, 'refunded')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 6)

    def test_approve_partial_refund_then_remaining(self):
        first = TestDataFactory.create_refund(self.order, refund_type='partial', refund_amount=Decimal('40.00'))
        self.client.post(f'/api/v1/refunds/{first.id}/approve/', {}, format='json')
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_status, 'partial')
        self.assertEqual(self.order.status, 'delivered')
        self.assertEqual(self.order.remaining_refundable, Decimal('60.00'))

        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/refunds/request/', {
            'order_id': self.order.id, 'reason': 'other', 'refund_type': 'partial', 'refund_amount': '70.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/refunds/request/', {'order_id': self.order.id, 'reason': 'other'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['refund_amount'], '60.00')

    def test_damaged_goods_are_not_restocked(self):
        refund = TestDataFactory.create_refund(self.order, reason='damaged_defective', refund_items=[
            {'product_id': str(self.product.id), 'quantity': 2},
        ])
        self.client.post(f'/api/v1/refunds/{refund.id}/approve/', {}, format='json')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 4)

    def test_embroidered_items_are_not_restocked(self):
        refund = TestDataFactory.create_refund(self.order, reason='changed_mind', refund_items=[
            {'product_id': str(self.product.id), 'quantity': 1, 'customization': {'designs': [{'totalPrice': 5}]}},
            {'product_id': 'custom-embroidery', 'quantity': 1},
            {'product_id': str(self.product.id), 'quantity': 3},
        ])
        self.assertEqual(restore_refund_inventory(refund), 3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)
        # a second call is a no-op
        self.assertEqual(restore_refund_inventory(refund), 0)

    def test_restock_limited_to_deducted_units(self):
        first = TestDataFactory.create_refund(self.order, reason='wrong_item', refund_type='partial',
                                              refund_amount=Decimal('30.00'), refund_items=[
                                                  {'product_id': str(self.product.id), 'quantity': 3},
                                              ])
        self.assertEqual(restore_refund_inventory(first), 3)
        second = TestDataFactory.create_refund(self.order, reason='wrong_item', refund_items=[
            {'product_id': str(self.product.id), 'quantity': 4},
        ])
        self.assertEqual(restore_refund_inventory(second), 2)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 9)
        self.order.refresh_from_db()
        self.assertEqual(self.order.stock_deductions[0]['restored'], 5)

    def test_nothing_restocked_when_stock_was_never_deducted(self):
        order = TestDataFactory.create_order_review(self.customer, status='delivered', delivered_days_ago=1)
        refund = TestDataFactory.create_refund(order, reason='changed_mind', refund_items=[
            {'product_id': str(self.product.id), 'quantity': 2},
        ])
        response = self.client.post(f'/api/v1/refunds/{refund.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 4)

    def test_approve_rechecks_status_from_database(self):
        refund = TestDataFactory.create_refund(self.order, refund_type='partial', refund_amount=Decimal('40.00'))
        stale = RefundRequest.objects.get(pk=refund.id)
        approve_refund(refund, self.admin)
        with self.assertRaises(InvalidTransition):
            approve_refund(stale, self.admin)
        self.order.refresh_from_db()
        self.assertEqual(self.order.refunded_amount, Decimal('40.00'))

    def test_cannot_approve_twice(self):
        refund = TestDataFactory.create_refund(self.order)
        self.client.post(f'/api/v1/refunds/{refund.id}/approve/', {}, format='json')
        response = self.client.post(f'/api/v1/refunds/{refund.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_STATUS')

    def test_reject_requires_reason(self):
        refund = TestDataFactory.create_refund(self.order)
        response = self.client.post(f'/api/v1/refunds/{refund.id}/reject/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rejection_reason', response.data)

    def test_reject_resets_order_refund_status(self):
        self.order.refund_status = 'requested'
        self.order.save()
        refund = TestDataFactory.create_refund(self.order)
        response = self.client.post(f'/api/v1/refunds/{refund.id}/reject/',
                                    {'rejection_reason': 'Outside policy'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'rejected')
        self.assertIsNotNone(response.data['rejected_at'])
        self.order.refresh_from_db()
        self.assertEqual(self.order.refund_status, 'none')

    def test_admin_list_filters(self):
        TestDataFactory.create_refund(self.order, reason='wrong_item')
        TestDataFactory.create_refund(self.order, reason='other', status='rejected')
        response = self.client.get('/api/v1/refunds/admin/all/', {'status': 'pending'})
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/refunds/admin/all/', {'reason': 'other'})
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/refunds/admin/all/', {'search': self.order.order_number})
        self.assertEqual(len(response.data), 2)

    def test_stats(self):
        TestDataFactory.create_refund(self.order, refund_amount=Decimal('40.00'), status='completed')
        TestDataFactory.create_refund(self.order, refund_amount=Decimal('25.00'))
        response = self.client.get('/api/v1/refunds/admin/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['by_status']['completed'], 1)
        self.assertEqual(response.data['by_status']['pending'], 1)
        self.assertEqual(response.data['by_status']['failed'], 0)
        self.assertEqual(Decimal(response.data['total_requested_amount']), Decimal('65.00'))
        self.assertEqual(Decimal(response.data['total_refunded_amount']), Decimal('40.00'))
