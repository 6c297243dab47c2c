"""
Test suite for embroidery options and custom embroidery orders
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from storefront.core.exceptions import InvalidSelection
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import CustomEmbroideryOrder
from .services import selected_option_ids, validate_selection


class SelectionValidationTests(TestCase):
    """Test style selection checks against the option catalog"""

    def setUp(self):
        self.full = TestDataFactory.create_embroidery_option(name='Full Coverage', category='coverage')
        self.metallic = TestDataFactory.create_embroidery_option(name='Metallic', category='threads')
        self.glow = TestDataFactory.create_embroidery_option(
            name='Glow Thread', category='threads', incompatible_with=[self.metallic.id]
        )
        self.retired = TestDataFactory.create_embroidery_option(name='Old Border', category='border', is_active=False)

    def test_selected_option_ids(self):
        styles = {
            'coverage': {'id': self.full.id},
            'border': None,
            'threads': [{'id': self.metallic.id}, {'name': 'no id'}],
        }
        self.assertEqual(selected_option_ids(styles), [self.full.id, self.metallic.id])
        self.assertEqual(selected_option_ids('nope'), [])

    def test_valid_selection(self):
        options = validate_selection({'coverage': {'id': self.full.id}, 'threads': [{'id': self.metallic.id}]})
        self.assertEqual(set(options), {self.full.id, self.metallic.id})

    def test_empty_selection(self):
        self.assertEqual(validate_selection({}), {})

    def test_incompatible_options(self):
        with self.assertRaisesMessage(InvalidSelection, 'cannot be combined'):
            validate_selection({'threads': [{'id': self.metallic.id}, {'id': self.glow.id}]})

    def test_inactive_option(self):
        with self.assertRaisesMessage(InvalidSelection, f'Embroidery option {self.retired.id} is not available'):
            validate_selection({'border': {'id': self.retired.id}})

    def test_missing_option(self):
        with self.assertRaises(InvalidSelection):
            validate_selection({'coverage': {'id': 987654}})

    def test_non_integer_id(self):
        with self.assertRaises(InvalidSelection):
            validate_selection({'coverage': {'id': 'full'}})


class EmbroideryOptionAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        TestDataFactory.create_embroidery_option(name='Half Coverage', category='coverage')
        TestDataFactory.create_embroidery_option(name='Gold Thread', category='threads', level='premium')
        self.hidden = TestDataFactory.create_embroidery_option(name='Retired', category='threads', is_active=False)

    def test_public_list_active_only(self):
        response = self.client.get('/api/v1/embroidery-options/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_filter_by_category_and_level(self):
        response = self.client.get('/api/v1/embroidery-options/', {'category': 'threads'})
        self.assertEqual([o['name'] for o in response.data], ['Gold Thread'])
        response = self.client.get('/api/v1/embroidery-options/', {'level': 'basic'})
        self.assertEqual([o['name'] for o in response.data], ['Half Coverage'])

    def test_admin_filters_inactive(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/embroidery-options/', {'is_active': 'false'})
        self.assertEqual([o['name'] for o in response.data], ['Retired'])

    def test_non_admin_cannot_see_inactive(self):
        response = self.client.get('/api/v1/embroidery-options/', {'is_active': 'false'})
        self.assertNotIn('Retired', [o['name'] for o in response.data])

    def test_admin_create_and_toggle(self):
        self.client.authenticate_user(self.admin)
        data = {'name': 'Velcro Backing', 'category': 'backing', 'price': '3.00', 'incompatible_with': []}
        response = self.client.post('/api/v1/embroidery-options/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.patch(f'/api/v1/embroidery-options/{self.hidden.id}/toggle/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_active'])

    def test_customer_cannot_create(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/embroidery-options/', {'name': 'X', 'category': 'coverage'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CustomEmbroideryAPITests(TestCase):
    """Test custom embroidery order endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.coverage = TestDataFactory.create_embroidery_option(name='Full Coverage', price=Decimal('5.00'))
        self.metallic = TestDataFactory.create_embroidery_option(name='Metallic', category='threads',
                                                                 price=Decimal('2.00'))
        self.glow = TestDataFactory.create_embroidery_option(
            name='Glow', category='threads', incompatible_with=[self.metallic.id]
        )

    def order_payload(self, **styles):
        return {
            'design_name': 'Club Crest',
            'dimensions': {'width': '3', 'height': '3'},
            'stitch_count': 9000,
            'selected_styles': styles,
        }

    def test_create_prices_on_server(self):
        self.client.authenticate_user(self.customer)
        payload = self.order_payload(
            coverage={'id': self.coverage.id, 'price': '999.00'},
            threads=[{'id': self.metallic.id, 'price': '0'}],
        )
        payload['total_price'] = '1.00'
        response = self.client.post('/api/v1/custom-embroidery/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['options_price'], '7.00')
        self.assertEqual(response.data['total_price'], '8.10')
        self.assertEqual(response.data['selected_styles']['coverage']['price'], '5.00')
        self.assertEqual(response.data['material_costs']['total'], '1.10')
        self.assertEqual(response.data['status'], 'pending')

    def test_create_rejects_incompatible_styles(self):
        self.client.authenticate_user(self.customer)
        payload = self.order_payload(threads=[{'id': self.metallic.id}, {'id': self.glow.id}])
        response = self.client.post('/api/v1/custom-embroidery/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_SELECTION')
        self.assertFalse(CustomEmbroideryOrder.objects.exists())

    def test_create_requires_dimensions(self):
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/v1/custom-embroidery/', {'design_name': 'Crest'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('dimensions', response.data)

    def test_list_is_admin_only(self):
        self.client.authenticate_user(self.customer)
        self.client.post('/api/v1/custom-embroidery/', self.order_payload(), format='json')
        self.assertEqual(self.client.get('/api/v1/custom-embroidery/').status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.get('/api/v1/custom-embroidery/my-orders/')
        self.assertEqual(len(response.data), 1)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/custom-embroidery/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_detail_hidden_from_other_customers(self):
        self.client.authenticate_user(self.customer)
        order_id = self.client.post('/api/v1/custom-embroidery/', self.order_payload(), format='json').data['id']

        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/custom-embroidery/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_deletes_pending_only(self):
        self.client.authenticate_user(self.customer)
        order_id = self.client.post('/api/v1/custom-embroidery/', self.order_payload(), format='json').data['id']
        CustomEmbroideryOrder.objects.filter(pk=order_id).update(status='in_production')
        response = self.client.delete(f'/api/v1/custom-embroidery/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        CustomEmbroideryOrder.objects.filter(pk=order_id).update(status='pending')
        response = self.client.delete(f'/api/v1/custom-embroidery/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_admin_updates_status(self):
        self.client.authenticate_user(self.customer)
        order_id = self.client.post('/api/v1/custom-embroidery/', self.order_payload(), format='json').data['id']

        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/custom-embroidery/{order_id}/status/',
                                     {'status': 'approved', 'notes': 'Looks good'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')

        response = self.client.patch(f'/api/v1/custom-embroidery/{order_id}/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
