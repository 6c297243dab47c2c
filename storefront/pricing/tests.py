"""
Tests for price calculations, material costs and the quote endpoint
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .calculators import (
    DEFAULT_MATERIALS, calculate_base_price, calculate_item_price, calculate_material_costs,
    calculate_order_totals, calculate_tiered_price, estimate_stitch_count, money, style_addons_total, to_decimal,
)
from .models import MaterialCost


class CalculatorTests(SimpleTestCase):
    """Pure price arithmetic, no database"""

    def test_to_decimal_tolerates_junk(self):
        self.assertEqual(to_decimal('abc'), Decimal('0'))
        self.assertEqual(to_decimal(None), Decimal('0'))
        self.assertEqual(to_decimal(float('nan')), Decimal('0'))
        self.assertEqual(to_decimal(True), Decimal('0'))
        self.assertEqual(to_decimal(' 2.5 '), Decimal('2.5'))
        self.assertEqual(to_decimal(0.1), Decimal('0.1'))

    def test_money_rounds_half_up(self):
        self.assertEqual(money('0.125'), Decimal('0.13'))
        self.assertEqual(money('0.124'), Decimal('0.12'))

    def test_material_costs_for_three_inch_patch(self):
        costs = calculate_material_costs(3, 3, 9000, materials=DEFAULT_MATERIALS)
        self.assertEqual(costs['fabric'], Decimal('0.43'))
        self.assertEqual(costs['patch_attach'], Decimal('0.42'))
        self.assertEqual(costs['cutaway_stabilizer'], Decimal('0.04'))
        self.assertEqual(costs['washaway_stabilizer'], Decimal('0.06'))
        self.assertEqual(costs['thread'], Decimal('0.04'))
        self.assertEqual(costs['bobbin'], Decimal('0.11'))
        self.assertEqual(costs['total'], Decimal('1.10'))
        self.assertEqual(costs['stitch_count'], 9000)

    def test_material_costs_estimate_missing_stitch_count(self):
        self.assertEqual(estimate_stitch_count(3, 3), 9000)
        costs = calculate_material_costs(3, 3, None, materials=DEFAULT_MATERIALS)
        self.assertEqual(costs['stitch_count'], 9000)
        self.assertEqual(costs['total'], Decimal('1.10'))

    def test_material_costs_zero_size(self):
        costs = calculate_material_costs(0, 3, 9000, materials=DEFAULT_MATERIALS)
        self.assertEqual(costs['total'], Decimal('0.00'))
        self.assertEqual(costs['stitch_count'], 0)

    def test_style_addons_total(self):
        styles = {
            'coverage': {'id': 'full', 'price': 2},
            'border': None,
            'threads': [{'price': '1.00'}, {'price': 0.5}, 'not-an-option'],
            'upgrades': [],
        }
        self.assertEqual(style_addons_total(styles), Decimal('3.50'))
        self.assertEqual(style_addons_total(None), Decimal('0.00'))
        self.assertEqual(style_addons_total(['coverage']), Decimal('0.00'))

    def test_base_price_minimum(self):
        self.assertEqual(calculate_base_price(1, 1), Decimal('15.00'))
        self.assertEqual(calculate_base_price(3, 3), Decimal('22.50'))

    def test_tiered_price(self):
        small = calculate_tiered_price(1, 1)
        self.assertEqual(small['tier'], 'small')
        self.assertEqual(small['base_price'], Decimal('15.00'))

        medium = calculate_tiered_price(3, 3)
        self.assertEqual(medium['tier'], 'medium')
        self.assertEqual(medium['base_price'], Decimal('20.25'))

        xlarge = calculate_tiered_price(10, 10)
        self.assertEqual(xlarge['tier'], 'xlarge')
        self.assertEqual(xlarge['base_price'], Decimal('175.00'))

    def test_tiered_price_in_centimetres(self):
        tiered = calculate_tiered_price('5.08', '5.08', 'cm')
        self.assertEqual(tiered['size_in_sq_inches'], Decimal('4.00'))
        self.assertEqual(tiered['tier'], 'small')

    def test_item_price_regular_product_with_styles(self):
        customization = {'selectedStyles': {'coverage': {'price': '2.50'}}}
        self.assertEqual(calculate_item_price('7', customization, Decimal('20.00')), Decimal('22.50'))
        self.assertEqual(calculate_item_price('7', None, Decimal('20.00')), Decimal('20.00'))

    def test_item_price_unknown_product_uses_fallback(self):
        self.assertEqual(calculate_item_price('ghost', {}, None, fallback_price='12.34'), Decimal('12.34'))
        self.assertEqual(calculate_item_price('ghost', {}, None), Decimal('0.00'))

    def test_item_price_custom_embroidery(self):
        customization = {
            'designs': [
                {'totalPrice': 30},
                {
                    'dimensions': {'width': 3, 'height': 3},
                    'stitchCount': 9000,
                    'selectedStyles': {'coverage': {'price': 2}, 'threads': [{'price': 1}, {'price': '0.5'}]},
                },
            ]
        }
        price = calculate_item_price('custom-embroidery', customization, None, materials=DEFAULT_MATERIALS)
        self.assertEqual(price, Decimal('34.60'))

    def test_item_price_legacy_embroidery_data(self):
        customization = {'embroideryData': {'totalPrice': 18.5}}
        self.assertEqual(calculate_item_price('custom-embroidery', customization, None), Decimal('18.50'))

    def test_item_price_custom_embroidery_never_negative(self):
        self.assertEqual(
            calculate_item_price('custom-embroidery', {'embroideryData': {'totalPrice': -50}}, None),
            Decimal('0.00'),
        )
        customization = {'designs': [{'selectedStyles': {'coverage': {'price': -40}}}]}
        self.assertEqual(
            calculate_item_price('custom-embroidery', customization, None, materials=DEFAULT_MATERIALS),
            Decimal('0.00'),
        )
        self.assertEqual(calculate_item_price('ghost', {}, None, fallback_price='-3'), Decimal('0.00'))

    def test_order_totals_below_free_shipping(self):
        totals = calculate_order_totals([(Decimal('20.00'), 2), (Decimal('5.50'), 1)])
        self.assertEqual(totals['subtotal'], Decimal('45.50'))
        self.assertEqual(totals['tax'], Decimal('3.64'))
        self.assertEqual(totals['shipping'], Decimal('9.99'))
        self.assertEqual(totals['total'], Decimal('59.13'))

    def test_order_totals_free_shipping_above_threshold(self):
        totals = calculate_order_totals([(Decimal('60.00'), 1)])
        self.assertEqual(totals['shipping'], Decimal('0.00'))
        self.assertEqual(totals['total'], Decimal('64.80'))

    def test_order_totals_threshold_is_exclusive(self):
        totals = calculate_order_totals([(Decimal('50.00'), 1)])
        self.assertEqual(totals['shipping'], Decimal('9.99'))

    def test_order_totals_selected_shipping_rate(self):
        totals = calculate_order_totals([(Decimal('60.00'), 1)], {'totalCost': 12.5})
        self.assertEqual(totals['shipping'], Decimal('12.50'))
        self.assertEqual(totals['total'], Decimal('77.30'))

    def test_order_totals_negative_shipping_rate_is_free(self):
        totals = calculate_order_totals([(Decimal('20.00'), 1)], {'totalCost': -100})
        self.assertEqual(totals['shipping'], Decimal('0.00'))
        self.assertEqual(totals['total'], Decimal('21.60'))


class MaterialTableTests(TestCase):

    def test_database_rows_override_defaults(self):
        TestDataFactory.create_material_cost(name='Fabric', cost=Decimal('68'))
        costs = calculate_material_costs(3, 3, 9000)
        self.assertEqual(costs['fabric'], Decimal('0.85'))

    def test_inactive_rows_are_ignored(self):
        TestDataFactory.create_material_cost(name='Fabric', cost=Decimal('68'), is_active=False)
        costs = calculate_material_costs(3, 3, 9000)
        self.assertEqual(costs['fabric'], Decimal('0.43'))


class MaterialCostAPITests(TestCase):
    """Test material cost endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.fabric = TestDataFactory.create_material_cost()
        self.retired = TestDataFactory.create_material_cost(name='Felt', is_active=False)

    def test_public_list_shows_active(self):
        response = self.client.get('/api/v1/material-costs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['name'] for m in response.data], ['Fabric'])

    def test_admin_sees_all(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/material-costs/')
        self.assertEqual(len(response.data), 2)

    def test_admin_create(self):
        self.client.authenticate_user(self.admin)
        data = {'name': 'Thread', 'cost': '4.00', 'width': '0', 'length': '5000', 'waste_factor': '1.2'}
        response = self.client.post('/api/v1/material-costs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(AuditLog.objects.filter(model_name='MaterialCost', action='create').exists())

    def test_waste_factor_below_one_rejected(self):
        self.client.authenticate_user(self.admin)
        data = {'name': 'Thread', 'cost': '4.00', 'waste_factor': '0.5'}
        response = self.client.post('/api/v1/material-costs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cannot_update(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.patch(f'/api/v1/material-costs/{self.fabric.id}/', {'cost': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_toggle_status(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/material-costs/{self.retired.id}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(MaterialCost.objects.get(pk=self.retired.id).is_active)


class QuoteAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_quote_in_inches(self):
        data = {'width': '3', 'height': '3', 'stitch_count': 9000,
                'selected_styles': {'coverage': {'price': '2.00'}}}
        response = self.client.post('/api/v1/pricing/quote/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['material_costs']['total'], Decimal('1.10'))
        self.assertEqual(response.data['options_price'], Decimal('2.00'))
        self.assertEqual(response.data['total_price'], Decimal('3.10'))
        self.assertEqual(response.data['base_price'], Decimal('22.50'))
        self.assertEqual(response.data['tiered_price']['tier'], 'medium')

    def test_quote_in_centimetres(self):
        data = {'width': '7.62', 'height': '7.62', 'unit': 'cm', 'stitch_count': 9000}
        response = self.client.post('/api/v1/pricing/quote/', data, format='json')
        self.assertEqual(response.data['material_costs']['total'], Decimal('1.10'))
        self.assertEqual(response.data['tiered_price']['tier'], 'medium')

    def test_quote_rejects_zero_width(self):
        response = self.client.post('/api/v1/pricing/quote/', {'width': '0', 'height': '3'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('width', response.data)
