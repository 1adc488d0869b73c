"""
Comprehensive test suite for Pricing module
Tests: Price calculation, making-charge discounts, tax, metal rates and the rate feed
"""
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from datetime import timedelta
from decimal import Decimal
from unittest import mock
import requests
from jewelstore.core.exceptions import ServiceError
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.pricing.calculator import calculate_product_price, calculate_tax, money
from jewelstore.pricing.discounts import resolve_making_charge_discount
from jewelstore.pricing.models import PriceRate, MakingChargeDiscount, TaxGroup
from jewelstore.pricing.rates import build_metal_summary, store_metal_rates, sync_rates


class PriceCalculationTests(TestCase):
    """Test calculate_product_price"""

    def setUp(self):
        self.metal = TestDataFactory.create_metal(name='Gold')
        self.purity = TestDataFactory.create_metal_purity(metal=self.metal, name='18K')
        TestDataFactory.create_price_rate(metal='gold', purity='18K', price_per_gram=Decimal('5000.00'))
        self.product = TestDataFactory.create_product(
            making_charge_amount=Decimal('500.00'), making_charge_percentage=Decimal('10.00')
        )
        self.variant = TestDataFactory.create_variant(
            product=self.product, metal=self.metal, metal_purity=self.purity, metal_weight=Decimal('2.000')
        )
        self.customer = TestDataFactory.create_customer()

    def test_metal_and_making(self):
        """Test metal value plus fixed and percentage making charge"""
        price = calculate_product_price(self.product, self.customer, self.variant)
        self.assertEqual(price['metal'], 10000.0)
        self.assertEqual(price['making'], 1500.0)
        self.assertEqual(price['subtotal'], 11500.0)
        self.assertEqual(price['discount'], 0.0)
        self.assertEqual(price['tax'], 0.0)
        self.assertEqual(price['total'], 11500.0)

    def test_latest_rate_used(self):
        """Test the newest rate wins"""
        PriceRate.objects.create(
            metal='gold', purity='18K', price_per_gram=Decimal('6000.00'),
            effective_at=timezone.now() + timedelta(minutes=1),
        )
        price = calculate_product_price(self.product, self.customer, self.variant)
        self.assertEqual(price['metal'], 12000.0)

    def test_diamond_value(self):
        """Test diamond price times count"""
        diamond = TestDataFactory.create_diamond(price=Decimal('2500.00'))
        self.variant.diamonds.create(diamond=diamond, diamonds_count=2)
        price = calculate_product_price(self.product, self.customer, self.variant)
        self.assertEqual(price['diamond'], 5000.0)
        self.assertEqual(price['stones'], 5000.0)
        self.assertEqual(price['subtotal'], 16500.0)

    def test_variant_id_accepted(self):
        """Test passing a variant id instead of an instance"""
        price = calculate_product_price(self.product, self.customer, self.variant.id)
        self.assertEqual(price['metal'], 10000.0)

    def test_no_variant(self):
        """Test a product priced without a variant only carries the fixed charge"""
        price = calculate_product_price(self.product, self.customer, None)
        self.assertEqual(price['metal'], 0.0)
        self.assertEqual(price['making'], 500.0)

    def test_missing_rate_prices_metal_at_zero(self):
        """Test a purity without a rate contributes nothing"""
        purity = TestDataFactory.create_metal_purity(metal=self.metal, name='14K')
        self.variant.metals.update(metal_purity=purity)
        price = calculate_product_price(self.product, self.customer, self.variant)
        self.assertEqual(price['metal'], 0.0)

    def test_metadata_making_types(self):
        """Test making_charge_types in metadata restrict the charge"""
        self.product.metadata = {'making_charge_types': ['percentage']}
        self.product.save()
        price = calculate_product_price(self.product, self.customer, self.variant)
        self.assertEqual(price['making'], 1000.0)

    def test_discount_applied_to_making_only(self):
        """Test a discount never exceeds the making charge"""
        MakingChargeDiscount.objects.create(name='Huge', discount_type='fixed', value=Decimal('99999.00'))
        price = calculate_product_price(self.product, self.customer, self.variant)
        self.assertEqual(price['discount'], 1500.0)
        self.assertEqual(price['total'], 10000.0)
        self.assertEqual(price['discount_details']['name'], 'Huge')

    def test_money_rounding(self):
        """Test half-up rounding to two places"""
        self.assertEqual(money('1.005'), Decimal('1.01'))
        self.assertEqual(money(None), Decimal('0.00'))


class DiscountResolutionTests(TestCase):
    """Test automatic making-charge discount selection"""

    def setUp(self):
        self.product = TestDataFactory.create_product()
        self.customer = TestDataFactory.create_customer(type='wholesaler')

    def test_no_discounts(self):
        """Test the empty discount when nothing applies"""
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertEqual(result['amount'], 0.0)
        self.assertIsNone(result['name'])

    def test_largest_amount_wins(self):
        """Test the larger discount is chosen"""
        MakingChargeDiscount.objects.create(name='Ten', discount_type='percentage', value=Decimal('10'))
        MakingChargeDiscount.objects.create(name='Flat', discount_type='fixed', value=Decimal('300'))
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertEqual(result['name'], 'Flat')
        self.assertEqual(result['amount'], 300.0)

    def test_tie_goes_to_specific_discount(self):
        """Test equal amounts prefer the customer type discount"""
        MakingChargeDiscount.objects.create(name='Global', discount_type='fixed', value=Decimal('100'))
        MakingChargeDiscount.objects.create(
            name='Wholesale', discount_type='fixed', value=Decimal('100'), customer_types=['wholesaler']
        )
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertEqual(result['name'], 'Wholesale')

    def test_half_cent_rounds_up(self):
        """Test a half cent discount rounds up like every other money value"""
        MakingChargeDiscount.objects.create(name='Half', discount_type='percentage', value=Decimal('50'))
        result = resolve_making_charge_discount(self.product, None, Decimal('10.05'), Decimal('100'))
        self.assertEqual(result['amount'], 5.03)

    def test_customer_type_mismatch(self):
        """Test a discount for other customer types is skipped"""
        MakingChargeDiscount.objects.create(
            name='Retail', discount_type='fixed', value=Decimal('100'), customer_types=['retailer']
        )
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertIsNone(result['name'])

    def test_brand_mismatch(self):
        """Test a brand discount only applies to that brand"""
        MakingChargeDiscount.objects.create(
            name='Other brand', discount_type='fixed', value=Decimal('100'), brand=TestDataFactory.create_brand()
        )
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertIsNone(result['name'])

    def test_min_cart_total(self):
        """Test the minimum cart total is enforced"""
        MakingChargeDiscount.objects.create(
            name='Big order', discount_type='fixed', value=Decimal('100'), min_cart_total=Decimal('10000')
        )
        small = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        large = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('20000'))
        self.assertIsNone(small['name'])
        self.assertEqual(large['name'], 'Big order')

    def test_expired_discount_ignored(self):
        """Test discounts outside their window are ignored"""
        MakingChargeDiscount.objects.create(
            name='Expired', discount_type='fixed', value=Decimal('100'),
            ends_at=timezone.now() - timedelta(days=1),
        )
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertIsNone(result['name'])

    def test_customer_group_discount(self):
        """Test a customer group discount applies to group members"""
        group = TestDataFactory.create_customer_group()
        self.customer.customer_group = group
        self.customer.save()
        MakingChargeDiscount.objects.create(
            name='Group', discount_type='percentage', value=Decimal('20'), customer_group=group
        )
        result = resolve_making_charge_discount(self.product, self.customer, Decimal('1000'), Decimal('5000'))
        self.assertEqual(result['amount'], 200.0)


class TaxCalculationTests(TestCase):
    """Test calculate_tax"""

    def test_sum_of_active_rates(self):
        """Test active taxes in active groups are summed"""
        group = TaxGroup.objects.create(name='GST')
        TestDataFactory.create_tax(rate=Decimal('1.500'), name='CGST', tax_group=group)
        TestDataFactory.create_tax(rate=Decimal('1.500'), name='SGST', tax_group=group)
        TestDataFactory.create_tax(rate=Decimal('5.000'), name='Old', tax_group=group, is_active=False)
        self.assertEqual(calculate_tax(Decimal('1000.00')), 30.0)

    def test_inactive_group_ignored(self):
        """Test taxes of inactive groups are ignored"""
        group = TaxGroup.objects.create(name='Retired', is_active=False)
        TestDataFactory.create_tax(rate=Decimal('18.000'), tax_group=group)
        self.assertEqual(calculate_tax(Decimal('1000.00')), 0.0)

    def test_non_positive_amount(self):
        """Test zero and negative amounts carry no tax"""
        TestDataFactory.create_tax(rate=Decimal('3.000'))
        self.assertEqual(calculate_tax(0), 0.0)
        self.assertEqual(calculate_tax(Decimal('-10')), 0.0)


class MetalRateTests(TestCase):
    """Test rate storage and the external feed"""

    def test_store_rates(self):
        """Test storing a batch of rates lower-cases the metal"""
        created = store_metal_rates('Gold', [{'purity': '22K', 'price_per_gram': '6100.50'}])
        self.assertEqual(len(created), 1)
        self.assertEqual(created[0].metal, 'gold')
        self.assertEqual(created[0].price_per_gram, Decimal('6100.50'))
        self.assertEqual(created[0].source, 'manual')

    def test_store_rates_requires_entries(self):
        """Test an empty batch is rejected"""
        with self.assertRaises(ServiceError):
            store_metal_rates('gold', [])

    def test_metal_summary_purity_order(self):
        """Test latest rate per purity in purity order"""
        store_metal_rates('gold', [
            {'purity': '18K', 'price_per_gram': '4500'},
            {'purity': '24K', 'price_per_gram': '6500'},
        ])
        summary = build_metal_summary('gold')
        self.assertEqual([r['purity'] for r in summary['rates']], ['24K', '18K'])

    def test_metal_summary_without_rates(self):
        """Test an empty summary for a metal without rates"""
        summary = build_metal_summary('platinum')
        self.assertIsNone(summary['latest'])
        self.assertEqual(summary['rates'], [])

    @override_settings(METAL_RATES_API_URL='')
    def test_sync_without_feed(self):
        """Test sync is a no-op without a configured feed"""
        result = sync_rates()
        self.assertTrue(result['success'])
        self.assertEqual(result['created'], 0)

    @override_settings(METAL_RATES_API_URL='https://rates.example.com/latest', METAL_RATES_API_KEY='', METAL_RATES_TIMEOUT=5)
    @mock.patch('jewelstore.pricing.rates.requests.get')
    def test_sync_from_feed(self, mock_get):
        """Test feed rates are stored with source api"""
        mock_get.return_value.json.return_value = {'rates': [
            {'metal': 'gold', 'purity': '22K', 'price_per_gram': '6200'},
            {'metal': 'silver', 'purity': '925', 'price_per_gram': '80'},
        ]}
        result = sync_rates('gold')
        self.assertEqual(result['created'], 1)
        self.assertEqual(PriceRate.objects.get().source, 'api')

    @override_settings(METAL_RATES_API_URL='https://rates.example.com/latest', METAL_RATES_API_KEY='', METAL_RATES_TIMEOUT=5)
    @mock.patch('jewelstore.pricing.rates.requests.get')
    def test_sync_feed_failure(self, mock_get):
        """Test a failing feed raises a service error"""
        mock_get.side_effect = requests.exceptions.ConnectionError('down')
        with self.assertRaises(ServiceError):
            sync_rates()


class PricingAPITests(TestCase):
    """Test pricing API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_store_rates_endpoint(self):
        """Test POST rates for a metal"""
        response = self.client.post(
            '/api/v1/admin/rates/gold/', {'rates': [{'purity': '24K', 'price_per_gram': '7000.00'}]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['rates']), 1)

    def test_rate_list(self):
        """Test rate list carries metal summaries"""
        TestDataFactory.create_metal(name='Gold')
        TestDataFactory.create_price_rate()
        response = self.client.get('/api/v1/admin/rates/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertIn('gold', response.data['metal_summaries'])

    def test_discount_percentage_over_100(self):
        """Test a percentage discount above 100 is rejected"""
        response = self.client.post('/api/v1/admin/offers/making-charge-discounts/', {
            'name': 'Too much', 'discount_type': 'percentage', 'value': '150',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_discount(self):
        """Test creating a making-charge discount"""
        response = self.client.post('/api/v1/admin/offers/making-charge-discounts/', {
            'name': 'Diwali', 'discount_type': 'percentage', 'value': '15', 'customer_types': ['Retailer'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_types'], ['retailer'])

    def test_tax_group_crud(self):
        """Test creating a tax group and a tax in it"""
        response = self.client.post('/api/v1/admin/settings/tax-groups/', {'name': 'GST'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        group_id = response.data['id']
        response = self.client.post('/api/v1/admin/settings/taxes/', {
            'tax_group': group_id, 'name': 'IGST', 'rate': '3.000',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get(f'/api/v1/admin/settings/tax-groups/{group_id}/')
        self.assertEqual(len(response.data['taxes']), 1)

    def test_customer_price_quote(self):
        """Test the customer price endpoint"""
        customer = TestDataFactory.create_customer()
        variant = TestDataFactory.create_variant()
        self.client.authenticate_user(customer)
        response = self.client.get(f'/api/v1/products/{variant.product_id}/price/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['variant_id'], variant.id)
        self.assertIn('total', response.data['price'])
