"""
Test suite for the pricing module
Tests: quotation totals, wholesale cart math, cart totals, refunds, exchange rates with retry and fallback
"""
from decimal import Decimal
from unittest import mock
import requests
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from storefront.core.exceptions import ExchangeRateUnavailable
from storefront.core.models import Setting
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.pricing import services


class QuotationTotalsTests(TestCase):
    """Test quotation total calculations"""

    def test_totals_with_default_deposit(self):
        """Test subtotal, default 50% deposit and balance"""
        totals = services.calculate_quotation_totals([
            {'description': 'Table', 'unit_price': '120.00', 'quantity': 2},
            {'description': 'Chair', 'unit_price': '45.50', 'quantity': 4},
        ])
        self.assertEqual(totals['subtotal'], Decimal('422.00'))
        self.assertEqual(totals['total'], Decimal('422.00'))
        self.assertEqual(totals['deposit_amount'], Decimal('211.00'))
        self.assertEqual(totals['balance_amount'], Decimal('211.00'))
        self.assertEqual(totals['line_items'][1]['line_total'], Decimal('182.00'))

    def test_deposit_plus_balance_equals_total(self):
        """Test odd cent totals still split exactly"""
        totals = services.calculate_quotation_totals(
            [{'unit_price': '33.33', 'quantity': 1}], deposit_percentage=33
        )
        self.assertEqual(totals['deposit_amount'], Decimal('11.00'))
        self.assertEqual(totals['deposit_amount'] + totals['balance_amount'], totals['total'])

    def test_tax_and_shipping(self):
        """Test tax applies to the subtotal and shipping is added after tax"""
        totals = services.calculate_quotation_totals(
            [{'unit_price': '100.00', 'quantity': 1}], deposit_percentage=0,
            tax_rate='0.08', shipping_amount='15.00',
        )
        self.assertEqual(totals['tax_amount'], Decimal('8.00'))
        self.assertEqual(totals['total'], Decimal('123.00'))
        self.assertEqual(totals['deposit_amount'], Decimal('0.00'))
        self.assertEqual(totals['balance_amount'], Decimal('123.00'))

    def test_default_deposit_follows_setting(self):
        """Test the default deposit percentage comes from settings"""
        Setting.objects.create(key='QUOTATION_DEFAULT_DEPOSIT_PERCENTAGE', value='25')
        totals = services.calculate_quotation_totals([{'unit_price': '100.00', 'quantity': 1}])
        self.assertEqual(totals['deposit_amount'], Decimal('25.00'))

    def test_line_total_with_discount(self):
        """Test a single line total with a discount"""
        self.assertEqual(services.calculate_quotation_line_total('19.99', 3, '5.00'), Decimal('54.97'))


class WholesaleCartMathTests(TestCase):
    """Test wholesale cart totals in cents"""

    def test_cart_totals(self):
        """Test subtotal, deposit and balance in cents"""
        totals = services.calculate_wholesale_cart_totals([
            {'product_id': 'a', 'quantity': 10, 'unit_price_cents': 1999, 'moq': 12},
            {'product_id': 'b', 'quantity': 5, 'unit_price_cents': 500},
        ], deposit_percentage=30)
        self.assertEqual(totals['subtotal_cents'], 22490)
        self.assertEqual(totals['deposit_cents'], 6747)
        self.assertEqual(totals['balance_due_cents'], 15743)
        self.assertFalse(totals['items'][0]['moq_compliant'])
        self.assertTrue(totals['items'][1]['moq_compliant'])

    def test_default_cart_deposit(self):
        """Test the wholesale cart deposit defaults to 50%"""
        totals = services.calculate_wholesale_cart_totals([{'quantity': 1, 'unit_price_cents': 1001}])
        self.assertEqual(totals['deposit_cents'], 501)
        self.assertEqual(totals['balance_due_cents'], 500)

    def test_validate_moq(self):
        """Test MOQ violations report the item index"""
        result = services.validate_wholesale_moq([
            {'quantity': 5, 'moq': 10},
            {'quantity': 10, 'moq': 10},
            {'quantity': 1},
        ])
        self.assertFalse(result['is_valid'])
        self.assertEqual(result['violations'], [{'index': 0, 'quantity': 5, 'moq': 10}])

    def test_wholesale_deposit(self):
        """Test deposit on price/quantity items"""
        items = [{'price': '12.50', 'quantity': 4}, {'price': '3.33', 'quantity': 3}]
        self.assertEqual(services.calculate_wholesale_order_total(items), Decimal('59.99'))
        self.assertEqual(services.calculate_wholesale_deposit(items, 30), Decimal('18.00'))


class CartTotalsTests(TestCase):
    """Test retail cart totals"""

    def test_cart_totals_with_default_tax(self):
        """Test tax uses the default 8% rate"""
        seller = TestDataFactory.create_seller()
        cart = TestDataFactory.create_cart(buyer=TestDataFactory.create_buyer())
        TestDataFactory.create_cart_item(cart, TestDataFactory.create_product(seller, price=Decimal('19.99')), quantity=3)
        totals = services.calculate_cart_totals(cart)
        self.assertEqual(totals['subtotal'], Decimal('59.97'))
        self.assertEqual(totals['tax'], Decimal('4.80'))
        self.assertEqual(totals['total'], Decimal('64.77'))
        self.assertEqual(totals['currency'], 'USD')


class RefundAmountTests(TestCase):
    """Test refund amount rules"""

    def setUp(self):
        self.order = mock.Mock(total=Decimal('100.00'), amount_refunded=Decimal('30.00'))

    def test_full_refund(self):
        """Test a full refund returns the order total"""
        self.assertEqual(services.calculate_refund_amount(self.order, 'full'), Decimal('100.00'))

    def test_partial_refund(self):
        """Test a partial refund sums line amounts"""
        amount = services.calculate_refund_amount(self.order, 'partial', [{'amount': '20.00'}, {'amount': '5.50'}])
        self.assertEqual(amount, Decimal('25.50'))

    def test_partial_refund_requires_items(self):
        """Test partial refunds need line items"""
        with self.assertRaises(ValidationError):
            services.calculate_refund_amount(self.order, 'partial', [])

    def test_partial_refund_cannot_exceed_remaining(self):
        """Test partial refunds cannot exceed what is left to refund"""
        with self.assertRaises(ValidationError):
            services.calculate_refund_amount(self.order, 'partial', [{'amount': '70.01'}])

    def test_unknown_refund_type(self):
        """Test unknown refund types are rejected"""
        with self.assertRaises(ValidationError):
            services.calculate_refund_amount(self.order, 'store_credit')


def _rates_response(base, rates):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {'date': '2026-10-19', base: rates}
    return response


@mock.patch('storefront.pricing.services.time.sleep')
@mock.patch('storefront.pricing.services.requests.get')
class ExchangeRateTests(TestCase):
    """Test exchange rate fetching, caching, retry and fallback"""

    def setUp(self):
        cache.clear()

    def test_same_currency(self, mock_get, mock_sleep):
        """Test converting to the same currency needs no lookup"""
        self.assertEqual(services.get_exchange_rate('usd', 'USD'), Decimal('1'))
        mock_get.assert_not_called()

    def test_fetch_and_cache(self, mock_get, mock_sleep):
        """Test a fetched rate is cached"""
        mock_get.return_value = _rates_response('usd', {'eur': 0.92})
        self.assertEqual(services.get_exchange_rate('USD', 'EUR'), Decimal('0.92'))
        self.assertEqual(services.get_exchange_rate('USD', 'EUR'), Decimal('0.92'))
        self.assertEqual(mock_get.call_count, 1)
        self.assertIn('/usd.json', mock_get.call_args.args[0])

    def test_retry_then_success(self, mock_get, mock_sleep):
        """Test transient failures are retried with growing delays"""
        mock_get.side_effect = [
            requests.ConnectionError('down'),
            requests.Timeout('slow'),
            _rates_response('usd', {'gbp': 0.79}),
        ]
        self.assertEqual(services.get_exchange_rate('USD', 'GBP'), Decimal('0.79'))
        self.assertEqual(mock_get.call_count, 3)
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [1.0, 2.0])

    def test_last_known_good_fallback(self, mock_get, mock_sleep):
        """Test the last good rate is used once the fresh one expires and fetching fails"""
        mock_get.return_value = _rates_response('usd', {'eur': 0.9})
        services.get_exchange_rate('USD', 'EUR')
        cache.delete('fx:USD_EUR')

        mock_get.side_effect = requests.ConnectionError('down')
        self.assertEqual(services.get_exchange_rate('USD', 'EUR'), Decimal('0.9'))

    def test_unavailable_after_retries(self, mock_get, mock_sleep):
        """Test a 503 error when no rate was ever fetched"""
        mock_get.side_effect = requests.ConnectionError('down')
        with self.assertRaises(ExchangeRateUnavailable):
            services.get_exchange_rate('USD', 'JPY')
        self.assertEqual(mock_get.call_count, 3)

    def test_missing_currency_in_response(self, mock_get, mock_sleep):
        """Test a response without the target currency counts as a failure"""
        mock_get.return_value = _rates_response('usd', {'eur': 0.9})
        with self.assertRaises(ExchangeRateUnavailable):
            services.get_exchange_rate('USD', 'XYZ')

    def test_convert_price(self, mock_get, mock_sleep):
        """Test conversion rounds to cents"""
        mock_get.return_value = _rates_response('usd', {'eur': 0.9234})
        self.assertEqual(services.convert_price('19.99', 'USD', 'EUR'), Decimal('18.46'))

    def test_exchange_rate_endpoint(self, mock_get, mock_sleep):
        """Test the public exchange rate endpoint"""
        mock_get.return_value = _rates_response('usd', {'eur': 0.9})
        client = AuthenticatedAPIClient()
        response = client.get('/api/v1/pricing/exchange-rate/?from=usd&to=eur')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['from'], 'USD')
        self.assertEqual(response.data['rate'], Decimal('0.9'))

    def test_exchange_rate_endpoint_unavailable(self, mock_get, mock_sleep):
        """Test the endpoint answers 503 when no rate is available"""
        mock_get.side_effect = requests.ConnectionError('down')
        client = AuthenticatedAPIClient()
        response = client.get('/api/v1/pricing/exchange-rate/?from=USD&to=EUR')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['code'], 'exchange_rate_unavailable')


class PricingAPITests(TestCase):
    """Test pricing preview endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_seller())

    def test_quotation_preview(self):
        """Test quotation preview totals"""
        response = self.client.post('/api/v1/pricing/quotation-preview/', {
            'line_items': [{'description': 'Lamp', 'unit_price': '80.00', 'quantity': 5}],
            'deposit_percentage': '20',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], Decimal('400.00'))
        self.assertEqual(response.data['deposit_amount'], Decimal('80.00'))

    def test_quotation_preview_requires_items(self):
        """Test an empty quotation is rejected"""
        response = self.client.post('/api/v1/pricing/quotation-preview/', {'line_items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_wholesale_cart_preview(self):
        """Test wholesale cart preview in cents"""
        response = self.client.post('/api/v1/pricing/wholesale-cart-preview/', {
            'items': [{'product_id': 'p1', 'quantity': 12, 'unit_price_cents': 250, 'moq': 12}],
            'deposit_percentage': '50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal_cents'], 3000)
        self.assertEqual(response.data['deposit_cents'], 1500)

    def test_validate_moq_endpoint(self):
        """Test the MOQ validation endpoint"""
        response = self.client.post('/api/v1/pricing/validate-moq/', {
            'items': [{'quantity': 2, 'moq': 6}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_valid'])
