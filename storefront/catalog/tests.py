"""
Test suite for the catalog module
Tests: product presentation, effective pricing, variant lookup, seller CRUD and the public storefront
"""
from datetime import timedelta
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.catalog.models import Product
from storefront.catalog.presentation import (
    get_availability_text, get_product_badges, get_stock_level_indicator,
    is_available_for_purchase, is_variant_available, get_product_presentation
)
from storefront.catalog.utils import effective_price, find_variant


class ProductPresentationTests(TestCase):
    """Test display-ready product state"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()

    def test_availability_text(self):
        """Test availability wording for each stock situation"""
        self.assertEqual(get_availability_text(None), 'Unavailable')
        draft = TestDataFactory.create_product(self.seller, status='draft')
        self.assertEqual(get_availability_text(draft), 'Unavailable')
        self.assertEqual(get_availability_text(TestDataFactory.create_product(self.seller, stock_quantity=0)), 'Out of Stock')
        self.assertEqual(get_availability_text(TestDataFactory.create_product(self.seller, stock_quantity=9)), 'Low Stock')
        self.assertEqual(get_availability_text(TestDataFactory.create_product(self.seller, stock_quantity=10)), 'In Stock')

    def test_made_to_order_ignores_stock(self):
        """Test made-to-order and pre-order products are sold without stock"""
        made = TestDataFactory.create_product(self.seller, stock_quantity=0, product_type='made-to-order')
        pre = TestDataFactory.create_product(self.seller, stock_quantity=0, product_type='pre-order')
        self.assertEqual(get_availability_text(made), 'Made to Order')
        self.assertEqual(get_availability_text(pre), 'Pre-order')
        self.assertTrue(is_available_for_purchase(made))
        self.assertTrue(is_available_for_purchase(pre))

    def test_badges(self):
        """Test New, Sale and Low Stock badges"""
        product = TestDataFactory.create_product(
            self.seller, price=Decimal('20.00'), compare_at_price=Decimal('30.00'), stock_quantity=3
        )
        self.assertEqual(get_product_badges(product), ['New', 'Sale', 'Low Stock'])

    def test_old_product_not_new(self):
        """Test products older than 30 days lose the New badge"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=50)
        later = timezone.now() + timedelta(days=31)
        self.assertNotIn('New', get_product_badges(product, now=later))

    def test_stock_level_indicator(self):
        """Test stock level thresholds"""
        self.assertEqual(get_stock_level_indicator(0), 'out-of-stock')
        self.assertEqual(get_stock_level_indicator(4), 'critical')
        self.assertEqual(get_stock_level_indicator(9), 'low')
        self.assertEqual(get_stock_level_indicator(49), 'medium')
        self.assertEqual(get_stock_level_indicator(50), 'high')

    def test_variant_availability(self):
        """Test variant lookup is case-insensitive and stock-aware"""
        product = TestDataFactory.create_product(self.seller)
        TestDataFactory.create_variant(product, size='L', color='Blue', stock_quantity=0)
        TestDataFactory.create_variant(product, size='M', color='Red', stock_quantity=2)
        self.assertTrue(is_variant_available(product, 'M-RED'))
        self.assertFalse(is_variant_available(product, 'l-blue'))
        self.assertFalse(is_variant_available(product, 'xl-green'))

    def test_presentation_for_missing_product(self):
        """Test the placeholder presentation of a missing product"""
        presentation = get_product_presentation(None)
        self.assertEqual(presentation['availability_text'], 'Unavailable')
        self.assertFalse(presentation['available_for_purchase'])


class EffectivePriceTests(TestCase):
    """Test variant price overrides and promotions"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()

    def test_variant_price_overrides_product(self):
        """Test the variant price wins over the product price"""
        product = TestDataFactory.create_product(self.seller, price=Decimal('25.00'))
        variant = TestDataFactory.create_variant(product, price=Decimal('30.00'))
        self.assertEqual(effective_price(product, variant), (Decimal('30.00'), Decimal('30.00'), Decimal('0.00')))

    def test_running_promotion(self):
        """Test an active promotion discounts the price"""
        product = TestDataFactory.create_product(
            self.seller, price=Decimal('19.99'), promotion_active=True, discount_percentage=Decimal('15'),
            promotion_end_date=timezone.now() + timedelta(days=1),
        )
        price, original, discount = effective_price(product)
        self.assertEqual(price, Decimal('16.99'))
        self.assertEqual(original, Decimal('19.99'))
        self.assertEqual(discount, Decimal('3.00'))

    def test_expired_promotion(self):
        """Test an ended promotion no longer applies"""
        product = TestDataFactory.create_product(
            self.seller, price=Decimal('10.00'), promotion_active=True, discount_percentage=Decimal('50'),
            promotion_end_date=timezone.now() - timedelta(days=1),
        )
        self.assertEqual(effective_price(product)[0], Decimal('10.00'))

    def test_find_variant(self):
        """Test variant keys are matched lowercased"""
        product = TestDataFactory.create_product(self.seller)
        variant = TestDataFactory.create_variant(product, size='S', color='Black')
        self.assertEqual(find_variant(product, 'S-Black'), variant)
        self.assertIsNone(find_variant(product, None))


class ProductAPITests(TestCase):
    """Test seller product endpoints"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.seller)

    def test_create_product_generates_sku(self):
        """Test a SKU is generated when none is given"""
        data = {'name': 'Linen Shirt', 'price': '49.00', 'stock_quantity': 20, 'status': 'active'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['sku'].startswith('LINE-'))
        self.assertEqual(response.data['seller'], self.seller.id)

    def test_negative_price_rejected(self):
        """Test negative prices are rejected"""
        response = self.client.post('/api/v1/products/', {'name': 'Bad', 'price': '-1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)

    def test_buyer_cannot_manage_products(self):
        """Test buyers are refused on seller endpoints"""
        self.client.authenticate_user(TestDataFactory.create_buyer())
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters(self):
        """Test search and in_stock filters"""
        TestDataFactory.create_product(self.seller, name='Blue Mug', stock_quantity=0)
        TestDataFactory.create_product(self.seller, name='Red Mug', stock_quantity=5)
        TestDataFactory.create_product(self.seller, name='Teapot', stock_quantity=5)
        response = self.client.get('/api/v1/products/?search=mug&in_stock=true')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data], ['Red Mug'])

    def test_other_sellers_product_not_found(self):
        """Test sellers only see their own products"""
        product = TestDataFactory.create_product(TestDataFactory.create_seller())
        response = self.client.get(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_variant(self):
        """Test adding a size/color variant"""
        product = TestDataFactory.create_product(self.seller)
        response = self.client.post(f'/api/v1/products/{product.id}/variants/', {
            'size': 'XL', 'color': 'Green', 'stock_quantity': 4,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['variant_key'], 'xl-green')

    def test_product_presentation_endpoint(self):
        """Test the dashboard presentation endpoint"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=0)
        response = self.client.get(f'/api/v1/products/{product.id}/presentation/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['availability_text'], 'Out of Stock')


class StorefrontAPITests(TestCase):
    """Test the public storefront listing"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller(store_slug='corner-shop')
        self.client = AuthenticatedAPIClient()

    def test_lists_only_active_products(self):
        """Test drafts are hidden from the storefront"""
        TestDataFactory.create_product(self.seller, name='Visible')
        TestDataFactory.create_product(self.seller, name='Hidden', status='draft')
        response = self.client.get('/api/v1/storefront/corner-shop/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Visible')
        self.assertIn('presentation', response.data['results'][0])

    def test_pagination(self):
        """Test page and limit parameters"""
        for index in range(5):
            TestDataFactory.create_product(self.seller, name=f'Item {index}')
        response = self.client.get('/api/v1/storefront/corner-shop/products/?limit=2&page=3')
        self.assertEqual(response.data['total_pages'], 3)
        self.assertEqual(len(response.data['results']), 1)

    def test_new_product_invalidates_listing(self):
        """Test product writes refresh the cached listing"""
        TestDataFactory.create_product(self.seller)
        self.client.get('/api/v1/storefront/corner-shop/products/')
        TestDataFactory.create_product(self.seller)
        response = self.client.get('/api/v1/storefront/corner-shop/products/')
        self.assertEqual(response.data['count'], 2)

    def test_unknown_store(self):
        """Test unknown storefront slugs return 404"""
        response = self.client.get('/api/v1/storefront/nowhere/products/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_draft_product_detail_not_found(self):
        """Test draft products cannot be opened publicly"""
        product = TestDataFactory.create_product(self.seller, status='draft')
        response = self.client.get(f'/api/v1/storefront/corner-shop/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
