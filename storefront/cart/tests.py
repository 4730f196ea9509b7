"""
Test suite for the cart module
Tests: adding and merging items, seller isolation, quantity rules, stock and MOQ validation, wholesale cart checks
"""
from decimal import Decimal
from unittest import mock
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from storefront.core import events
from storefront.core.exceptions import BusinessRuleViolation
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.cart import services
from storefront.cart.models import Cart
from storefront.cart.validation import (
    validate_cart_item, validate_cart, validate_wholesale_cart, check_stock_availability
)


class CartServiceTests(TestCase):
    """Test cart service operations"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.product = TestDataFactory.create_product(self.seller, price=Decimal('10.00'), stock_quantity=50)

    def test_add_creates_session_cart(self):
        """Test the first add creates a cart bound to the session and seller"""
        cart = services.add_to_cart(self.product.id, 2, session_id='sess-1')
        self.assertEqual(cart.session_id, 'sess-1')
        self.assertEqual(cart.seller, self.seller)
        self.assertEqual(cart.get_item_count(), 2)

    def test_add_same_product_merges(self):
        """Test adding the same product and variant increases quantity"""
        TestDataFactory.create_variant(self.product, size='M', color='Red')
        services.add_to_cart(self.product.id, 1, variant_key='m-red', session_id='sess-2')
        cart = services.add_to_cart(self.product.id, 3, variant_key='M-Red', session_id='sess-2')
        self.assertEqual(cart.items.count(), 1)
        self.assertEqual(cart.items.get().quantity, 4)

    def test_variant_price_is_stored(self):
        """Test the variant's own price becomes the unit price"""
        TestDataFactory.create_variant(self.product, size='L', color='Blue', price=Decimal('12.50'))
        cart = services.add_to_cart(self.product.id, 1, variant_key='l-blue', session_id='sess-3')
        self.assertEqual(cart.items.get().unit_price, Decimal('12.50'))

    def test_different_seller_rejected(self):
        """Test a cart only holds products of one seller"""
        services.add_to_cart(self.product.id, 1, session_id='sess-4')
        other = TestDataFactory.create_product(TestDataFactory.create_seller())
        with self.assertRaises(BusinessRuleViolation):
            services.add_to_cart(other.id, 1, session_id='sess-4')

    def test_invalid_quantity(self):
        """Test quantities outside 1..10000 are rejected"""
        with self.assertRaises(ValidationError):
            services.add_to_cart(self.product.id, 0, session_id='sess-5')
        with self.assertRaises(ValidationError):
            services.add_to_cart(self.product.id, 10001, session_id='sess-5')

    def test_unknown_variant(self):
        """Test an unknown variant is reported as not found"""
        with self.assertRaises(NotFound):
            services.add_to_cart(self.product.id, 1, variant_key='xxl-gold', session_id='sess-6')

    def test_product_of_other_seller_not_found(self):
        """Test seller_id restricts which products can be added"""
        with self.assertRaises(NotFound):
            services.add_to_cart(self.product.id, 1, session_id='sess-7', seller_id=self.seller.id + 1000)

    def test_update_to_zero_removes_item(self):
        """Test setting quantity to zero removes the item"""
        cart = services.add_to_cart(self.product.id, 2, session_id='sess-8')
        item = cart.items.get()
        services.update_cart_item(cart, item.id, 0)
        self.assertEqual(cart.items.count(), 0)

    def test_clear_releases_seller(self):
        """Test clearing the cart allows another seller's products"""
        cart = services.add_to_cart(self.product.id, 1, session_id='sess-9')
        services.clear_cart(cart)
        other = TestDataFactory.create_product(TestDataFactory.create_seller())
        cart = services.add_to_cart(other.id, 1, session_id='sess-9')
        self.assertEqual(cart.seller, other.seller)

    def test_cart_updated_event(self):
        """Test adding to the cart emits cart_updated after commit"""
        receiver = mock.Mock()
        events.cart_updated.connect(receiver)
        self.addCleanup(events.cart_updated.disconnect, receiver)
        with self.captureOnCommitCallbacks(execute=True):
            cart = services.add_to_cart(self.product.id, 2, session_id='sess-10')
        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs['cart_id'], cart.id)
        self.assertEqual(receiver.call_args.kwargs['item_count'], 2)

    def test_merged_quantity_capped(self):
        """Test merging cannot push an item past the quantity limit"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=20000)
        services.add_to_cart(product.id, 9000, session_id='sess-11')
        with self.assertRaises(ValidationError):
            services.add_to_cart(product.id, 9000, session_id='sess-11')
        cart = services.get_cart_for_session('sess-11')
        self.assertEqual(cart.items.get().quantity, 9000)

    def test_signed_in_add_claims_guest_cart(self):
        """Test a buyer adding to a guest session cart becomes its owner"""
        buyer = TestDataFactory.create_buyer()
        guest_cart = services.add_to_cart(self.product.id, 1, session_id='sess-12')
        cart = services.add_to_cart(self.product.id, 1, session_id='sess-12', buyer=buyer)
        self.assertEqual(cart.id, guest_cart.id)
        self.assertEqual(cart.buyer, buyer)


class CartValidationTests(TestCase):
    """Test stock and MOQ validation"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()

    def test_valid_item(self):
        """Test an in-stock item within MOQ is valid"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=5)
        result = validate_cart_item(product.id, None, 5)
        self.assertTrue(result['valid'])
        self.assertTrue(result['stock_available'])

    def test_insufficient_stock(self):
        """Test the insufficient stock message"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=3)
        result = validate_cart_item(product.id, None, 5)
        self.assertFalse(result['valid'])
        self.assertIn('Insufficient stock. Available: 3, Requested: 5', result['errors'])

    def test_made_to_order_skips_stock(self):
        """Test made-to-order products never run out"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=0, product_type='made-to-order')
        self.assertTrue(validate_cart_item(product.id, None, 100)['valid'])

    def test_minimum_order_quantity(self):
        """Test the MOQ message"""
        product = TestDataFactory.create_product(self.seller, minimum_order_quantity=6)
        result = validate_cart_item(product.id, None, 2)
        self.assertFalse(result['moq_met'])
        self.assertIn('Minimum order quantity not met. Minimum: 6, Current: 2', result['errors'])

    def test_inactive_product(self):
        """Test draft products cannot be bought"""
        product = TestDataFactory.create_product(self.seller, status='draft')
        self.assertIn('Product is not available for purchase', validate_cart_item(product.id, None, 1)['errors'])

    def test_missing_product_and_variant(self):
        """Test missing products and variants are reported"""
        self.assertEqual(validate_cart_item(999999, None, 1)['errors'], ['Product not found'])
        product = TestDataFactory.create_product(self.seller)
        self.assertIn('Selected variant does not exist', validate_cart_item(product.id, 'xs-pink', 1)['errors'])

    def test_quantity_bounds(self):
        """Test out-of-range quantities short-circuit"""
        product = TestDataFactory.create_product(self.seller)
        self.assertEqual(validate_cart_item(product.id, None, 0)['errors'], ['Quantity must be between 1 and 10000'])

    def test_variant_stock(self):
        """Test variant stock is checked instead of product stock"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=100)
        TestDataFactory.create_variant(product, size='S', color='Black', stock_quantity=1)
        stock = check_stock_availability(product, 's-black', 2)
        self.assertFalse(stock['available'])
        self.assertEqual(stock['available_quantity'], 1)

    def test_validate_cart_prefixes_product_name(self):
        """Test cart errors name the product"""
        product = TestDataFactory.create_product(self.seller, name='Vase', stock_quantity=1)
        cart = TestDataFactory.create_cart(buyer=TestDataFactory.create_buyer())
        TestDataFactory.create_cart_item(cart, product, quantity=2)
        result = validate_cart(cart)
        self.assertFalse(result['valid'])
        self.assertEqual(result['errors'], ['Vase: Insufficient stock. Available: 1, Requested: 2'])
        self.assertFalse(result['all_items_in_stock'])

    def test_wholesale_cart_minimum_value(self):
        """Test wholesale carts need a $1000 order value"""
        product = TestDataFactory.create_product(self.seller, price=Decimal('100.00'), stock_quantity=100)
        cart = TestDataFactory.create_cart(buyer=TestDataFactory.create_buyer())
        TestDataFactory.create_cart_item(cart, product, quantity=5)
        result = validate_wholesale_cart(cart)
        self.assertFalse(result['wholesale_rules_met'])
        self.assertIn('Minimum wholesale order value not met. Minimum: $1000.00, Current: $500.00', result['errors'])
        self.assertEqual(result['deposit_required'], Decimal('150.00'))

    def test_wholesale_cart_uses_variant_price(self):
        """Test wholesale cart value uses the variant price"""
        product = TestDataFactory.create_product(self.seller, price=Decimal('100.00'), stock_quantity=100)
        variant = TestDataFactory.create_variant(product, price=Decimal('250.00'), stock_quantity=10)
        cart = TestDataFactory.create_cart(buyer=TestDataFactory.create_buyer())
        TestDataFactory.create_cart_item(cart, product, quantity=4, variant=variant, unit_price=Decimal('100.00'))
        result = validate_wholesale_cart(cart)
        self.assertTrue(result['valid'])
        self.assertEqual(result['current_order_value'], Decimal('1000.00'))


class CartAPITests(TestCase):
    """Test cart endpoints for anonymous sessions and buyers"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.product = TestDataFactory.create_product(self.seller, price=Decimal('8.00'))
        self.client = AuthenticatedAPIClient()

    def test_empty_cart(self):
        """Test an unknown session has an empty cart"""
        response = self.client.get('/api/v1/cart/', HTTP_X_CART_SESSION='nobody')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['id'])

    def test_anonymous_add_and_totals(self):
        """Test anonymous shoppers use the session header"""
        response = self.client.post('/api/v1/cart/items/', {
            'product_id': self.product.id, 'quantity': 3,
        }, format='json', HTTP_X_CART_SESSION='anon-1')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['item_count'], 3)

        response = self.client.get('/api/v1/cart/totals/', HTTP_X_CART_SESSION='anon-1')
        self.assertEqual(response.data['subtotal'], Decimal('24.00'))
        self.assertEqual(response.data['tax'], Decimal('1.92'))

    def test_buyer_add_writes_audit_log(self):
        """Test buyers' cart additions are audited"""
        buyer = TestDataFactory.create_buyer()
        self.client.authenticate_user(buyer)
        response = self.client.post('/api/v1/cart/items/', {
            'product_id': self.product.id, 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Cart.objects.get(pk=response.data['id']).buyer, buyer)
        self.assertTrue(AuditLog.objects.filter(action='cart_add', user=buyer).exists())

    def test_different_seller_error_body(self):
        """Test the different-seller error carries its code"""
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 1},
                         format='json', HTTP_X_CART_SESSION='anon-2')
        other = TestDataFactory.create_product(TestDataFactory.create_seller())
        response = self.client.post('/api/v1/cart/items/', {'product_id': other.id, 'quantity': 1},
                                    format='json', HTTP_X_CART_SESSION='anon-2')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'different_seller')

    def test_update_and_remove_item(self):
        """Test changing quantity and removing an item"""
        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 1},
                                    format='json', HTTP_X_CART_SESSION='anon-3')
        item_id = response.data['items'][0]['id']
        response = self.client.patch(f'/api/v1/cart/items/{item_id}/', {'quantity': 4},
                                     format='json', HTTP_X_CART_SESSION='anon-3')
        self.assertEqual(response.data['item_count'], 4)
        response = self.client.delete(f'/api/v1/cart/items/{item_id}/', HTTP_X_CART_SESSION='anon-3')
        self.assertEqual(response.data['item_count'], 0)

    def test_totals_without_cart(self):
        """Test totals of a missing cart are 404"""
        response = self.client.get('/api/v1/cart/totals/', HTTP_X_CART_SESSION='ghost')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_signed_in_read_claims_guest_cart(self):
        """Test reading the cart after login attaches the guest cart to the buyer"""
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 2},
                         format='json', HTTP_X_CART_SESSION='anon-4')
        buyer = TestDataFactory.create_buyer()
        self.client.authenticate_user(buyer)
        response = self.client.get('/api/v1/cart/', HTTP_X_CART_SESSION='anon-4')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Cart.objects.get(pk=response.data['id']).buyer, buyer)

    def test_validate_item_endpoint(self):
        """Test pre-add validation"""
        response = self.client.post('/api/v1/cart/validate-item/', {
            'product_id': self.product.id, 'quantity': 500,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['valid'])
