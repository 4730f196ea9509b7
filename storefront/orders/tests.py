"""
Test suite for the orders module
Tests: checkout from cart, stock decrements, status transitions, fulfillment, refunds, presentation, order API
"""
from decimal import Decimal
from unittest import mock
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from storefront.core import events
from storefront.core.exceptions import BusinessRuleViolation
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.catalog.models import Product
from storefront.cart import services as cart_services
from storefront.orders import services
from storefront.orders.models import Order, OrderEvent
from storefront.orders.presentation import get_order_presentation, get_next_order_statuses

ADDRESS = {
    'name': 'Jane Buyer',
    'address': '1 Market Street',
    'city': 'Springfield',
    'state': 'IL',
    'postal_code': '62701',
    'country': 'US',
}


class CheckoutTests(TestCase):
    """Test turning a cart into an order"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller()
        self.buyer = TestDataFactory.create_buyer()
        self.product = TestDataFactory.create_product(self.seller, price=Decimal('20.00'), stock_quantity=10)
        self.cart = TestDataFactory.create_cart(buyer=self.buyer)
        TestDataFactory.create_cart_item(self.cart, self.product, quantity=3)

    def test_create_order_from_cart(self):
        """Test totals, items and addresses are copied onto the order"""
        order = services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)
        self.assertTrue(order.order_number.startswith('ORD'))
        self.assertEqual(order.seller, self.seller)
        self.assertEqual(order.subtotal, Decimal('60.00'))
        self.assertEqual(order.tax_amount, Decimal('4.80'))
        self.assertEqual(order.total, Decimal('64.80'))
        self.assertEqual(order.items.count(), 1)
        self.assertEqual(order.shipping_city, 'Springfield')
        self.assertEqual(order.billing_city, 'Springfield')
        self.assertEqual(order.status, 'pending')

    def test_stock_decremented_and_cart_completed(self):
        """Test checkout takes stock and closes the cart"""
        services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)
        self.product.refresh_from_db()
        self.cart.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 7)
        self.assertEqual(self.cart.status, 'completed')

    def test_made_to_order_stock_untouched(self):
        """Test made-to-order products keep their stock count"""
        product = TestDataFactory.create_product(self.seller, stock_quantity=0, product_type='made-to-order')
        cart = TestDataFactory.create_cart(buyer=self.buyer)
        TestDataFactory.create_cart_item(cart, product, quantity=2)
        services.create_order(self.buyer, cart.id, shipping_address=ADDRESS)
        self.assertEqual(Product.objects.get(pk=product.id).stock_quantity, 0)

    def test_order_created_event_logged(self):
        """Test the order timeline starts with order_created"""
        order = services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)
        self.assertTrue(OrderEvent.objects.filter(order=order, event_type='order_created').exists())

    def test_events_fire_after_commit(self):
        """Test order_updated and sale_completed are sent on commit"""
        updated = mock.Mock()
        sold = mock.Mock()
        events.order_updated.connect(updated)
        events.sale_completed.connect(sold)
        self.addCleanup(events.order_updated.disconnect, updated)
        self.addCleanup(events.sale_completed.disconnect, sold)

        with self.captureOnCommitCallbacks(execute=True):
            order = services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)

        updated.assert_called_once()
        self.assertEqual(updated.call_args.kwargs['event_type'], 'order_created')
        sold.assert_called_once()
        self.assertEqual(sold.call_args.kwargs['order_id'], order.id)

    def test_missing_cart(self):
        """Test an unknown cart is not found"""
        with self.assertRaises(NotFound):
            services.create_order(self.buyer, 999999, shipping_address=ADDRESS)

    def test_foreign_cart_forbidden(self):
        """Test a buyer cannot check out another buyer's cart"""
        other = TestDataFactory.create_buyer()
        with self.assertRaises(PermissionDenied):
            services.create_order(other, self.cart.id, shipping_address=ADDRESS)

    def test_empty_cart_rejected(self):
        """Test an empty cart cannot be checked out"""
        cart = TestDataFactory.create_cart(buyer=self.buyer)
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.create_order(self.buyer, cart.id, shipping_address=ADDRESS)
        self.assertEqual(ctx.exception.code, 'cart_empty')

    def test_completed_cart_rejected(self):
        """Test a cart cannot be checked out twice"""
        services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)
        self.assertEqual(ctx.exception.code, 'cart_not_active')

    def test_insufficient_stock_fails_validation(self):
        """Test checkout re-validates stock"""
        Product.objects.filter(pk=self.product.id).update(stock_quantity=1)
        with self.assertRaises(ValidationError):
            services.create_order(self.buyer, self.cart.id, shipping_address=ADDRESS)
        self.assertFalse(Order.objects.exists())

    def test_session_reusable_after_checkout(self):
        """Test the same cart session starts a fresh cart after checkout"""
        buyer = TestDataFactory.create_buyer()
        cart = cart_services.add_to_cart(self.product.id, 1, session_id='sess-a', buyer=buyer)
        services.create_order(buyer, cart.id, shipping_address=ADDRESS)
        cart.refresh_from_db()
        self.assertIsNone(cart.session_id)
        next_cart = cart_services.add_to_cart(self.product.id, 1, session_id='sess-a', buyer=buyer)
        self.assertNotEqual(next_cart.id, cart.id)
        self.assertEqual(next_cart.status, 'active')
        self.assertEqual(next_cart.session_id, 'sess-a')

    def test_guest_cart_claimed_after_login(self):
        """Test a guest cart is attached to the buyer and can be checked out"""
        buyer = TestDataFactory.create_buyer()
        cart = cart_services.add_to_cart(self.product.id, 1, session_id='sess-b')
        self.assertIsNone(cart.buyer_id)
        cart = cart_services.add_to_cart(self.product.id, 1, session_id='sess-b', buyer=buyer)
        self.assertEqual(cart.buyer, buyer)
        order = services.create_order(buyer, cart.id, shipping_address=ADDRESS)
        self.assertEqual(order.items.get().quantity, 2)


class OrderLifecycleTests(TestCase):
    """Test status, fulfillment and refund operations"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller()
        self.buyer = TestDataFactory.create_buyer()
        product = TestDataFactory.create_product(self.seller, price=Decimal('50.00'))
        cart = TestDataFactory.create_cart(buyer=self.buyer)
        TestDataFactory.create_cart_item(cart, product, quantity=2)
        self.order = services.create_order(self.buyer, cart.id, shipping_address=ADDRESS)

    def _set_status(self, value):
        Order.objects.filter(pk=self.order.id).update(status=value)
        self.order.refresh_from_db()

    def test_valid_transition(self):
        """Test pending orders can move to awaiting_payment"""
        services.update_order_status(self.order, 'awaiting_payment', self.seller)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'awaiting_payment')
        event = OrderEvent.objects.filter(order=self.order, event_type='status_changed').get()
        self.assertEqual(event.payload, {'from': 'pending', 'to': 'awaiting_payment'})

    def test_invalid_transition(self):
        """Test skipping ahead in the progression is refused"""
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.update_order_status(self.order, 'fulfilled', self.seller)
        self.assertEqual(ctx.exception.code, 'invalid_transition')

    def test_paid_records_payment(self):
        """Test the paid status settles the payment"""
        self._set_status('awaiting_payment')
        services.update_order_status(self.order, 'paid', self.seller)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'paid')
        self.assertEqual(self.order.amount_paid, self.order.total)

    def test_fulfillment_with_tracking_updates_items(self):
        """Test tracking details reach every item when carrier is also given"""
        services.update_order_fulfillment(self.order, 'in_transit', self.seller,
                                          tracking_number='1Z999', carrier='UPS')
        item = self.order.items.get()
        self.assertEqual(item.tracking_number, '1Z999')
        self.assertEqual(item.item_status, 'in_transit')

    def test_fulfillment_without_carrier_leaves_items(self):
        """Test a tracking number alone only updates the order"""
        services.update_order_fulfillment(self.order, 'partially_fulfilled', self.seller, tracking_number='T-1')
        self.order.refresh_from_db()
        self.assertEqual(self.order.tracking_number, 'T-1')
        self.assertEqual(self.order.items.get().tracking_number, '')

    def test_unknown_fulfillment_status(self):
        """Test fulfillment statuses are checked"""
        with self.assertRaises(ValidationError):
            services.update_order_fulfillment(self.order, 'lost', self.seller)

    def test_full_refund(self):
        """Test a full refund returns the total and refunds the order"""
        self._set_status('fulfilled')
        refund = services.issue_refund(self.order, 'full', self.seller, reason='Damaged')
        self.order.refresh_from_db()
        self.assertEqual(refund.amount, Decimal('108.00'))
        self.assertEqual(self.order.status, 'refunded')
        self.assertEqual(self.order.payment_status, 'refunded')

    def test_partial_refund_keeps_status(self):
        """Test a partial refund only changes the payment status"""
        self._set_status('fulfilled')
        services.issue_refund(self.order, 'partial', self.seller, line_items=[{'amount': '30.00'}])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'fulfilled')
        self.assertEqual(self.order.payment_status, 'partially_refunded')
        self.assertEqual(self.order.amount_refunded, Decimal('30.00'))

    def test_partial_refunds_exhausting_total(self):
        """Test partial refunds adding up to the total refund the order"""
        self._set_status('delivered')
        services.issue_refund(self.order, 'partial', self.seller, line_items=[{'amount': '100.00'}])
        services.issue_refund(self.order, 'partial', self.seller, line_items=[{'amount': '8.00'}])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'refunded')

    def test_refund_over_remaining_rejected(self):
        """Test a refund cannot exceed what is left"""
        self._set_status('fulfilled')
        services.issue_refund(self.order, 'partial', self.seller, line_items=[{'amount': '100.00'}])
        with self.assertRaises(ValidationError):
            services.issue_refund(self.order, 'partial', self.seller, line_items=[{'amount': '10.00'}])

    def test_refund_counts_earlier_refunds_on_stale_order(self):
        """Test refunds re-read the order so an outdated copy cannot over-refund"""
        self._set_status('fulfilled')
        stale = Order.objects.get(pk=self.order.id)
        services.issue_refund(self.order, 'partial', self.seller, line_items=[{'amount': '100.00'}])
        with self.assertRaises(ValidationError):
            services.issue_refund(stale, 'partial', self.seller, line_items=[{'amount': '50.00'}])
        self.order.refresh_from_db()
        self.assertEqual(self.order.amount_refunded, Decimal('100.00'))

    def test_refund_not_allowed_for_pending(self):
        """Test pending orders are not refundable"""
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.issue_refund(self.order, 'full', self.seller)
        self.assertEqual(ctx.exception.code, 'not_refundable')

    def test_list_orders_cache_invalidated(self):
        """Test cached order lists refresh after a status change"""
        listed = services.list_orders(self.seller, 'seller')
        self.assertEqual(listed[0]['status'], 'pending')
        services.update_order_status(self.order, 'cancelled', self.seller)
        listed = services.list_orders(self.seller, 'seller')
        self.assertEqual(listed[0]['status'], 'cancelled')


class OrderPresentationTests(TestCase):
    """Test labels, colors and allowed actions"""

    def test_labels_for_order(self):
        """Test a processing order can be cancelled and fulfilled"""
        order = Order(status='processing', fulfillment_status='in_transit')
        presentation = get_order_presentation(order)
        self.assertEqual(presentation['status_label'], 'Processing')
        self.assertEqual(presentation['fulfillment_label'], 'In Transit')
        self.assertTrue(presentation['can_cancel'])
        self.assertTrue(presentation['can_fulfill'])
        self.assertFalse(presentation['can_refund'])

    def test_none_order(self):
        """Test a missing order presents as unknown"""
        presentation = get_order_presentation(None)
        self.assertEqual(presentation['status_label'], 'Unknown')
        self.assertEqual(presentation['next_statuses'], [])

    def test_next_statuses_case_insensitive(self):
        """Test status lookups ignore case"""
        self.assertEqual(get_next_order_statuses('PENDING'), ['awaiting_payment', 'cancelled'])
        self.assertEqual(get_next_order_statuses('refunded'), [])


class OrderAPITests(TestCase):
    """Test order endpoints"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller()
        self.buyer = TestDataFactory.create_buyer()
        self.product = TestDataFactory.create_product(self.seller, price=Decimal('15.00'))
        self.cart = TestDataFactory.create_cart(buyer=self.buyer)
        TestDataFactory.create_cart_item(self.cart, self.product, quantity=2)
        self.client = AuthenticatedAPIClient()

    def _checkout(self):
        self.client.authenticate_user(self.buyer)
        return self.client.post('/api/v1/orders/', {
            'cart_id': self.cart.id,
            'shipping_address': ADDRESS,
            'buyer_notes': 'Leave at the door',
        }, format='json')

    def test_requires_authentication(self):
        """Test anonymous users cannot list orders"""
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_checkout(self):
        """Test a buyer checks out and the order is audited"""
        response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total'], '32.40')
        self.assertEqual(response.data['item_count'], 2)
        self.assertEqual(response.data['buyer_notes'], 'Leave at the door')
        self.assertTrue(AuditLog.objects.filter(action='order_create', user=self.buyer).exists())

    def test_seller_cannot_checkout(self):
        """Test sellers are refused at checkout"""
        self.client.authenticate_user(self.seller)
        response = self.client.post('/api/v1/orders/', {
            'cart_id': self.cart.id, 'shipping_address': ADDRESS,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Only buyers can place orders')

    def test_checkout_missing_address(self):
        """Test shipping address is required"""
        self.client.authenticate_user(self.buyer)
        response = self.client.post('/api/v1/orders/', {'cart_id': self.cart.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('shipping_address', response.data)

    def test_checkout_empty_cart_code(self):
        """Test the empty-cart error carries its code"""
        cart = TestDataFactory.create_cart(buyer=self.buyer)
        self.client.authenticate_user(self.buyer)
        response = self.client.post('/api/v1/orders/', {
            'cart_id': cart.id, 'shipping_address': ADDRESS,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'cart_empty')

    def test_buyer_and_seller_lists(self):
        """Test buyers see purchases and sellers see sales with role=seller"""
        self._checkout()
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(len(response.data), 1)

        self.client.authenticate_user(self.seller)
        response = self.client.get('/api/v1/orders/?role=seller')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['presentation']['status_label'], 'Pending Payment')

    def test_detail_hidden_from_strangers(self):
        """Test orders are only visible to their buyer and seller"""
        order_id = self._checkout().data['id']
        self.client.authenticate_user(TestDataFactory.create_buyer())
        response = self.client.get(f'/api/v1/orders/{order_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_endpoint(self):
        """Test the seller moves the order forward"""
        order_id = self._checkout().data['id']
        self.client.authenticate_user(self.seller)
        response = self.client.post(f'/api/v1/orders/{order_id}/status/', {'status': 'awaiting_payment'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'awaiting_payment')
        self.assertTrue(AuditLog.objects.filter(action='order_status').exists())

    def test_status_endpoint_invalid_transition(self):
        """Test an invalid transition returns 400 with its code"""
        order_id = self._checkout().data['id']
        self.client.authenticate_user(self.seller)
        response = self.client.post(f'/api/v1/orders/{order_id}/status/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_transition')

    def test_buyer_cannot_change_status(self):
        """Test status changes are seller-only"""
        order_id = self._checkout().data['id']
        response = self.client.post(f'/api/v1/orders/{order_id}/status/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_seller_forbidden(self):
        """Test a seller cannot update another seller's order"""
        order_id = self._checkout().data['id']
        self.client.authenticate_user(TestDataFactory.create_seller())
        response = self.client.post(f'/api/v1/orders/{order_id}/status/', {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_fulfillment_endpoint(self):
        """Test fulfillment update with tracking"""
        order_id = self._checkout().data['id']
        self.client.authenticate_user(self.seller)
        response = self.client.post(f'/api/v1/orders/{order_id}/fulfillment/', {
            'status': 'fulfilled', 'tracking_number': 'TRK1', 'carrier': 'DHL',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['fulfillment_status'], 'fulfilled')
        self.assertEqual(response.data['items'][0]['tracking_number'], 'TRK1')

    def test_refund_endpoint(self):
        """Test a partial refund through the API"""
        order_id = self._checkout().data['id']
        Order.objects.filter(pk=order_id).update(status='delivered')
        self.client.authenticate_user(self.seller)
        response = self.client.post(f'/api/v1/orders/{order_id}/refund/', {
            'refund_type': 'partial',
            'reason': 'One item missing',
            'line_items': [{'amount': '15.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Order.objects.get(pk=order_id).payment_status, 'partially_refunded')

    def test_events_and_presentation_endpoints(self):
        """Test the order timeline and presentation are readable by the buyer"""
        order_id = self._checkout().data['id']
        response = self.client.get(f'/api/v1/orders/{order_id}/events/')
        self.assertEqual(response.data[0]['event_type'], 'order_created')
        response = self.client.get(f'/api/v1/orders/{order_id}/presentation/')
        self.assertEqual(response.data['next_statuses'], ['awaiting_payment', 'cancelled'])
