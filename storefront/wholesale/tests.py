"""
Test suite for the wholesale module
Tests: business rules, invitations and access grants, wholesale orders, deposit and balance payments, commands
"""
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied
from storefront.core import events
from storefront.core.exceptions import AlreadyExists, BusinessRuleViolation, InvitationExpired, WholesaleValidationFailed
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.wholesale import rules, services
from storefront.wholesale.models import WholesaleAccessGrant, WholesaleInvitation, WholesaleOrder, WholesaleOrderEvent


class WholesaleRulesTests(TestCase):
    """Test deposit, payment term, MOQ and minimum value rules"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.product = TestDataFactory.create_product(self.seller, name='Linen Shirt', price=Decimal('100.00'))
        TestDataFactory.create_wholesale_product(self.product, wholesale_price=Decimal('60.00'), moq=10)
        self.invitation = TestDataFactory.create_invitation(self.seller, status='accepted')

    def test_calculate_deposit(self):
        """Test deposit and balance split"""
        result = rules.calculate_deposit(Decimal('1000.00'), 30)
        self.assertEqual(result['deposit_amount'], Decimal('300.00'))
        self.assertEqual(result['balance_amount'], Decimal('700.00'))

    def test_calculate_deposit_bounds(self):
        """Test negative values and out-of-range percentages are refused"""
        with self.assertRaises(ValueError):
            rules.calculate_deposit(-1, 30)
        with self.assertRaises(ValueError):
            rules.calculate_deposit(100, 101)

    def test_calculate_balance(self):
        """Test remaining balance and its share of the order"""
        result = rules.calculate_balance(Decimal('200.00'), Decimal('50.00'))
        self.assertEqual(result['balance_remaining'], Decimal('150.00'))
        self.assertEqual(result['balance_percentage'], Decimal('75.00'))
        with self.assertRaises(ValueError):
            rules.calculate_balance(100, 150)

    def test_payment_due_date(self):
        """Test Net terms add days and unknown terms fail"""
        order_date = date(2024, 1, 1)
        self.assertEqual(rules.calculate_payment_due_date(order_date, 'Net 60'), date(2024, 3, 1))
        self.assertEqual(rules.calculate_payment_due_date(order_date, 'Immediate'), order_date)
        with self.assertRaises(ValueError):
            rules.calculate_payment_due_date(order_date, 'Net 45')

    def test_payment_terms_from_invitation(self):
        """Test invitation terms restrict the allowed payment terms"""
        invitation = TestDataFactory.create_invitation(self.seller, wholesale_terms={'allowedPaymentTerms': ['Immediate']})
        result = rules.validate_payment_terms(invitation, 'Net 30')
        self.assertFalse(result['valid'])
        self.assertEqual(result['error'], "Payment term 'Net 30' is not allowed")
        self.assertTrue(rules.validate_payment_terms(self.invitation, 'Net 90')['valid'])

    def test_moq_failure_message(self):
        """Test MOQ failures name the product and quantities"""
        result = rules.validate_wholesale_moq(self.invitation, [{'product_id': self.product.id, 'quantity': 4}])
        self.assertFalse(result['valid'])
        self.assertEqual(result['errors'], ['Linen Shirt requires minimum quantity of 10, but only 4 provided'])
        self.assertEqual(result['items_failing_moq'][0]['required_quantity'], 10)

    def test_minimum_order_value_override(self):
        """Test an invitation can lower the minimum order value"""
        invitation = TestDataFactory.create_invitation(self.seller, wholesale_terms={'minimumOrderValue': 250})
        result = rules.validate_minimum_order_value(invitation, Decimal('300'))
        self.assertTrue(result['met'])
        result = rules.validate_minimum_order_value(self.invitation, Decimal('300'))
        self.assertEqual(result['shortfall'], Decimal('700.00'))

    def test_wholesale_pricing(self):
        """Test discount against the recommended retail price"""
        pricing = rules.get_wholesale_pricing(self.invitation, self.product.id, 3)
        self.assertEqual(pricing['discount'], Decimal('40.00'))
        self.assertEqual(pricing['total'], Decimal('180.00'))
        with self.assertRaises(NotFound):
            rules.get_wholesale_pricing(self.invitation, self.product.id + 999, 1)

    def test_validate_order_collects_errors(self):
        """Test MOQ and minimum value errors are reported together"""
        result = rules.validate_wholesale_order(self.invitation, [{'product_id': self.product.id, 'quantity': 5}], 'Net 30')
        self.assertFalse(result['valid'])
        self.assertEqual(len(result['errors']), 2)
        self.assertIn('Minimum order value not met. Required: $1000, Current: $300.00, Shortfall: $700.00', result['errors'])

    def test_validate_order_unknown_product(self):
        """Test products outside the wholesale catalog fail straight away"""
        other = TestDataFactory.create_product(self.seller)
        result = rules.validate_wholesale_order(self.invitation, [{'product_id': other.id, 'quantity': 50}], 'Net 30')
        self.assertFalse(result['valid'])
        self.assertEqual(result['errors'], [f'Product {other.id} is not available for wholesale'])

    def test_validate_order_valid(self):
        """Test a valid order carries the deposit calculation"""
        result = rules.validate_wholesale_order(self.invitation, [{'product_id': self.product.id, 'quantity': 20}], 'Net 30')
        self.assertTrue(result['valid'])
        self.assertEqual(result['total_value'], Decimal('1200.00'))
        self.assertEqual(result['deposit_calculation']['deposit_amount'], Decimal('360.00'))


class InvitationServiceTests(TestCase):
    """Test invitation lifecycle and access grants"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.buyer = TestDataFactory.create_buyer()

    def test_create_invitation(self):
        """Test invitations get a token and an expiry"""
        invitation = services.create_invitation(self.seller, 'shop@test.com', wholesale_terms={'depositPercentage': 40})
        self.assertEqual(invitation.status, 'pending')
        self.assertTrue(invitation.token)
        self.assertGreater(invitation.expires_at, timezone.now() + timedelta(days=29))

    def test_accept_creates_grant(self):
        """Test accepting opens access with the invitation's terms"""
        invitation = TestDataFactory.create_invitation(self.seller, wholesale_terms={'minimumOrderValue': 500})
        invitation, grant = services.accept_invitation(invitation.token, self.buyer)
        self.assertEqual(invitation.status, 'accepted')
        self.assertEqual(invitation.buyer, self.buyer)
        self.assertTrue(grant.is_active)
        self.assertEqual(grant.wholesale_terms, {'minimumOrderValue': 500})

    def test_accept_reactivates_revoked_grant(self):
        """Test a revoked grant is reused rather than duplicated"""
        TestDataFactory.create_grant(self.seller, self.buyer, status='revoked')
        invitation = TestDataFactory.create_invitation(self.seller)
        services.accept_invitation(invitation.token, self.buyer)
        self.assertEqual(WholesaleAccessGrant.objects.filter(buyer=self.buyer, seller=self.seller).count(), 1)
        self.assertEqual(WholesaleAccessGrant.objects.get(buyer=self.buyer).status, 'active')

    def test_accept_with_existing_grant(self):
        """Test an active grant makes a second acceptance conflict"""
        TestDataFactory.create_grant(self.seller, self.buyer)
        invitation = TestDataFactory.create_invitation(self.seller)
        with self.assertRaises(AlreadyExists):
            services.accept_invitation(invitation.token, self.buyer)

    def test_expired_invitation(self):
        """Test expired invitations cannot be viewed or accepted"""
        invitation = TestDataFactory.create_invitation(self.seller, expires_in_days=-1)
        with self.assertRaises(InvitationExpired):
            services.get_invitation_by_token(invitation.token)
        with self.assertRaises(InvitationExpired):
            services.accept_invitation(invitation.token, self.buyer)

    def test_processed_invitation(self):
        """Test an invitation can only be answered once"""
        invitation = TestDataFactory.create_invitation(self.seller)
        services.reject_invitation(invitation.token)
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.accept_invitation(invitation.token, self.buyer)
        self.assertEqual(ctx.exception.code, 'already_processed')

    def test_unknown_token(self):
        """Test unknown tokens are not found"""
        with self.assertRaises(NotFound):
            services.get_invitation_by_token('missing')

    def test_expire_invitations(self):
        """Test only pending invitations past expiry are expired"""
        stale = TestDataFactory.create_invitation(self.seller, expires_in_days=-2)
        fresh = TestDataFactory.create_invitation(self.seller)
        self.assertEqual(services.expire_invitations(), 1)
        stale.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(stale.status, 'expired')
        self.assertEqual(fresh.status, 'pending')

    def test_invitation_events(self):
        """Test invitation events fire on commit"""
        receiver = mock.Mock()
        events.wholesale_invitation_accepted.connect(receiver)
        self.addCleanup(events.wholesale_invitation_accepted.disconnect, receiver)
        invitation = TestDataFactory.create_invitation(self.seller)
        with self.captureOnCommitCallbacks(execute=True):
            services.accept_invitation(invitation.token, self.buyer)
        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs['buyer_id'], self.buyer.id)


class WholesaleOrderServiceTests(TestCase):
    """Test placing wholesale orders and recording payments"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.buyer = TestDataFactory.create_buyer()
        self.product = TestDataFactory.create_product(self.seller, price=Decimal('100.00'))
        TestDataFactory.create_wholesale_product(self.product, wholesale_price=Decimal('60.00'), moq=10)
        TestDataFactory.create_grant(self.seller, self.buyer)

    def _place(self, quantity=20, **kwargs):
        return services.place_wholesale_order(
            self.buyer, self.seller.id, [{'product_id': self.product.id, 'quantity': quantity}], **kwargs
        )

    def test_place_order_amounts_in_cents(self):
        """Test totals, deposit and balance are stored in cents"""
        order = self._place()
        self.assertTrue(order.order_number.startswith('WHS'))
        self.assertEqual(order.total_cents, 120000)
        self.assertEqual(order.deposit_amount_cents, 36000)
        self.assertEqual(order.balance_amount_cents, 84000)
        self.assertEqual(order.deposit_percentage, 30)
        self.assertEqual(order.payment_terms, 'Net 30')
        self.assertEqual(order.balance_due_date, timezone.now().date() + timedelta(days=30))
        self.assertEqual(order.items.get().unit_price_cents, 6000)

    def test_deposit_percentage_from_terms(self):
        """Test the buyer's negotiated deposit is applied"""
        WholesaleInvitation.objects.filter(buyer=self.buyer).update(wholesale_terms={'depositPercentage': 50})
        order = self._place()
        self.assertEqual(order.deposit_amount_cents, 60000)

    def test_no_access(self):
        """Test buyers without a grant cannot order"""
        stranger = TestDataFactory.create_buyer()
        with self.assertRaises(PermissionDenied):
            services.place_wholesale_order(stranger, self.seller.id, [{'product_id': self.product.id, 'quantity': 20}])

    def test_validation_failure(self):
        """Test rule failures carry the full validation result"""
        with self.assertRaises(WholesaleValidationFailed) as ctx:
            self._place(quantity=5)
        self.assertFalse(ctx.exception.validation['valid'])
        self.assertFalse(WholesaleOrder.objects.exists())

    def test_product_outside_wholesale_catalog_rejected(self):
        """Test products without a wholesale price cannot be ordered at retail price"""
        retail_only = TestDataFactory.create_product(self.seller, price=Decimal('5.00'))
        with self.assertRaises(WholesaleValidationFailed) as ctx:
            services.place_wholesale_order(self.buyer, self.seller.id, [
                {'product_id': self.product.id, 'quantity': 20},
                {'product_id': retail_only.id, 'quantity': 100},
            ])
        self.assertEqual(ctx.exception.validation['errors'],
                         [f"Product {retail_only.id} is not available for wholesale"])
        self.assertFalse(WholesaleOrder.objects.exists())

    def test_disallowed_payment_terms(self):
        """Test payment terms outside the allowed list fail validation"""
        with self.assertRaises(WholesaleValidationFailed):
            self._place(payment_terms='Net 45')

    def test_deposit_then_balance(self):
        """Test the payment progression through to paid"""
        order = self._place()
        services.record_wholesale_payment(order, 'deposit', performed_by=self.seller)
        self.assertEqual(order.status, 'awaiting_balance')
        self.assertIsNotNone(order.deposit_paid_at)

        services.record_wholesale_payment(order, 'balance', performed_by=self.seller)
        order.refresh_from_db()
        self.assertEqual(order.status, 'paid')
        self.assertEqual(
            list(WholesaleOrderEvent.objects.filter(order=order).values_list('event_type', flat=True).order_by('id')),
            ['order_created', 'deposit_paid', 'balance_paid']
        )

    def test_balance_before_deposit(self):
        """Test a balance cannot be recorded on a pending order"""
        order = self._place()
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.record_wholesale_payment(order, 'balance')
        self.assertEqual(ctx.exception.code, 'invalid_payment')

    def test_mark_overdue_balances(self):
        """Test orders past their balance due date become overdue"""
        order = self._place()
        services.record_wholesale_payment(order, 'deposit')
        count = services.mark_overdue_balances(order.balance_due_date + timedelta(days=1))
        order.refresh_from_db()
        self.assertEqual(count, 1)
        self.assertEqual(order.status, 'balance_overdue')

    def test_order_placed_event(self):
        """Test wholesale_order_placed carries decimal amounts"""
        receiver = mock.Mock()
        events.wholesale_order_placed.connect(receiver)
        self.addCleanup(events.wholesale_order_placed.disconnect, receiver)
        with self.captureOnCommitCallbacks(execute=True):
            self._place()
        self.assertEqual(receiver.call_args.kwargs['deposit_amount'], '360.00')


class WholesaleCommandTests(TestCase):
    """Test wholesale management commands"""

    def test_expire_invitations_command(self):
        """Test the expiry command reports how many invitations changed"""
        seller = TestDataFactory.create_seller()
        TestDataFactory.create_invitation(seller, expires_in_days=-1)
        out = StringIO()
        call_command('expire_wholesale_invitations', stdout=out)
        self.assertIn('Expired 1 wholesale invitation(s)', out.getvalue())

    def test_mark_overdue_command_with_date(self):
        """Test the overdue command accepts a reference date"""
        seller = TestDataFactory.create_seller()
        buyer = TestDataFactory.create_buyer()
        product = TestDataFactory.create_product(seller, price=Decimal('100.00'))
        TestDataFactory.create_wholesale_product(product, wholesale_price=Decimal('60.00'))
        TestDataFactory.create_grant(seller, buyer)
        order = services.place_wholesale_order(buyer, seller.id, [{'product_id': product.id, 'quantity': 20}])
        services.record_wholesale_payment(order, 'deposit')

        out = StringIO()
        call_command('mark_overdue_balances', '--date', '2999-01-01', stdout=out)
        self.assertIn('Marked 1 wholesale order(s) as balance overdue', out.getvalue())


class WholesaleAPITests(TestCase):
    """Test wholesale endpoints"""

    def setUp(self):
        self.seller = TestDataFactory.create_seller()
        self.buyer = TestDataFactory.create_buyer()
        self.product = TestDataFactory.create_product(self.seller, price=Decimal('100.00'))
        self.client = AuthenticatedAPIClient()

    def test_create_invitation(self):
        """Test sellers invite buyers and the action is audited"""
        self.client.authenticate_user(self.seller)
        response = self.client.post('/api/v1/wholesale/invitations/', {
            'buyer_email': 'retailer@test.com',
            'wholesale_terms': {'allowedPaymentTerms': ['Net 30'], 'depositPercentage': 25},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertTrue(AuditLog.objects.filter(action='invitation_create').exists())

    def test_buyer_cannot_invite(self):
        """Test invitations are seller-only"""
        self.client.authenticate_user(self.buyer)
        response = self.client.post('/api/v1/wholesale/invitations/', {'buyer_email': 'x@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_public_token_view(self):
        """Test anyone with the token can view a pending invitation"""
        invitation = TestDataFactory.create_invitation(self.seller)
        response = self.client.get(f'/api/v1/wholesale/invitations/{invitation.token}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['buyer_email'], invitation.buyer_email)

    def test_expired_token_gone(self):
        """Test expired invitations answer 410"""
        invitation = TestDataFactory.create_invitation(self.seller, expires_in_days=-1)
        response = self.client.get(f'/api/v1/wholesale/invitations/{invitation.token}/')
        self.assertEqual(response.status_code, status.HTTP_410_GONE)
        self.assertEqual(response.data['code'], 'expired')

    def test_accept_and_conflict(self):
        """Test acceptance returns the grant, and a second grant conflicts"""
        self.client.authenticate_user(self.buyer)
        invitation = TestDataFactory.create_invitation(self.seller)
        response = self.client.post(f'/api/v1/wholesale/invitations/{invitation.token}/accept/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['grant']['status'], 'active')

        second = TestDataFactory.create_invitation(self.seller)
        response = self.client.post(f'/api/v1/wholesale/invitations/{second.token}/accept/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_reject_is_public(self):
        """Test invitations can be declined without logging in"""
        invitation = TestDataFactory.create_invitation(self.seller)
        response = self.client.post(f'/api/v1/wholesale/invitations/{invitation.token}/reject/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'rejected')

    def test_wholesale_product_price_check(self):
        """Test wholesale price may not exceed the retail price"""
        self.client.authenticate_user(self.seller)
        response = self.client.post('/api/v1/wholesale/products/', {
            'product': self.product.id, 'name': 'Bulk', 'rrp': '50.00', 'wholesale_price': '60.00', 'moq': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('wholesale_price', response.data)

    def test_catalog_requires_grant(self):
        """Test only buyers with access see a seller's wholesale catalog"""
        TestDataFactory.create_wholesale_product(self.product)
        self.client.authenticate_user(self.buyer)
        response = self.client.get(f'/api/v1/wholesale/catalog/{self.seller.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        TestDataFactory.create_grant(self.seller, self.buyer)
        response = self.client.get(f'/api/v1/wholesale/catalog/{self.seller.id}/')
        self.assertEqual(len(response.data), 1)

    def test_place_order_validation_body(self):
        """Test a failing order answers 422 with the validation result"""
        TestDataFactory.create_wholesale_product(self.product, wholesale_price=Decimal('60.00'), moq=10)
        TestDataFactory.create_grant(self.seller, self.buyer)
        self.client.authenticate_user(self.buyer)
        response = self.client.post('/api/v1/wholesale/orders/', {
            'seller_id': self.seller.id,
            'items': [{'product_id': self.product.id, 'quantity': 2}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertFalse(response.data['validation']['valid'])

    def test_place_order_and_record_payment(self):
        """Test a buyer places an order and the seller records the deposit"""
        TestDataFactory.create_wholesale_product(self.product, wholesale_price=Decimal('60.00'), moq=10)
        TestDataFactory.create_grant(self.seller, self.buyer)
        self.client.authenticate_user(self.buyer)
        response = self.client.post('/api/v1/wholesale/orders/', {
            'seller_id': self.seller.id,
            'items': [{'product_id': self.product.id, 'quantity': 20}],
            'payment_terms': 'Net 60',
            'po_number': 'PO-77',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order_id = response.data['id']

        self.client.authenticate_user(self.seller)
        response = self.client.post(f'/api/v1/wholesale/orders/{order_id}/payments/', {'payment_type': 'deposit'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'awaiting_balance')

        response = self.client.get(f'/api/v1/wholesale/orders/{order_id}/events/')
        self.assertEqual(len(response.data), 2)
