"""
Test suite for the quotations module
Tests: totals on create and update, ownership, sending, share-link views, acceptance and payment schedules, expiry
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied
from storefront.core import events
from storefront.core.exceptions import BusinessRuleViolation
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.quotations import services
from storefront.quotations.models import TradeQuotation, TradePaymentSchedule


class QuotationServiceTests(TestCase):
    """Test quotation creation, updates and ownership"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller()

    def test_create_computes_totals(self):
        """Test totals, deposit and balance come from the line items"""
        quotation = TestDataFactory.create_quotation(self.seller)
        self.assertTrue(quotation.quotation_number.startswith('QT'))
        self.assertEqual(quotation.status, 'draft')
        self.assertEqual(quotation.subtotal, Decimal('422.00'))
        self.assertEqual(quotation.total, Decimal('422.00'))
        self.assertEqual(quotation.deposit_percentage, Decimal('50'))
        self.assertEqual(quotation.deposit_amount, Decimal('211.00'))
        self.assertEqual(quotation.balance_amount, Decimal('211.00'))
        self.assertEqual(list(quotation.items.values_list('line_number', flat=True)), [1, 2])

    def test_create_with_tax_and_shipping(self):
        """Test tax and shipping are part of the total the deposit is taken from"""
        quotation = TestDataFactory.create_quotation(
            self.seller,
            items=[{'description': 'Panel', 'unit_price': '33.33', 'quantity': 3}],
            tax_rate=Decimal('0.10'),
            shipping_amount=Decimal('5.00'),
            deposit_percentage=Decimal('30'),
        )
        self.assertEqual(quotation.subtotal, Decimal('99.99'))
        self.assertEqual(quotation.tax_amount, Decimal('10.00'))
        self.assertEqual(quotation.total, Decimal('114.99'))
        self.assertEqual(quotation.deposit_amount + quotation.balance_amount, quotation.total)

    def test_created_event_and_signal(self):
        """Test the created activity is stored and quotation_created fires on commit"""
        receiver = mock.Mock()
        events.quotation_created.connect(receiver)
        self.addCleanup(events.quotation_created.disconnect, receiver)
        with self.captureOnCommitCallbacks(execute=True):
            quotation = TestDataFactory.create_quotation(self.seller)
        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs['quotation_id'], quotation.id)
        self.assertEqual(services.get_activities(quotation).first().event_type, 'created')

    def test_foreign_seller_read_is_not_found(self):
        """Test another seller's quotation looks missing on read"""
        quotation = TestDataFactory.create_quotation(self.seller)
        with self.assertRaises(NotFound):
            services.get_quotation(quotation.id, TestDataFactory.create_seller())

    def test_foreign_seller_write_is_forbidden(self):
        """Test another seller's quotation cannot be changed"""
        quotation = TestDataFactory.create_quotation(self.seller)
        with self.assertRaises(PermissionDenied):
            services.update_quotation(quotation.id, TestDataFactory.create_seller(), {'deposit_percentage': 20})

    def test_update_items_recomputes(self):
        """Test replacing items recomputes every total"""
        quotation = TestDataFactory.create_quotation(self.seller)
        quotation = services.update_quotation(quotation.id, self.seller, {
            'items': [{'description': 'Bench', 'unit_price': Decimal('80.00'), 'quantity': 5}],
        })
        self.assertEqual(quotation.total, Decimal('400.00'))
        self.assertEqual(quotation.deposit_amount, Decimal('200.00'))
        self.assertEqual(quotation.items.count(), 1)

    def test_update_deposit_only(self):
        """Test a deposit change keeps the total and moves the split"""
        quotation = TestDataFactory.create_quotation(self.seller)
        quotation = services.update_quotation(quotation.id, self.seller, {'deposit_percentage': Decimal('25')})
        self.assertEqual(quotation.total, Decimal('422.00'))
        self.assertEqual(quotation.deposit_amount, Decimal('105.50'))
        self.assertEqual(quotation.balance_amount, Decimal('316.50'))
        event = services.get_activities(quotation).first()
        self.assertEqual(event.payload, {'items': False, 'pricing': True, 'terms': False})

    def test_update_shipping_only(self):
        """Test a shipping change alone recomputes total, deposit and balance"""
        quotation = TestDataFactory.create_quotation(self.seller)
        quotation = services.update_quotation(quotation.id, self.seller, {'shipping_amount': Decimal('25.00')})
        quotation.refresh_from_db()
        self.assertEqual(quotation.subtotal, Decimal('422.00'))
        self.assertEqual(quotation.shipping_amount, Decimal('25.00'))
        self.assertEqual(quotation.total, Decimal('447.00'))
        self.assertEqual(quotation.deposit_amount, Decimal('223.50'))
        self.assertEqual(quotation.balance_amount, Decimal('223.50'))
        self.assertEqual(quotation.items.count(), 2)
        event = services.get_activities(quotation).first()
        self.assertEqual(event.payload, {'items': False, 'pricing': True, 'terms': False})

    def test_accepted_quotation_not_editable(self):
        """Test accepted quotations are locked"""
        quotation = TestDataFactory.create_quotation(self.seller)
        services.accept_quotation(quotation)
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.update_quotation(quotation.id, self.seller, {'deposit_percentage': Decimal('10')})
        self.assertEqual(ctx.exception.code, 'not_editable')

    def test_send(self):
        """Test sending marks the quotation sent and records the activity"""
        quotation = TestDataFactory.create_quotation(self.seller)
        quotation = services.send_quotation(quotation.id, self.seller)
        self.assertEqual(quotation.status, 'sent')
        self.assertEqual(services.get_activities(quotation).first().payload, {'buyer_email': 'trade@test.com'})

    def test_send_without_items(self):
        """Test an empty quotation cannot be sent"""
        quotation = TestDataFactory.create_quotation(self.seller)
        quotation.items.all().delete()
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.send_quotation(quotation.id, self.seller)
        self.assertEqual(ctx.exception.code, 'quotation_empty')

    def test_list_cache_invalidated_on_update(self):
        """Test the cached list reflects the latest totals"""
        quotation = TestDataFactory.create_quotation(self.seller)
        self.assertEqual(services.list_quotations(self.seller)[0]['deposit_amount'], '211.00')
        services.update_quotation(quotation.id, self.seller, {'deposit_percentage': Decimal('10')})
        self.assertEqual(services.list_quotations(self.seller)[0]['deposit_amount'], '42.20')


class QuotationAcceptanceTests(TestCase):
    """Test share-link viewing, acceptance and rejection"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller()
        self.quotation = TestDataFactory.create_quotation(
            self.seller, valid_until=timezone.localdate() + timedelta(days=14)
        )

    def test_first_view_marks_viewed(self):
        """Test a sent quotation becomes viewed when opened by the buyer"""
        services.send_quotation(self.quotation.id, self.seller)
        quotation = services.get_quotation_by_token(self.quotation.token)
        self.assertEqual(quotation.status, 'viewed')
        services.get_quotation_by_token(self.quotation.token)
        self.assertEqual(quotation.events.filter(event_type='viewed').count(), 1)

    def test_draft_view_keeps_status(self):
        """Test opening a draft does not change it"""
        quotation = services.get_quotation_by_token(self.quotation.token)
        self.assertEqual(quotation.status, 'draft')

    def test_accept_creates_schedules(self):
        """Test acceptance creates deposit and balance schedules"""
        services.accept_quotation(self.quotation, {'name': 'Ann', 'email': 'ann@test.com'})
        deposit = TradePaymentSchedule.objects.get(quotation=self.quotation, payment_type='deposit')
        balance = TradePaymentSchedule.objects.get(quotation=self.quotation, payment_type='balance')
        self.assertEqual(deposit.amount, Decimal('211.00'))
        self.assertEqual(deposit.due_date, timezone.localdate())
        self.assertEqual(balance.due_date, self.quotation.valid_until)
        self.assertEqual(self.quotation.events.get(event_type='accepted').payload['email'], 'ann@test.com')

    def test_accept_twice_keeps_schedules(self):
        """Test accepting again does not duplicate the schedules"""
        services.accept_quotation(self.quotation)
        services.accept_quotation(self.quotation)
        self.assertEqual(TradePaymentSchedule.objects.filter(quotation=self.quotation).count(), 2)

    def test_accept_links_buyer(self):
        """Test a logged-in buyer is linked on acceptance"""
        buyer = TestDataFactory.create_buyer()
        services.accept_quotation(self.quotation, buyer=buyer)
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.buyer, buyer)

    def test_accept_past_validity(self):
        """Test a quotation past its valid_until date cannot be accepted"""
        TradeQuotation.objects.filter(pk=self.quotation.id).update(valid_until=timezone.localdate() - timedelta(days=1))
        self.quotation.refresh_from_db()
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.accept_quotation(self.quotation)
        self.assertEqual(ctx.exception.code, 'quotation_expired')

    def test_accept_rejected(self):
        """Test a rejected quotation cannot be accepted"""
        services.reject_quotation(self.quotation, 'Too expensive')
        with self.assertRaises(BusinessRuleViolation) as ctx:
            services.accept_quotation(self.quotation)
        self.assertEqual(ctx.exception.code, 'not_acceptable')

    def test_accepted_signal(self):
        """Test quotation_accepted carries the deposit and balance"""
        receiver = mock.Mock()
        events.quotation_accepted.connect(receiver)
        self.addCleanup(events.quotation_accepted.disconnect, receiver)
        with self.captureOnCommitCallbacks(execute=True):
            services.accept_quotation(self.quotation)
        self.assertEqual(receiver.call_args.kwargs['deposit_amount'], '211.00')

    def test_expire_quotations(self):
        """Test open quotations past validity are expired"""
        count = services.expire_quotations(timezone.localdate() + timedelta(days=15))
        self.quotation.refresh_from_db()
        self.assertEqual(count, 1)
        self.assertEqual(self.quotation.status, 'expired')

    def test_expire_command(self):
        """Test the expiry command leaves valid quotations alone"""
        out = StringIO()
        call_command('expire_quotations', stdout=out)
        self.assertIn('Expired 0 quotation(s)', out.getvalue())


class QuotationAPITests(TestCase):
    """Test quotation endpoints"""

    def setUp(self):
        cache.clear()
        self.seller = TestDataFactory.create_seller()
        self.client = AuthenticatedAPIClient()

    def test_requires_seller(self):
        """Test buyers cannot draft quotations"""
        self.client.authenticate_user(TestDataFactory.create_buyer())
        response = self.client.post('/api/v1/quotations/', TestDataFactory.quotation_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_and_list(self):
        """Test a seller drafts a quotation and sees it listed"""
        self.client.authenticate_user(self.seller)
        response = self.client.post('/api/v1/quotations/', TestDataFactory.quotation_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total'], '422.00')
        self.assertEqual(len(response.data['items']), 2)
        self.assertTrue(AuditLog.objects.filter(action='quotation_create').exists())

        response = self.client.get('/api/v1/quotations/')
        self.assertEqual(len(response.data), 1)

    def test_create_without_items(self):
        """Test a quotation needs at least one line"""
        self.client.authenticate_user(self.seller)
        response = self.client.post('/api/v1/quotations/', TestDataFactory.quotation_data(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_detail_of_other_seller(self):
        """Test reads of another seller's quotation are 404 and writes 403"""
        quotation = TestDataFactory.create_quotation(self.seller)
        self.client.authenticate_user(TestDataFactory.create_seller())
        response = self.client.get(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'deposit_percentage': '20'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_patch_deposit(self):
        """Test updating the deposit percentage through the API"""
        quotation = TestDataFactory.create_quotation(self.seller)
        self.client.authenticate_user(self.seller)
        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'deposit_percentage': '40'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deposit_amount'], '168.80')

    def test_patch_shipping(self):
        """Test updating shipping alone through the API"""
        quotation = TestDataFactory.create_quotation(self.seller)
        self.client.authenticate_user(self.seller)
        response = self.client.patch(f'/api/v1/quotations/{quotation.id}/', {'shipping_amount': '25.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '447.00')

    def test_send_items_and_activities(self):
        """Test send, then read the line items and activity feed"""
        quotation = TestDataFactory.create_quotation(self.seller)
        self.client.authenticate_user(self.seller)
        response = self.client.post(f'/api/v1/quotations/{quotation.id}/send/')
        self.assertEqual(response.data['status'], 'sent')

        response = self.client.get(f'/api/v1/quotations/{quotation.id}/items/')
        self.assertEqual([item['description'] for item in response.data], ['Oak table', 'Oak chair'])

        response = self.client.get(f'/api/v1/quotations/{quotation.id}/activities/')
        self.assertEqual([event['event_type'] for event in response.data], ['sent', 'created'])

    def test_public_accept(self):
        """Test an anonymous buyer accepts through the share link"""
        quotation = TestDataFactory.create_quotation(self.seller)
        response = self.client.post(f'/api/v1/quotations/public/{quotation.token}/accept/', {
            'name': 'Ann Buyer', 'email': 'ann@test.com', 'company': 'Ann Interiors',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quotation']['status'], 'accepted')
        self.assertEqual([p['payment_type'] for p in response.data['payments']], ['deposit', 'balance'])
        self.assertTrue(AuditLog.objects.filter(action='quotation_accept').exists())

    def test_public_accept_requires_contact(self):
        """Test buyer contact details are required"""
        quotation = TestDataFactory.create_quotation(self.seller)
        response = self.client.post(f'/api/v1/quotations/public/{quotation.token}/accept/', {'name': 'Ann'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_public_reject(self):
        """Test the buyer can decline through the share link"""
        quotation = TestDataFactory.create_quotation(self.seller)
        response = self.client.post(f'/api/v1/quotations/public/{quotation.token}/reject/', {'reason': 'Budget'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'rejected')

    def test_public_unknown_token(self):
        """Test unknown share tokens are not found"""
        response = self.client.get('/api/v1/quotations/public/nope/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_payments_endpoint(self):
        """Test the seller reads payment schedules after acceptance"""
        quotation = TestDataFactory.create_quotation(self.seller)
        services.accept_quotation(quotation)
        self.client.authenticate_user(self.seller)
        response = self.client.get(f'/api/v1/quotations/{quotation.id}/payments/')
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['amount'], '211.00')
