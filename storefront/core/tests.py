"""
Test suite for the core module
Tests: registration, JWT login, settings overrides, audit logging, cache helpers, events
"""
from django.conf import settings
from django.core.cache import cache
from django.test import TestCase, RequestFactory
from rest_framework import status
from unittest import mock
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.core.models import Setting, AuditLog
from storefront.core.conf import get_setting
from storefront.core.utils import create_audit_log, get_client_ip, generate_reference
from storefront.core.cache_utils import cached_query, invalidate_quotations_cache, quotations_prefix
from storefront.core import events


class AuthAPITests(TestCase):
    """Test registration, login and the current-user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_buyer(self):
        """Test registering a buyer returns tokens"""
        data = {
            'username': 'newbuyer',
            'email': 'newbuyer@test.com',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'Str0ng-pass-123',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['user_type'], 'buyer')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_register_seller_requires_store_slug(self):
        """Test sellers cannot register without a storefront slug"""
        data = {
            'username': 'newseller',
            'email': 'newseller@test.com',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'Str0ng-pass-123',
            'user_type': 'seller',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('store_slug', response.data)

    def test_register_password_mismatch(self):
        """Test registration fails when passwords differ"""
        data = {
            'username': 'mismatch',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'Other-pass-456',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_login_returns_user(self):
        """Test JWT login includes the serialized user"""
        seller = TestDataFactory.create_seller(username='shopowner')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'shopowner',
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['id'], seller.id)
        self.assertEqual(response.data['user']['user_type'], 'seller')

    def test_me_requires_authentication(self):
        """Test the current-user endpoint rejects anonymous requests"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_cannot_change_user_type(self):
        """Test user_type is read-only on profile updates"""
        buyer = TestDataFactory.create_buyer()
        self.client.authenticate_user(buyer)
        response = self.client.patch('/api/v1/auth/me/', {'user_type': 'seller', 'company_name': 'Acme'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        buyer.refresh_from_db()
        self.assertEqual(buyer.user_type, 'buyer')
        self.assertEqual(buyer.company_name, 'Acme')


class SettingTests(TestCase):
    """Test STOREFRONT defaults and database overrides"""

    def test_default_from_settings(self):
        """Test defaults come from settings.STOREFRONT"""
        self.assertEqual(get_setting('QUOTATION_DEFAULT_DEPOSIT_PERCENTAGE'), 50)

    def test_database_override(self):
        """Test a Setting row overrides the default, parsed as JSON"""
        Setting.objects.create(key='WHOLESALE_MINIMUM_ORDER_VALUE', value='2500')
        self.assertEqual(get_setting('WHOLESALE_MINIMUM_ORDER_VALUE'), 2500)

    def test_override_plain_string(self):
        """Test non-JSON values are returned as raw strings"""
        Setting.objects.create(key='DEFAULT_CURRENCY', value='EUR')
        self.assertEqual(get_setting('DEFAULT_CURRENCY'), 'EUR')

    def test_unknown_setting(self):
        """Test unknown keys raise unless a default is given"""
        with self.assertRaises(KeyError):
            get_setting('NOT_A_SETTING')
        self.assertEqual(get_setting('NOT_A_SETTING', 7), 7)

    def test_app_log_level_follows_django_log_level(self):
        """Test the storefront logger takes its level from DJANGO_LOG_LEVEL like the django logger"""
        loggers = settings.LOGGING['loggers']
        self.assertEqual(loggers['storefront']['level'], loggers['django']['level'])

    def test_settings_api_admin_only(self):
        """Test only admins manage settings"""
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_seller())
        response = client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AuditLogTests(TestCase):
    """Test audit log helpers"""

    def setUp(self):
        self.factory = RequestFactory()
        self.user = TestDataFactory.create_seller()

    def test_create_audit_log(self):
        """Test an audit entry records user, IP and changes"""
        request = self.factory.post('/', REMOTE_ADDR='10.0.0.5')
        request.user = self.user
        log = create_audit_log(
            request=request,
            action='quotation_create',
            model_name='TradeQuotation',
            object_id=42,
            object_reference='QT-1',
            changes={'total': '10.00'},
        )
        self.assertIsNotNone(log)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.ip_address, '10.0.0.5')
        self.assertEqual(log.object_id, '42')

    def test_missing_fields_skip_log(self):
        """Test entries without action are skipped"""
        self.assertIsNone(create_audit_log(model_name='Order', object_id=1, user=self.user))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_forwarded_ip(self):
        """Test X-Forwarded-For takes precedence over REMOTE_ADDR"""
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1', REMOTE_ADDR='10.0.0.1')
        self.assertEqual(get_client_ip(request), '203.0.113.9')

    def test_generate_reference(self):
        """Test references carry the prefix and are unique"""
        first = generate_reference('QT')
        second = generate_reference('QT')
        self.assertTrue(first.startswith('QT-'))
        self.assertNotEqual(first, second)


class CacheUtilsTests(TestCase):
    """Test cached_query and pattern invalidation"""

    def setUp(self):
        cache.clear()

    def test_cached_query_hits_cache(self):
        """Test the wrapped function runs once per key"""
        calls = []

        @cached_query(cache_ttl=60, key_prefix=lambda seller_id: quotations_prefix(seller_id))
        def load(seller_id):
            calls.append(seller_id)
            return [seller_id]

        self.assertEqual(load(1), [1])
        self.assertEqual(load(1), [1])
        self.assertEqual(calls, [1])

    def test_invalidate_clears_cached_value(self):
        """Test invalidation forces the next call to recompute"""
        calls = []

        @cached_query(cache_ttl=60, key_prefix=lambda seller_id: quotations_prefix(seller_id))
        def load(seller_id):
            calls.append(seller_id)
            return [len(calls)]

        load(3)
        invalidate_quotations_cache(3)
        self.assertEqual(load(3), [2])


class EventTests(TestCase):
    """Test domain events are sent after commit"""

    def test_emit_after_commit(self):
        """Test receivers run only once the transaction commits"""
        receiver = mock.Mock()
        events.cart_updated.connect(receiver)
        self.addCleanup(events.cart_updated.disconnect, receiver)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            events.emit('cart_updated', sender=Setting, cart_id=5)
            receiver.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        receiver.assert_called_once()
        self.assertEqual(receiver.call_args.kwargs['cart_id'], 5)
        self.assertEqual(receiver.call_args.kwargs['event'], 'cart_updated')

    def test_failing_receiver_does_not_raise(self):
        """Test a broken receiver does not break the sender"""
        def broken(sender, **kwargs):
            raise RuntimeError('boom')

        events.order_updated.connect(broken)
        self.addCleanup(events.order_updated.disconnect, broken)
        with self.captureOnCommitCallbacks(execute=True):
            events.emit('order_updated', sender=Setting, order_id=1)
