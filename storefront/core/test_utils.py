"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from storefront.catalog.models import Product, ProductVariant
from storefront.cart.models import Cart, CartItem
from storefront.wholesale.models import WholesaleProduct, WholesaleInvitation, WholesaleAccessGrant
from storefront.campaigns.models import NewsletterCampaign, AdCampaign
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
import random
import secrets
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', user_type='buyer', store_slug=None):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            user_type=user_type,
            store_slug=store_slug,
        )

    @staticmethod
    def create_seller(username=None, store_slug=None):
        """Create a seller with a storefront slug"""
        if not username:
            username = f'seller_{TestDataFactory.random_string(6)}'
        if not store_slug:
            store_slug = f'shop-{TestDataFactory.random_string(6).lower()}'
        return TestDataFactory.create_user(username=username, user_type='seller', store_slug=store_slug)

    @staticmethod
    def create_buyer(username=None, email=None):
        if not username:
            username = f'buyer_{TestDataFactory.random_string(6)}'
        return TestDataFactory.create_user(username=username, email=email, user_type='buyer')

    @staticmethod
    def create_product(seller=None, name=None, price=None, stock_quantity=100, status='active',
                       product_type='in-stock', minimum_order_quantity=1, **extra):
        """Create a test product"""
        if not seller:
            seller = TestDataFactory.create_seller()
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('25.00')
        return Product.objects.create(
            seller=seller,
            name=name,
            sku=f'SKU_{TestDataFactory.random_string(8)}',
            price=price,
            stock_quantity=stock_quantity,
            status=status,
            product_type=product_type,
            minimum_order_quantity=minimum_order_quantity,
            **extra
        )

    @staticmethod
    def create_variant(product, size='M', color='Red', price=None, stock_quantity=10):
        """Create a test size/color variant"""
        return ProductVariant.objects.create(
            product=product,
            size=size,
            color=color,
            price=price,
            stock_quantity=stock_quantity,
        )

    @staticmethod
    def create_cart(buyer=None, seller=None, session_id=None, status='active'):
        """Create a test cart"""
        if buyer is None and session_id is None:
            session_id = f'sess_{TestDataFactory.random_string(12)}'
        return Cart.objects.create(buyer=buyer, seller=seller, session_id=session_id, status=status)

    @staticmethod
    def create_cart_item(cart, product, quantity=1, variant=None, unit_price=None):
        """Create a test cart item"""
        if unit_price is None:
            unit_price = variant.price if variant is not None and variant.price is not None else product.price
        if cart.seller_id is None:
            cart.seller = product.seller
            cart.save(update_fields=['seller'])
        return CartItem.objects.create(
            cart=cart,
            product=product,
            variant=variant,
            variant_key=variant.variant_key if variant is not None else '',
            quantity=quantity,
            unit_price=unit_price,
            original_price=unit_price,
        )

    @staticmethod
    def create_wholesale_product(product, rrp=None, wholesale_price=None, moq=1):
        """Create a wholesale catalog entry for a product"""
        if rrp is None:
            rrp = product.price
        if wholesale_price is None:
            wholesale_price = (Decimal(rrp) / 2).quantize(Decimal('0.01'))
        return WholesaleProduct.objects.create(
            seller=product.seller,
            product=product,
            name=product.name,
            rrp=rrp,
            wholesale_price=wholesale_price,
            moq=moq,
        )

    @staticmethod
    def create_invitation(seller, buyer_email=None, wholesale_terms=None, status='pending', buyer=None, expires_in_days=30):
        """Create a wholesale invitation"""
        if not buyer_email:
            buyer_email = f'{TestDataFactory.random_string(6).lower()}@test.com'
        return WholesaleInvitation.objects.create(
            seller=seller,
            buyer_email=buyer_email,
            buyer=buyer,
            token=secrets.token_urlsafe(32),
            status=status,
            wholesale_terms=wholesale_terms or {},
            expires_at=timezone.now() + timedelta(days=expires_in_days),
            accepted_at=timezone.now() if status == 'accepted' else None,
        )

    @staticmethod
    def create_grant(seller, buyer, wholesale_terms=None, status='active'):
        """Accepted invitation plus the active access grant it produced"""
        invitation = TestDataFactory.create_invitation(
            seller, buyer_email=buyer.email, wholesale_terms=wholesale_terms, status='accepted', buyer=buyer
        )
        return WholesaleAccessGrant.objects.create(
            buyer=buyer,
            seller=seller,
            invitation=invitation,
            status=status,
            wholesale_terms=invitation.wholesale_terms,
        )

    @staticmethod
    def quotation_data(buyer_email='trade@test.com', items=None, **extra):
        """Payload for creating a quotation"""
        data = {
            'buyer_email': buyer_email,
            'items': items if items is not None else [
                {'description': 'Oak table', 'unit_price': '120.00', 'quantity': 2},
                {'description': 'Oak chair', 'unit_price': '45.50', 'quantity': 4},
            ],
        }
        data.update(extra)
        return data

    @staticmethod
    def create_quotation(seller, **extra):
        """Create a quotation through the service layer so totals are real"""
        from storefront.quotations.services import create_quotation
        data = TestDataFactory.quotation_data(**extra)
        for item in data['items']:
            item['unit_price'] = Decimal(str(item['unit_price']))
        return create_quotation(seller, data)

    @staticmethod
    def create_newsletter(seller, subject=None, recipients=None, status='draft'):
        if not subject:
            subject = f'Newsletter {TestDataFactory.random_string(6)}'
        return NewsletterCampaign.objects.create(
            seller=seller,
            subject=subject,
            content='Hello',
            recipients=recipients if recipients is not None else [],
            status=status,
        )

    @staticmethod
    def create_ad_campaign(seller, name=None, status='active'):
        if not name:
            name = f'Ad {TestDataFactory.random_string(6)}'
        return AdCampaign.objects.create(seller=seller, name=name, status=status)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
