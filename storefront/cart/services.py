"""
Cart operations. A cart is reached by session id (anonymous shoppers) or
by its buyer, and only ever holds products of one seller.
"""
import logging

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from storefront.catalog.models import Product
from storefront.catalog.utils import effective_price, find_variant
from storefront.core.conf import get_setting
from storefront.core.events import emit
from storefront.core.exceptions import BusinessRuleViolation
from .models import Cart, CartItem

logger = logging.getLogger(__name__)


def get_cart_for_session(session_id):
    if not session_id:
        return None
    return Cart.objects.filter(session_id=session_id, status='active').first()


def get_cart_for_buyer(buyer):
    if buyer is None or not buyer.is_authenticated:
        return None
    return Cart.objects.filter(buyer=buyer, status='active').first()


def claim_cart(cart, buyer):
    """Attach an anonymous session cart to the buyer who just signed in"""
    if cart is None or buyer is None or not buyer.is_authenticated or cart.buyer_id is not None:
        return cart
    cart.buyer = buyer
    cart.save(update_fields=['buyer', 'updated_at'])
    logger.info(f"Cart {cart.id} claimed by buyer {buyer.id}")
    return cart


def get_cart(cart_id):
    cart = Cart.objects.filter(pk=cart_id).first()
    if cart is None:
        raise NotFound('Cart not found')
    return cart


def _validate_quantity(quantity):
    max_quantity = get_setting('CART_MAX_QUANTITY')
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        quantity = 0
    if quantity < 1 or quantity > max_quantity:
        raise ValidationError({'quantity': f"Invalid quantity. Must be between 1 and {max_quantity}"})
    return quantity


def _notify(cart):
    emit('cart_updated', sender=Cart, cart_id=cart.id, session_id=cart.session_id,
         item_count=cart.get_item_count())


@transaction.atomic
def add_to_cart(product_id, quantity, variant_key=None, session_id=None, buyer=None, seller_id=None):
    """
    Add a product to the shopper's active cart, creating the cart on first use.

    Adding a product+variant already in the cart increases its quantity.
    The stored unit price is the promotion-aware effective price at the
    time of adding.
    """
    quantity = _validate_quantity(quantity)

    products = Product.objects.prefetch_related('variants')
    if seller_id:
        products = products.filter(seller_id=seller_id)
    product = products.filter(pk=product_id).first()
    if product is None:
        raise NotFound('Product not found')

    variant = None
    if variant_key:
        variant = find_variant(product, variant_key)
        if variant is None:
            raise NotFound('Selected variant does not exist')

    cart = get_cart_for_session(session_id) or get_cart_for_buyer(buyer)
    if cart is None:
        cart = Cart.objects.create(
            session_id=session_id or None,
            buyer=buyer if buyer is not None and buyer.is_authenticated else None,
            seller=product.seller,
        )
    else:
        claim_cart(cart, buyer)
        if cart.seller_id is None:
            cart.seller = product.seller
            cart.save(update_fields=['seller', 'updated_at'])

    if cart.seller_id != product.seller_id:
        raise BusinessRuleViolation('Cannot add products from different sellers to the same cart', 'different_seller')

    key = variant.variant_key if variant else ''
    item = cart.items.filter(product=product, variant_key=key).first()
    if item:
        item.quantity = _validate_quantity(item.quantity + quantity)
        item.save(update_fields=['quantity'])
    else:
        price, original, discount = effective_price(product, variant)
        item = CartItem.objects.create(
            cart=cart,
            product=product,
            variant=variant,
            variant_key=key,
            quantity=quantity,
            unit_price=price,
            original_price=original,
            discount_amount=discount,
        )

    cart.save(update_fields=['updated_at'])
    logger.info(f"Cart {cart.id}: added product {product.id} ({key or 'no variant'}) x{quantity}")
    _notify(cart)
    return cart


def _get_item(cart, item_id):
    item = cart.items.filter(pk=item_id).first()
    if item is None:
        raise NotFound('Cart item not found')
    return item


@transaction.atomic
def update_cart_item(cart, item_id, quantity):
    """Set an item's quantity; zero removes it"""
    item = _get_item(cart, item_id)
    if int(quantity) == 0:
        item.delete()
    else:
        item.quantity = _validate_quantity(quantity)
        item.save(update_fields=['quantity'])
    cart.save(update_fields=['updated_at'])
    _notify(cart)
    return cart


@transaction.atomic
def remove_from_cart(cart, item_id):
    _get_item(cart, item_id).delete()
    if not cart.items.exists():
        cart.seller = None
    cart.save(update_fields=['seller', 'updated_at'])
    _notify(cart)
    return cart


@transaction.atomic
def clear_cart(cart):
    cart.items.all().delete()
    cart.seller = None
    cart.save(update_fields=['seller', 'updated_at'])
    _notify(cart)
    return cart


def get_cart_summary(cart):
    return {
        'subtotal': cart.get_subtotal(),
        'item_count': cart.get_item_count(),
    }
