"""
Display-ready product state for storefront and dashboard pages.

These are pure functions of a Product; pages render the result as is so
availability wording stays identical across every surface.
"""
from datetime import timedelta

from django.utils import timezone

LOW_STOCK_THRESHOLD = 10
LOW_STOCK_BADGE_THRESHOLD = 5
NEW_PRODUCT_DAYS = 30

ALWAYS_AVAILABLE_TYPES = ('made-to-order', 'pre-order')


def _status(product):
    return (product.status or '').lower()


def _product_type(product):
    return (product.product_type or '').lower()


def _stock(product):
    return product.stock_quantity or 0


def get_availability_text(product):
    if product is None:
        return 'Unavailable'
    if _status(product) != 'active':
        return 'Unavailable'

    product_type = _product_type(product)
    if product_type == 'made-to-order':
        return 'Made to Order'
    if product_type == 'pre-order':
        return 'Pre-order'

    stock = _stock(product)
    if stock == 0:
        return 'Out of Stock'
    if stock < LOW_STOCK_THRESHOLD:
        return 'Low Stock'
    return 'In Stock'


def get_product_badges(product, now=None):
    if product is None:
        return []

    now = now or timezone.now()
    badges = []
    product_type = _product_type(product)

    if product.created_at and product.created_at > now - timedelta(days=NEW_PRODUCT_DAYS):
        badges.append('New')
    if product.compare_at_price and product.price < product.compare_at_price:
        badges.append('Sale')
    if product_type == 'pre-order':
        badges.append('Pre-order')
    if product_type == 'made-to-order':
        badges.append('Made to Order')

    stock = _stock(product)
    if 0 < stock < LOW_STOCK_BADGE_THRESHOLD:
        badges.append('Low Stock')
    return badges


def get_stock_level_indicator(stock_quantity):
    if stock_quantity <= 0:
        return 'out-of-stock'
    if stock_quantity < 5:
        return 'critical'
    if stock_quantity < 10:
        return 'low'
    if stock_quantity < 50:
        return 'medium'
    return 'high'


def is_available_for_purchase(product):
    if product is None or _status(product) != 'active':
        return False
    if _product_type(product) in ALWAYS_AVAILABLE_TYPES:
        return True
    return _stock(product) > 0


def is_variant_available(product, variant_key):
    if product is None or not product.pk:
        return False

    key = (variant_key or '').lower()
    variant = next((v for v in product.variants.all() if v.variant_key == key), None)
    if variant is None:
        return False
    if _product_type(product) in ALWAYS_AVAILABLE_TYPES:
        return True
    return (variant.stock_quantity or 0) > 0


def get_product_presentation(product, now=None):
    if product is None:
        return {
            'availability_text': 'Unavailable',
            'badges': [],
            'stock_level_indicator': 'out-of-stock',
            'available_for_purchase': False,
            'is_pre_order': False,
            'is_made_to_order': False,
            'is_wholesale': False,
            'stock_quantity': 0,
            'low_stock_threshold': LOW_STOCK_THRESHOLD,
        }

    product_type = _product_type(product)
    stock = _stock(product)
    return {
        'availability_text': get_availability_text(product),
        'badges': get_product_badges(product, now),
        'stock_level_indicator': get_stock_level_indicator(stock),
        'available_for_purchase': is_available_for_purchase(product),
        'is_pre_order': product_type == 'pre-order',
        'is_made_to_order': product_type == 'made-to-order',
        'is_wholesale': bool(product.is_wholesale),
        'stock_quantity': stock,
        'low_stock_threshold': LOW_STOCK_THRESHOLD,
    }
