"""
Utility functions for catalog operations
"""
from decimal import Decimal, ROUND_HALF_UP
from django.utils import timezone
import uuid
from .models import Product

CENT = Decimal('0.01')


def generate_unique_sku(base_name=None):
    """Generate a unique SKU"""
    prefix = base_name[:4].upper().replace(' ', '') if base_name else 'PRD'
    timestamp = timezone.now().strftime('%Y%m%d')
    sku = f"{prefix}-{timestamp}-{str(uuid.uuid4())[:8].upper()}"

    while Product.objects.filter(sku=sku).exists():
        sku = f"{prefix}-{timestamp}-{str(uuid.uuid4())[:8].upper()}"

    return sku


def find_variant(product, variant_key):
    """Return the product variant whose variant_key matches, or None"""
    if not variant_key:
        return None
    key = variant_key.lower()
    for variant in product.variants.all():
        if variant.variant_key == key:
            return variant
    return None


def is_promotion_running(product, now=None):
    if not product.promotion_active or not product.discount_percentage:
        return False
    now = now or timezone.now()
    return product.promotion_end_date is None or product.promotion_end_date > now


def effective_price(product, variant=None, now=None):
    """
    Unit price a buyer pays right now.

    Returns (price, original_price, discount_amount): the variant price
    overrides the product price, then a running promotion discounts it.
    """
    original = variant.price if variant is not None and variant.price is not None else product.price
    original = Decimal(original)

    if not is_promotion_running(product, now):
        return original, original, Decimal('0.00')

    discounted = (original * (Decimal('1') - Decimal(product.discount_percentage) / Decimal('100'))).quantize(CENT, rounding=ROUND_HALF_UP)
    return discounted, original, original - discounted
