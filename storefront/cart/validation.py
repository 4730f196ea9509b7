"""
Cart validation: stock, minimum order quantity and wholesale rules.

Results are plain dicts so the same shape can be returned by the API
and reused by checkout.
"""
from decimal import Decimal

from rest_framework.exceptions import NotFound

from storefront.catalog.models import Product
from storefront.catalog.utils import find_variant
from storefront.core.conf import get_setting
from storefront.pricing.services import round_money


def _get_product(product_id):
    product = Product.objects.prefetch_related('variants').filter(pk=product_id).first()
    if product is None:
        raise NotFound('Product not found')
    return product


def check_stock_availability(product, variant_key, quantity):
    if not isinstance(product, Product):
        product = _get_product(product)

    if variant_key:
        variant = find_variant(product, variant_key)
        if variant is None:
            raise NotFound('Variant not found')
        current_stock = variant.stock_quantity or 0
    else:
        current_stock = product.stock_quantity or 0

    return {
        'available': current_stock >= quantity,
        'current_stock': current_stock,
        'requested_quantity': quantity,
        'available_quantity': min(current_stock, quantity),
    }


def validate_minimum_order_quantity(product, quantity):
    if not isinstance(product, Product):
        product = _get_product(product)

    minimum_quantity = product.minimum_order_quantity or 1
    met = quantity >= minimum_quantity
    return {
        'met': met,
        'minimum_quantity': minimum_quantity,
        'current_quantity': quantity,
        'remaining': 0 if met else minimum_quantity - quantity,
    }


def _invalid(errors):
    return {
        'valid': False,
        'errors': errors,
        'warnings': [],
        'stock_available': False,
        'moq_met': False,
    }


def validate_cart_item(product_id, variant_key, quantity):
    errors = []
    warnings = []

    max_quantity = get_setting('CART_MAX_QUANTITY')
    if quantity < 1 or quantity > max_quantity:
        return _invalid([f"Quantity must be between 1 and {max_quantity}"])

    product = Product.objects.prefetch_related('variants').filter(pk=product_id).first()
    if product is None:
        return _invalid(['Product not found'])

    if product.status != 'active':
        errors.append('Product is not available for purchase')

    variant_exists = True
    if variant_key and find_variant(product, variant_key) is None:
        variant_exists = False
        errors.append('Selected variant does not exist')

    if not product.tracks_stock:
        stock_available = True
    elif not variant_exists:
        stock_available = False
    else:
        stock = check_stock_availability(product, variant_key, quantity)
        stock_available = stock['available']
        if not stock_available:
            errors.append(f"Insufficient stock. Available: {stock['current_stock']}, Requested: {quantity}")

    moq = validate_minimum_order_quantity(product, quantity)
    if not moq['met']:
        errors.append(f"Minimum order quantity not met. Minimum: {moq['minimum_quantity']}, Current: {quantity}")

    return {
        'valid': not errors,
        'errors': errors,
        'warnings': warnings,
        'stock_available': stock_available,
        'moq_met': moq['met'],
    }


def validate_cart(cart):
    errors = []
    warnings = []
    items = []

    cart_items = list(cart.items.select_related('product'))
    for item in cart_items:
        validation = validate_cart_item(item.product_id, item.variant_key or None, item.quantity)
        items.append(validation)
        errors.extend(f"{item.product.name}: {error}" for error in validation['errors'])
        warnings.extend(f"{item.product.name}: {warning}" for warning in validation['warnings'])

    return {
        'valid': not errors,
        'errors': errors,
        'warnings': warnings,
        'items': items,
        'total_items': len(cart_items),
        'all_items_in_stock': all(item['stock_available'] for item in items),
        'all_moqs_met': all(item['moq_met'] for item in items),
    }


def calculate_cart_value(cart):
    """Cart value with current variant prices where a variant sets its own price"""
    total = Decimal('0')
    for item in cart.items.select_related('variant'):
        price = item.unit_price
        if item.variant is not None and item.variant.price is not None:
            price = item.variant.price
        total += price * item.quantity
    return round_money(total)


def validate_wholesale_cart(cart):
    validation = validate_cart(cart)

    current_order_value = calculate_cart_value(cart)
    minimum_order_value = round_money(get_setting('WHOLESALE_MINIMUM_ORDER_VALUE'))
    deposit_percentage = Decimal(str(get_setting('WHOLESALE_DEFAULT_DEPOSIT_PERCENTAGE')))

    wholesale_rules_met = current_order_value >= minimum_order_value
    if not wholesale_rules_met:
        validation['errors'].append(
            f"Minimum wholesale order value not met. Minimum: ${minimum_order_value:.2f}, Current: ${current_order_value:.2f}"
        )

    validation.update({
        'valid': not validation['errors'],
        'wholesale_rules_met': wholesale_rules_met,
        'deposit_required': round_money(current_order_value * deposit_percentage / 100),
        'minimum_order_value': minimum_order_value,
        'current_order_value': current_order_value,
    })
    return validation
