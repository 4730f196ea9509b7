"""
Wholesale business rules: deposits, balances, payment terms, MOQ and
minimum order value.

Rules read per-buyer overrides from the invitation's ``wholesale_terms``
(``allowedPaymentTerms``, ``minimumOrderValue``, ``depositPercentage``)
and fall back to the STOREFRONT defaults.
"""
from datetime import timedelta
from decimal import Decimal

from rest_framework.exceptions import NotFound

from storefront.core.conf import get_setting
from storefront.pricing.services import round_money, to_decimal
from .models import WholesaleProduct

PAYMENT_TERM_DAYS = {
    'Net 30': 30,
    'Net 60': 60,
    'Net 90': 90,
    'Immediate': 0,
}


def _terms(invitation):
    terms = invitation.wholesale_terms if invitation is not None else None
    return terms if isinstance(terms, dict) else {}


def _numeric_term(invitation, key):
    value = _terms(invitation).get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)) or not value:
        return None
    return to_decimal(value)


def _catalog(invitation, product_ids):
    entries = WholesaleProduct.objects.filter(seller_id=invitation.seller_id, product_id__in=product_ids)
    return {entry.product_id: entry for entry in entries}


def calculate_deposit(order_value, deposit_percentage):
    order_value = to_decimal(order_value)
    deposit_percentage = to_decimal(deposit_percentage)
    if order_value < 0:
        raise ValueError('Order value cannot be negative')
    if deposit_percentage < 0 or deposit_percentage > 100:
        raise ValueError('Deposit percentage must be between 0 and 100')

    deposit_amount = order_value * deposit_percentage / 100
    return {
        'order_value': order_value,
        'deposit_percentage': deposit_percentage,
        'deposit_amount': round_money(deposit_amount),
        'balance_amount': round_money(order_value - deposit_amount),
    }


def calculate_balance(order_value, deposit_paid):
    order_value = to_decimal(order_value)
    deposit_paid = to_decimal(deposit_paid)
    if order_value < 0 or deposit_paid < 0:
        raise ValueError('Values cannot be negative')
    if deposit_paid > order_value:
        raise ValueError('Deposit paid cannot exceed order value')

    balance_remaining = order_value - deposit_paid
    balance_percentage = balance_remaining / order_value * 100 if order_value > 0 else Decimal('0')
    return {
        'order_value': order_value,
        'deposit_paid': deposit_paid,
        'balance_remaining': round_money(balance_remaining),
        'balance_percentage': round_money(balance_percentage),
    }


def get_allowed_payment_terms(invitation):
    allowed = _terms(invitation).get('allowedPaymentTerms')
    if isinstance(allowed, list):
        return allowed
    return list(get_setting('WHOLESALE_PAYMENT_TERMS'))


def validate_payment_terms(invitation, payment_term):
    allowed = get_allowed_payment_terms(invitation)
    valid = payment_term in allowed
    return {
        'valid': valid,
        'allowed_terms': allowed,
        'requested_term': payment_term,
        'error': None if valid else f"Payment term '{payment_term}' is not allowed",
    }


def calculate_payment_due_date(order_date, payment_terms):
    if payment_terms not in PAYMENT_TERM_DAYS:
        raise ValueError(f"Unknown payment terms: {payment_terms}")
    return order_date + timedelta(days=PAYMENT_TERM_DAYS[payment_terms])


def _check_moq(items, catalog, missing_message):
    errors = []
    failing = []
    for item in items:
        entry = catalog.get(int(item['product_id']))
        if entry is None:
            errors.append(missing_message.format(product_id=item['product_id']))
            continue

        required = entry.moq or 1
        quantity = int(item['quantity'])
        if quantity < required:
            errors.append(f"{entry.name} requires minimum quantity of {required}, but only {quantity} provided")
            failing.append({
                'product_id': entry.product_id,
                'product_name': entry.name,
                'required_quantity': required,
                'provided_quantity': quantity,
            })
    return {'valid': not errors, 'errors': errors, 'items_failing_moq': failing}


def validate_wholesale_moq(invitation, items):
    catalog = _catalog(invitation, [item['product_id'] for item in items])
    return _check_moq(items, catalog, "Wholesale product {product_id} not found for this seller")


def get_minimum_order_value(invitation):
    return _numeric_term(invitation, 'minimumOrderValue') or to_decimal(get_setting('WHOLESALE_MINIMUM_ORDER_VALUE'))


def get_deposit_percentage(invitation):
    return _numeric_term(invitation, 'depositPercentage') or to_decimal(get_setting('WHOLESALE_DEFAULT_DEPOSIT_PERCENTAGE'))


def validate_minimum_order_value(invitation, order_value):
    minimum_value = get_minimum_order_value(invitation)
    order_value = to_decimal(order_value)
    met = order_value >= minimum_value
    return {
        'met': met,
        'minimum_value': minimum_value,
        'current_value': order_value,
        'shortfall': Decimal('0.00') if met else round_money(minimum_value - order_value),
    }


def get_wholesale_pricing(invitation, product_id, quantity):
    entry = WholesaleProduct.objects.filter(seller_id=invitation.seller_id, product_id=product_id).first()
    if entry is None:
        raise NotFound('Wholesale product not found for this seller')

    base_price = entry.rrp
    wholesale_price = entry.wholesale_price
    discount = (base_price - wholesale_price) / base_price * 100 if base_price > 0 else Decimal('0')
    return {
        'product_id': product_id,
        'base_price': base_price,
        'wholesale_price': wholesale_price,
        'discount': round_money(discount),
        'quantity': quantity,
        'total': round_money(wholesale_price * quantity),
    }


def validate_wholesale_order(invitation, items, payment_terms):
    """
    Full rule check of a wholesale order.

    Items not in the seller's wholesale catalog make the whole result
    invalid straight away; otherwise MOQ, payment terms and minimum order
    value errors are collected together and the deposit is computed.
    """
    catalog = _catalog(invitation, [item['product_id'] for item in items])

    pricing_errors = []
    total_value = Decimal('0')
    for item in items:
        entry = catalog.get(int(item['product_id']))
        if entry is None:
            pricing_errors.append(f"Product {item['product_id']} is not available for wholesale")
            continue
        total_value += entry.wholesale_price * int(item['quantity'])

    if pricing_errors:
        return {
            'valid': False,
            'errors': pricing_errors,
            'warnings': [],
            'moq_validation': {'valid': False, 'errors': pricing_errors, 'items_failing_moq': []},
            'payment_terms_validation': {'valid': False, 'allowed_terms': [], 'requested_term': payment_terms, 'error': None},
            'minimum_value_validation': {'met': False, 'minimum_value': Decimal('0'), 'current_value': Decimal('0'), 'shortfall': Decimal('0')},
            'deposit_calculation': {'order_value': Decimal('0'), 'deposit_percentage': Decimal('0'), 'deposit_amount': Decimal('0'), 'balance_amount': Decimal('0')},
            'total_value': Decimal('0'),
        }

    errors = []
    moq_validation = _check_moq(items, catalog, "Product {product_id} not found in wholesale catalog")
    errors.extend(moq_validation['errors'])

    payment_terms_validation = validate_payment_terms(invitation, payment_terms)
    if not payment_terms_validation['valid']:
        errors.append(payment_terms_validation['error'])

    minimum_value_validation = validate_minimum_order_value(invitation, total_value)
    if not minimum_value_validation['met']:
        errors.append(
            f"Minimum order value not met. Required: ${minimum_value_validation['minimum_value']}, "
            f"Current: ${total_value:.2f}, Shortfall: ${minimum_value_validation['shortfall']:.2f}"
        )

    return {
        'valid': not errors,
        'errors': errors,
        'warnings': [],
        'moq_validation': moq_validation,
        'payment_terms_validation': payment_terms_validation,
        'minimum_value_validation': minimum_value_validation,
        'deposit_calculation': calculate_deposit(total_value, get_deposit_percentage(invitation)),
        'total_value': round_money(total_value),
    }
