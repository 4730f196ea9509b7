"""
Pricing calculations shared by cart, orders, wholesale and quotations.

Money is handled as Decimal rounded half-up to cents; wholesale carts
work in integer cents throughout.
"""
import logging
import time
from decimal import Decimal, ROUND_HALF_UP

import requests
from django.core.cache import cache
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from storefront.core.conf import get_setting
from storefront.core.exceptions import ExchangeRateUnavailable

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value):
    if value is None or value == '':
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value):
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_cents(value):
    """Round a cent amount (possibly fractional) to a whole number of cents"""
    return int(to_decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def to_cents(amount):
    return round_cents(to_decimal(amount) * HUNDRED)


def from_cents(cents):
    return (Decimal(cents) / HUNDRED).quantize(CENT)


# Quotations
def calculate_quotation_line_total(unit_price, quantity, discount=0):
    return round_money(round_money(unit_price) * int(quantity) - to_decimal(discount))


def calculate_quotation_totals(line_items, deposit_percentage=None, tax_rate=0, shipping_amount=0):
    """
    Totals for a trade quotation.

    Every amount is computed in cents so that deposit + balance always
    equals the total exactly.

    Args:
        line_items: iterable of dicts with ``unit_price``, ``quantity`` and
            optionally ``description``
        deposit_percentage: defaults to QUOTATION_DEFAULT_DEPOSIT_PERCENTAGE
        tax_rate: fraction, e.g. 0.08
        shipping_amount: flat amount added after tax
    """
    if deposit_percentage is None:
        deposit_percentage = get_setting('QUOTATION_DEFAULT_DEPOSIT_PERCENTAGE')
    deposit_percentage = to_decimal(deposit_percentage)

    lines = []
    subtotal_cents = 0
    for item in line_items:
        quantity = int(item.get('quantity', 0))
        line_total_cents = to_cents(item.get('unit_price')) * quantity
        subtotal_cents += line_total_cents
        lines.append({
            'description': item.get('description', ''),
            'unit_price': round_money(item.get('unit_price')),
            'quantity': quantity,
            'line_total': from_cents(line_total_cents),
        })

    tax_cents = round_cents(subtotal_cents * to_decimal(tax_rate))
    shipping_cents = to_cents(shipping_amount)
    total_cents = subtotal_cents + tax_cents + shipping_cents
    deposit_cents = round_cents(total_cents * deposit_percentage / HUNDRED)
    balance_cents = total_cents - deposit_cents

    return {
        'line_items': lines,
        'subtotal': from_cents(subtotal_cents),
        'tax_amount': from_cents(tax_cents),
        'shipping_amount': from_cents(shipping_cents),
        'total': from_cents(total_cents),
        'deposit_amount': from_cents(deposit_cents),
        'deposit_percentage': deposit_percentage,
        'balance_amount': from_cents(balance_cents),
    }


# Wholesale carts
def calculate_wholesale_cart_totals(items, deposit_percentage=None):
    if deposit_percentage is None:
        deposit_percentage = get_setting('WHOLESALE_CART_DEFAULT_DEPOSIT_PERCENTAGE')
    deposit_percentage = to_decimal(deposit_percentage)

    lines = []
    for item in items:
        quantity = int(item['quantity'])
        moq = item.get('moq')
        lines.append({
            'product_id': item.get('product_id'),
            'quantity': quantity,
            'unit_price_cents': int(item['unit_price_cents']),
            'line_total_cents': int(item['unit_price_cents']) * quantity,
            'moq': moq,
            'moq_compliant': not moq or quantity >= moq,
        })

    subtotal_cents = sum(line['line_total_cents'] for line in lines)
    deposit_cents = round_cents(subtotal_cents * deposit_percentage / HUNDRED)

    return {
        'items': lines,
        'subtotal_cents': subtotal_cents,
        'deposit_cents': deposit_cents,
        'balance_due_cents': subtotal_cents - deposit_cents,
        'deposit_percentage': deposit_percentage,
        'total_cents': subtotal_cents,
    }


def validate_wholesale_moq(items):
    violations = []
    for index, item in enumerate(items):
        moq = item.get('moq')
        if moq and int(item['quantity']) < moq:
            violations.append({'index': index, 'quantity': int(item['quantity']), 'moq': moq})
    return {'is_valid': not violations, 'violations': violations}


def calculate_wholesale_order_total(items):
    """Sum of price * quantity for items given as {price, quantity}"""
    return round_money(sum((to_decimal(item['price']) * int(item['quantity']) for item in items), Decimal('0')))


def calculate_wholesale_deposit(items, deposit_percentage):
    subtotal = calculate_wholesale_order_total(items)
    return round_money(subtotal * to_decimal(deposit_percentage) / HUNDRED)


# Retail carts and orders
def calculate_cart_totals(cart, tax_rate=None):
    if tax_rate is None:
        tax_rate = get_setting('DEFAULT_TAX_RATE')

    subtotal = round_money(sum((item.unit_price * item.quantity for item in cart.items.all()), Decimal('0')))
    tax = round_money(subtotal * to_decimal(tax_rate))
    return {
        'subtotal': subtotal,
        'tax': tax,
        'total': subtotal + tax,
        'currency': get_setting('DEFAULT_CURRENCY'),
    }


def calculate_refund_amount(order, refund_type, line_items=None):
    """
    Amount to refund for an order.

    A full refund returns the order total. A partial refund sums the
    ``amount`` of each line item and may not exceed what is left after
    earlier refunds.
    """
    refund_type = (refund_type or '').lower()
    if refund_type == 'full':
        return round_money(order.total)
    if refund_type != 'partial':
        raise ValidationError({'refund_type': f"Unknown refund type '{refund_type}'"})

    if not line_items:
        raise ValidationError({'line_items': 'Line items required for partial refund'})

    amount = round_money(sum((to_decimal(item.get('amount')) for item in line_items), Decimal('0')))
    if amount <= 0:
        raise ValidationError({'line_items': 'Refund amount must be greater than zero'})

    refundable = round_money(order.total) - round_money(order.amount_refunded)
    if amount > refundable:
        raise ValidationError({'line_items': f"Refund amount {amount} exceeds refundable amount {refundable}"})
    return amount


# Currency conversion
def _rate_cache_key(from_currency, to_currency):
    return f"fx:{from_currency}_{to_currency}"


def _last_known_good_key(from_currency, to_currency):
    return f"fx:lkg:{from_currency}_{to_currency}"


def fetch_exchange_rates(base_currency):
    """Rates keyed by lowercase currency code, for one base currency"""
    base = base_currency.lower()
    url = get_setting('EXCHANGE_RATE_API_URL').format(base=base)
    response = requests.get(url, timeout=get_setting('EXCHANGE_RATE_TIMEOUT'))
    response.raise_for_status()
    return response.json().get(base) or {}


def get_exchange_rate(from_currency, to_currency):
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()
    if from_currency == to_currency:
        return Decimal('1')

    cache_key = _rate_cache_key(from_currency, to_currency)
    cached = cache.get(cache_key)
    if cached is not None:
        return Decimal(cached)

    max_retries = int(get_setting('EXCHANGE_RATE_MAX_RETRIES'))
    retry_delay = float(get_setting('EXCHANGE_RATE_RETRY_DELAY'))
    last_error = None

    for attempt in range(max_retries):
        try:
            rates = fetch_exchange_rates(from_currency)
            rate = rates.get(to_currency.lower())
            if not rate:
                raise ValueError(f"No exchange rate found for {from_currency} to {to_currency}")

            rate = str(rate)
            cache.set(cache_key, rate, get_setting('EXCHANGE_RATE_CACHE_TTL'))
            cache.set(_last_known_good_key(from_currency, to_currency), rate, None)
            return Decimal(rate)
        except (requests.RequestException, ValueError) as e:
            last_error = e
            logger.warning(f"Exchange rate fetch {from_currency}->{to_currency} failed (attempt {attempt + 1}/{max_retries}): {e}")
            if attempt < max_retries - 1:
                time.sleep(retry_delay * (attempt + 1))

    last_known_good = cache.get(_last_known_good_key(from_currency, to_currency))
    if last_known_good is not None:
        logger.warning(f"Using last-known-good rate for {from_currency} to {to_currency}")
        return Decimal(last_known_good)

    raise ExchangeRateUnavailable(
        f"Failed to fetch exchange rate from {from_currency} to {to_currency} after {max_retries} attempts: {last_error}"
    )


def convert_price(amount, from_currency, to_currency):
    amount = to_decimal(amount)
    if from_currency.upper() == to_currency.upper():
        return amount
    return round_money(amount * get_exchange_rate(from_currency, to_currency))


def get_exchange_rate_details(from_currency, to_currency):
    return {
        'from': from_currency.upper(),
        'to': to_currency.upper(),
        'rate': get_exchange_rate(from_currency, to_currency),
        'timestamp': timezone.now(),
    }
