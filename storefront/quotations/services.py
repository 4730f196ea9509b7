"""
Trade quotations: drafting, sending and acceptance by the buyer.

Totals are never taken from the caller; they are recomputed from the line
items with ``pricing.calculate_quotation_totals`` on every write.
"""
import logging
import secrets

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from storefront.core.cache_utils import (
    cached_query, invalidate_quotations_cache, quotations_prefix, QUOTATIONS_LIST_CACHE_TTL,
)
from storefront.core.conf import get_setting
from storefront.core.events import emit
from storefront.core.exceptions import BusinessRuleViolation
from storefront.core.utils import generate_reference
from storefront.pricing.services import calculate_quotation_totals
from .models import TradeQuotation, TradeQuotationItem, TradeQuotationEvent, TradePaymentSchedule
from .serializers import TradeQuotationListSerializer

logger = logging.getLogger(__name__)

ACCEPTABLE_STATUSES = ('draft', 'sent', 'viewed')


def _totals(items, deposit_percentage, tax_rate=0, shipping_amount=0):
    return calculate_quotation_totals(
        items, deposit_percentage=deposit_percentage, tax_rate=tax_rate, shipping_amount=shipping_amount
    )


def _apply_totals(quotation, totals):
    quotation.subtotal = totals['subtotal']
    quotation.tax_amount = totals['tax_amount']
    quotation.shipping_amount = totals['shipping_amount']
    quotation.total = totals['total']
    quotation.deposit_percentage = totals['deposit_percentage']
    quotation.deposit_amount = totals['deposit_amount']
    quotation.balance_amount = totals['balance_amount']


def _create_items(quotation, items, lines):
    TradeQuotationItem.objects.bulk_create([
        TradeQuotationItem(
            quotation=quotation,
            line_number=index + 1,
            description=line['description'],
            product_id=item.get('product_id'),
            unit_price=line['unit_price'],
            quantity=line['quantity'],
            line_total=line['line_total'],
        )
        for index, (item, line) in enumerate(zip(items, lines))
    ])


def _stored_items(quotation):
    return [
        {'description': item.description, 'unit_price': item.unit_price, 'quantity': item.quantity}
        for item in quotation.items.order_by('line_number')
    ]


def _record_event(quotation, event_type, performed_by=None, payload=None):
    return TradeQuotationEvent.objects.create(
        quotation=quotation,
        event_type=event_type,
        performed_by=performed_by,
        payload=payload or {},
    )


def create_quotation(seller, data):
    """
    Create a draft quotation with its line items.

    ``data`` carries ``buyer_email`` and ``items`` (description, unit_price,
    quantity, product_id?) plus optional currency, deposit_percentage,
    tax_rate, shipping_amount, valid_until, delivery_terms, data_sheet_url,
    terms_and_conditions_url and metadata.
    """
    items = data['items']
    tax_rate = data.get('tax_rate') or 0
    totals = _totals(items, data.get('deposit_percentage'), tax_rate, data.get('shipping_amount') or 0)

    with transaction.atomic():
        quotation = TradeQuotation(
            quotation_number=generate_reference('QT'),
            seller=seller,
            buyer_email=data['buyer_email'],
            buyer_id=data.get('buyer_id'),
            token=secrets.token_urlsafe(32),
            status='draft',
            currency=data.get('currency') or get_setting('DEFAULT_CURRENCY'),
            tax_rate=tax_rate,
            valid_until=data.get('valid_until'),
            delivery_terms=data.get('delivery_terms') or '',
            data_sheet_url=data.get('data_sheet_url') or '',
            terms_and_conditions_url=data.get('terms_and_conditions_url') or '',
            metadata=data.get('metadata') or {},
        )
        _apply_totals(quotation, totals)
        quotation.save()
        _create_items(quotation, items, totals['line_items'])
        _record_event(quotation, 'created', seller, {'quotation_number': quotation.quotation_number})

    logger.info(f"Quotation {quotation.quotation_number} created by seller {seller.id} total {quotation.total}")
    invalidate_quotations_cache(seller.id)
    emit('quotation_created', sender=TradeQuotation, quotation_id=quotation.id,
         quotation_number=quotation.quotation_number, seller_id=seller.id, total=str(quotation.total))
    return quotation


def get_quotation(quotation_id, seller):
    """Quotation owned by the seller; anything else is reported as missing"""
    quotation = TradeQuotation.objects.filter(pk=quotation_id, seller=seller).first()
    if quotation is None:
        raise NotFound('Quotation not found')
    return quotation


def _owned_for_write(quotation_id, seller):
    quotation = TradeQuotation.objects.filter(pk=quotation_id).first()
    if quotation is None:
        raise NotFound('Quotation not found')
    if quotation.seller_id != seller.id:
        raise PermissionDenied('Unauthorized')
    return quotation


def get_quotation_by_token(token, mark_viewed=True):
    """
    Public lookup by share token.

    The first view of a sent quotation moves it to ``viewed``.
    """
    quotation = TradeQuotation.objects.filter(token=token).first()
    if quotation is None:
        raise NotFound('Quotation not found')

    if mark_viewed and quotation.status == 'sent':
        quotation.status = 'viewed'
        quotation.save(update_fields=['status', 'updated_at'])
        _record_event(quotation, 'viewed')
    return quotation


@cached_query(cache_ttl=QUOTATIONS_LIST_CACHE_TTL, key_prefix=lambda seller: quotations_prefix(seller.id))
def list_quotations(seller):
    quotations = TradeQuotation.objects.filter(seller=seller).order_by('-created_at')
    return TradeQuotationListSerializer(quotations, many=True).data


def update_quotation(quotation_id, seller, data):
    """
    Update a quotation's items, deposit or validity.

    New items replace the old ones and everything is recomputed. A change
    of deposit percentage or shipping alone recomputes the totals from the
    stored items.
    """
    quotation = _owned_for_write(quotation_id, seller)
    if quotation.status in ('accepted', 'rejected', 'expired'):
        raise BusinessRuleViolation(f"Quotation in status '{quotation.status}' cannot be edited", 'not_editable')

    items = data.get('items')
    deposit_percentage = data.get('deposit_percentage')
    changes = {
        'items': items is not None,
        'pricing': items is not None or deposit_percentage is not None or 'shipping_amount' in data,
        'terms': 'valid_until' in data,
    }

    with transaction.atomic():
        if items is not None:
            totals = _totals(
                items,
                deposit_percentage if deposit_percentage is not None else quotation.deposit_percentage,
                quotation.tax_rate,
                data.get('shipping_amount', quotation.shipping_amount),
            )
            quotation.items.all().delete()
            _create_items(quotation, items, totals['line_items'])
            _apply_totals(quotation, totals)
        elif deposit_percentage is not None or 'shipping_amount' in data:
            totals = _totals(
                _stored_items(quotation),
                deposit_percentage if deposit_percentage is not None else quotation.deposit_percentage,
                quotation.tax_rate,
                data.get('shipping_amount', quotation.shipping_amount),
            )
            _apply_totals(quotation, totals)

        if 'valid_until' in data:
            quotation.valid_until = data['valid_until']

        quotation.save()
        _record_event(quotation, 'updated', seller, changes)

    logger.info(f"Quotation {quotation.quotation_number} updated by seller {seller.id}: {changes}")
    invalidate_quotations_cache(seller.id)
    emit('quotation_updated', sender=TradeQuotation, quotation_id=quotation.id,
         quotation_number=quotation.quotation_number, seller_id=seller.id, changes=changes)
    return quotation


@transaction.atomic
def send_quotation(quotation_id, seller):
    quotation = _owned_for_write(quotation_id, seller)
    if quotation.status not in ('draft', 'sent', 'viewed'):
        raise BusinessRuleViolation(f"Quotation in status '{quotation.status}' cannot be sent", 'not_sendable')
    if not quotation.items.exists():
        raise BusinessRuleViolation('Quotation has no line items', 'quotation_empty')

    quotation.status = 'sent'
    quotation.save(update_fields=['status', 'updated_at'])
    _record_event(quotation, 'sent', seller, {'buyer_email': quotation.buyer_email})

    logger.info(f"Quotation {quotation.quotation_number} sent to {quotation.buyer_email}")
    invalidate_quotations_cache(seller.id)
    emit('quotation_sent', sender=TradeQuotation, quotation_id=quotation.id,
         quotation_number=quotation.quotation_number, seller_id=seller.id, buyer_email=quotation.buyer_email)
    return quotation


@transaction.atomic
def accept_quotation(quotation, buyer_info=None, buyer=None):
    """
    Accept a quotation on behalf of the buyer.

    Deposit and balance payment schedules are created the first time only;
    accepting again leaves them untouched.
    """
    buyer_info = buyer_info or {}
    if quotation.status not in ACCEPTABLE_STATUSES and quotation.status != 'accepted':
        raise BusinessRuleViolation(f"Quotation in status '{quotation.status}' cannot be accepted", 'not_acceptable')
    today = timezone.localdate()
    if quotation.valid_until and quotation.valid_until < today:
        raise BusinessRuleViolation('Quotation has expired', 'quotation_expired')

    quotation.status = 'accepted'
    if buyer is not None:
        quotation.buyer = buyer
    quotation.save(update_fields=['status', 'buyer', 'updated_at'])
    _record_event(quotation, 'accepted', buyer, buyer_info)

    if not quotation.payment_schedules.filter(payment_type='deposit').exists():
        TradePaymentSchedule.objects.bulk_create([
            TradePaymentSchedule(
                quotation=quotation, payment_type='deposit', amount=quotation.deposit_amount,
                due_date=today, status='pending',
            ),
            TradePaymentSchedule(
                quotation=quotation, payment_type='balance', amount=quotation.balance_amount,
                due_date=quotation.valid_until, status='pending',
            ),
        ])

    logger.info(f"Quotation {quotation.quotation_number} accepted by {buyer_info.get('email') or quotation.buyer_email}")
    invalidate_quotations_cache(quotation.seller_id)
    emit('quotation_accepted', sender=TradeQuotation, quotation_id=quotation.id,
         quotation_number=quotation.quotation_number, seller_id=quotation.seller_id,
         deposit_amount=str(quotation.deposit_amount), balance_amount=str(quotation.balance_amount))
    return quotation


@transaction.atomic
def reject_quotation(quotation, reason=''):
    if quotation.status not in ACCEPTABLE_STATUSES:
        raise BusinessRuleViolation(f"Quotation in status '{quotation.status}' cannot be rejected", 'not_rejectable')
    quotation.status = 'rejected'
    quotation.save(update_fields=['status', 'updated_at'])
    _record_event(quotation, 'rejected', payload={'reason': reason or ''})
    invalidate_quotations_cache(quotation.seller_id)
    return quotation


def expire_quotations(today=None):
    """Mark open quotations whose validity has passed as expired; returns how many changed"""
    today = today or timezone.localdate()
    stale = TradeQuotation.objects.filter(status__in=ACCEPTABLE_STATUSES, valid_until__lt=today)
    seller_ids = set(stale.values_list('seller_id', flat=True))
    count = stale.update(status='expired')
    for seller_id in seller_ids:
        invalidate_quotations_cache(seller_id)
    return count


def get_line_items(quotation):
    return quotation.items.order_by('line_number')


def get_activities(quotation):
    return quotation.events.select_related('performed_by').order_by('-created_at', '-id')


def get_payments(quotation):
    return quotation.payment_schedules.order_by('created_at', 'id')
