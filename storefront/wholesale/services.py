"""
Wholesale flows: invitations, access grants, orders and payments.
"""
import logging
import secrets
from datetime import timedelta

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from storefront.core.conf import get_setting
from storefront.core.events import emit
from storefront.core.exceptions import AlreadyExists, BusinessRuleViolation, InvitationExpired, WholesaleValidationFailed
from storefront.core.utils import generate_reference
from storefront.pricing.services import from_cents, round_cents, to_cents
from .models import (
    WholesaleProduct, WholesaleInvitation, WholesaleAccessGrant,
    WholesaleOrder, WholesaleOrderItem, WholesaleOrderEvent
)
from .rules import validate_wholesale_order, calculate_payment_due_date

logger = logging.getLogger(__name__)


# Invitations
@transaction.atomic
def create_invitation(seller, buyer_email, buyer_name='', wholesale_terms=None, message=''):
    ttl_days = int(get_setting('WHOLESALE_INVITATION_TTL_DAYS'))
    invitation = WholesaleInvitation.objects.create(
        seller=seller,
        buyer_email=buyer_email,
        buyer_name=buyer_name or '',
        token=secrets.token_urlsafe(32),
        status='pending',
        wholesale_terms=wholesale_terms or {},
        message=message or '',
        expires_at=timezone.now() + timedelta(days=ttl_days),
    )
    logger.info(f"Wholesale invitation {invitation.id} created by seller {seller.id} for {buyer_email}")
    emit('wholesale_invitation_sent', sender=WholesaleInvitation, invitation_id=invitation.id,
         seller_id=seller.id, buyer_email=buyer_email)
    return invitation


def list_invitations(seller):
    return WholesaleInvitation.objects.filter(seller=seller).select_related('buyer')


def _pending_invitation(token, check_expiry=True):
    invitation = WholesaleInvitation.objects.select_related('seller').filter(token=token).first()
    if invitation is None:
        raise NotFound('Invitation not found')
    if invitation.status != 'pending':
        raise BusinessRuleViolation('Invitation has already been processed', 'already_processed')
    if check_expiry and invitation.expires_at < timezone.now():
        raise InvitationExpired('Invitation has expired')
    return invitation


def get_invitation_by_token(token):
    return _pending_invitation(token)


@transaction.atomic
def accept_invitation(token, buyer):
    """
    Accept a pending invitation and open wholesale access to the seller.

    The grant copies the invitation's wholesale terms. A buyer that already
    holds an active grant for the seller gets a 409.
    """
    invitation = _pending_invitation(token)

    grant = WholesaleAccessGrant.objects.filter(buyer=buyer, seller_id=invitation.seller_id).first()
    if grant is not None and grant.is_active:
        raise AlreadyExists('Access already granted')

    invitation.status = 'accepted'
    invitation.buyer = buyer
    invitation.accepted_at = timezone.now()
    invitation.save(update_fields=['status', 'buyer', 'accepted_at'])

    if grant is None:
        grant = WholesaleAccessGrant.objects.create(
            buyer=buyer,
            seller_id=invitation.seller_id,
            invitation=invitation,
            status='active',
            wholesale_terms=invitation.wholesale_terms,
        )
    else:
        grant.status = 'active'
        grant.invitation = invitation
        grant.wholesale_terms = invitation.wholesale_terms
        grant.save(update_fields=['status', 'invitation', 'wholesale_terms', 'updated_at'])

    logger.info(f"Wholesale invitation {invitation.id} accepted by buyer {buyer.id}")
    emit('wholesale_invitation_accepted', sender=WholesaleInvitation, invitation_id=invitation.id,
         seller_id=invitation.seller_id, buyer_id=buyer.id)
    return invitation, grant


@transaction.atomic
def reject_invitation(token):
    invitation = _pending_invitation(token, check_expiry=False)
    invitation.status = 'rejected'
    invitation.save(update_fields=['status'])
    emit('wholesale_invitation_rejected', sender=WholesaleInvitation, invitation_id=invitation.id,
         seller_id=invitation.seller_id)
    return invitation


def expire_invitations(now=None):
    """Mark pending invitations past their expiry as expired; returns how many changed"""
    now = now or timezone.now()
    return WholesaleInvitation.objects.filter(status='pending', expires_at__lt=now).update(status='expired')


def get_access_grants(user, user_type):
    grants = WholesaleAccessGrant.objects.select_related('buyer', 'seller')
    if user_type == 'seller':
        return grants.filter(seller=user)
    return grants.filter(buyer=user)


# Orders
def place_wholesale_order(buyer, seller_id, items, payment_terms=None, po_number='',
                          shipping_address=None, billing_address=None):
    """
    Place a wholesale order against a seller the buyer has access to.

    ``items`` is a list of {product_id, quantity, variant_key?}. The order
    must first pass every wholesale rule, otherwise the full validation
    result is returned with the 422. Every item is then priced from the
    seller's wholesale catalog.
    """
    payment_terms = payment_terms or get_setting('WHOLESALE_DEFAULT_PAYMENT_TERMS')

    if not WholesaleAccessGrant.objects.filter(buyer=buyer, seller_id=seller_id, status='active').exists():
        raise PermissionDenied('No wholesale access to this seller')

    invitation = (
        WholesaleInvitation.objects
        .filter(buyer=buyer, seller_id=seller_id, status='accepted')
        .order_by('-accepted_at')
        .first()
    )
    if invitation is None:
        raise NotFound('Wholesale invitation not found')

    validation = validate_wholesale_order(invitation, items, payment_terms)
    if not validation['valid']:
        raise WholesaleValidationFailed(validation)

    catalog = {
        entry.product_id: entry
        for entry in (
            WholesaleProduct.objects
            .select_related('product')
            .filter(seller_id=seller_id, product_id__in=[item['product_id'] for item in items])
        )
    }

    subtotal_cents = 0
    order_items = []
    for item in items:
        entry = catalog[int(item['product_id'])]
        product = entry.product
        if product.seller_id != int(seller_id):
            raise BusinessRuleViolation(f"Product {item['product_id']} does not belong to this seller", 'wrong_seller')

        unit_price_cents = to_cents(entry.wholesale_price)
        quantity = int(item['quantity'])
        line_cents = unit_price_cents * quantity
        subtotal_cents += line_cents
        order_items.append(WholesaleOrderItem(
            product=product,
            product_name=product.name,
            product_sku=product.sku or '',
            variant_key=(item.get('variant_key') or '').lower(),
            quantity=quantity,
            moq=entry.moq,
            unit_price_cents=unit_price_cents,
            subtotal_cents=line_cents,
        ))

    deposit_percentage = validation['deposit_calculation']['deposit_percentage']
    deposit_cents = round_cents(subtotal_cents * deposit_percentage / 100)
    balance_cents = subtotal_cents - deposit_cents
    try:
        balance_due_date = calculate_payment_due_date(timezone.now(), payment_terms).date()
    except ValueError as e:
        raise BusinessRuleViolation(str(e), 'invalid_payment_terms')

    with transaction.atomic():
        order = WholesaleOrder.objects.create(
            order_number=generate_reference('WHS'),
            seller_id=seller_id,
            buyer=buyer,
            invitation=invitation,
            status='pending',
            subtotal_cents=subtotal_cents,
            tax_amount_cents=0,
            total_cents=subtotal_cents,
            deposit_amount_cents=deposit_cents,
            balance_amount_cents=balance_cents,
            deposit_percentage=deposit_percentage,
            balance_percentage=100 - deposit_percentage,
            payment_terms=payment_terms,
            balance_due_date=balance_due_date,
            po_number=po_number or '',
            buyer_email=buyer.email or '',
            buyer_name=f"{buyer.first_name or ''} {buyer.last_name or ''}".strip(),
            currency=get_setting('DEFAULT_CURRENCY'),
            shipping_address=shipping_address or {},
            billing_address=billing_address or shipping_address or {},
        )
        for order_item in order_items:
            order_item.order = order
        WholesaleOrderItem.objects.bulk_create(order_items)
        WholesaleOrderEvent.objects.create(
            order=order,
            event_type='order_created',
            description='Wholesale order placed',
            performed_by=buyer,
        )

    logger.info(f"Wholesale order {order.order_number} placed by buyer {buyer.id} with seller {seller_id}")
    emit('wholesale_order_placed', sender=WholesaleOrder, order_id=order.id, seller_id=order.seller_id,
         buyer_id=buyer.id, total=str(from_cents(order.total_cents)),
         deposit_amount=str(from_cents(deposit_cents)),
         balance_amount=str(from_cents(balance_cents)), payment_terms=payment_terms)
    return order


def list_wholesale_orders(user, role, status=None):
    orders = WholesaleOrder.objects.select_related('buyer', 'seller')
    orders = orders.filter(seller=user) if role == 'seller' else orders.filter(buyer=user)
    if status:
        orders = orders.filter(status=status.lower())
    return orders


def get_wholesale_order(order_id, user):
    order = WholesaleOrder.objects.filter(pk=order_id).first()
    if order is None or user.id not in (order.buyer_id, order.seller_id):
        raise NotFound('Wholesale order not found')
    return order


@transaction.atomic
def record_wholesale_payment(order, payment_type, performed_by=None):
    """
    Record a deposit or balance payment.

    A deposit moves a pending order through ``deposit_paid`` to
    ``awaiting_balance`` (straight to ``paid`` when nothing is left to pay);
    a balance payment settles the order.
    """
    now = timezone.now()

    if payment_type == 'deposit':
        if order.status != 'pending':
            raise BusinessRuleViolation(f"Deposit cannot be recorded for an order in status '{order.status}'", 'invalid_payment')
        order.deposit_paid_at = now
        WholesaleOrderEvent.objects.create(
            order=order, event_type='deposit_paid', performed_by=performed_by,
            description='Deposit payment recorded', payload={'amount_cents': order.deposit_amount_cents},
        )
        order.status = 'awaiting_balance' if order.balance_amount_cents > 0 else 'paid'
    elif payment_type == 'balance':
        if order.status not in ('deposit_paid', 'awaiting_balance', 'balance_overdue'):
            raise BusinessRuleViolation(f"Balance cannot be recorded for an order in status '{order.status}'", 'invalid_payment')
        order.balance_paid_at = now
        order.status = 'paid'
        WholesaleOrderEvent.objects.create(
            order=order, event_type='balance_paid', performed_by=performed_by,
            description='Balance payment recorded', payload={'amount_cents': order.balance_amount_cents},
        )
    else:
        raise BusinessRuleViolation(f"Unknown payment type '{payment_type}'", 'invalid_payment')

    order.save(update_fields=['status', 'deposit_paid_at', 'balance_paid_at', 'updated_at'])
    emit('order_updated', sender=WholesaleOrder, order_id=order.id, order_number=order.order_number,
         status=order.status, event_type=f"{payment_type}_paid", buyer_id=order.buyer_id, seller_id=order.seller_id)
    return order


def mark_overdue_balances(today=None):
    """Move orders whose balance due date has passed to balance_overdue"""
    today = today or timezone.localdate()
    overdue = list(WholesaleOrder.objects.filter(status='awaiting_balance', balance_due_date__lt=today))
    for order in overdue:
        order.status = 'balance_overdue'
        order.save(update_fields=['status', 'updated_at'])
        WholesaleOrderEvent.objects.create(
            order=order,
            event_type='balance_overdue',
            description=f"Balance was due on {order.balance_due_date}",
        )
    return len(overdue)
