"""
Retail order lifecycle: checkout from a cart, status and fulfillment
updates by the seller, refunds.
"""
import logging

from django.db import transaction
from django.db.models import F
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from storefront.cart.models import Cart
from storefront.cart.validation import validate_cart
from storefront.catalog.models import Product, ProductVariant
from storefront.core.cache_utils import cached_query, invalidate_orders_cache, orders_prefix, ORDERS_LIST_CACHE_TTL
from storefront.core.events import emit
from storefront.core.exceptions import BusinessRuleViolation
from storefront.core.utils import generate_reference
from storefront.pricing.services import calculate_cart_totals, calculate_refund_amount
from .models import Order, OrderItem, OrderEvent, Refund
from .presentation import get_next_order_statuses, FULFILLMENT_STATUS_LABELS
from .serializers import OrderListSerializer

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ('name', 'address', 'city', 'state', 'postal_code', 'country')


def _address_fields(prefix, address):
    address = address or {}
    return {f"{prefix}_{field}": address.get(field, '') or '' for field in ADDRESS_FIELDS}


def _decrement_stock(item):
    if not item.product.tracks_stock:
        return
    if item.variant_id:
        ProductVariant.objects.filter(pk=item.variant_id).update(stock_quantity=F('stock_quantity') - item.quantity)
    else:
        Product.objects.filter(pk=item.product_id).update(stock_quantity=F('stock_quantity') - item.quantity)


def _notify(order, event_type):
    emit('order_updated', sender=Order, order_id=order.id, order_number=order.order_number,
         status=order.status, event_type=event_type, buyer_id=order.buyer_id, seller_id=order.seller_id)


def create_order(buyer, cart_id, shipping_address=None, billing_address=None, buyer_notes=''):
    """
    Turn the buyer's cart into an order.

    The cart must belong to the buyer, hold at least one item and pass
    cart validation. The cart row is locked for the whole checkout, so
    status, stock and totals are checked and written in one transaction.
    Completing the cart frees its session id for the shopper's next cart.
    """
    with transaction.atomic():
        cart = Cart.objects.select_for_update().filter(pk=cart_id).first()
        if cart is None:
            raise NotFound('Cart not found')
        if cart.buyer_id != buyer.id:
            raise PermissionDenied('Unauthorized: Cart does not belong to the current user')
        if cart.status != 'active':
            raise BusinessRuleViolation('Cart has already been checked out', 'cart_not_active')

        items = list(cart.items.select_related('product'))
        if not items:
            raise BusinessRuleViolation('Cart is empty', 'cart_empty')

        product_ids = sorted({item.product_id for item in items})
        list(Product.objects.select_for_update().filter(pk__in=product_ids))
        list(ProductVariant.objects.select_for_update().filter(product_id__in=product_ids))

        validation = validate_cart(cart)
        if not validation['valid']:
            raise ValidationError({'detail': 'Cart validation failed', 'errors': validation['errors']})

        totals = calculate_cart_totals(cart)

        order = Order.objects.create(
            order_number=generate_reference('ORD'),
            buyer=buyer,
            seller_id=cart.seller_id,
            cart=cart,
            status='pending',
            fulfillment_status='unfulfilled',
            payment_status='pending',
            subtotal=totals['subtotal'],
            tax_amount=totals['tax'],
            total=totals['total'],
            currency=totals['currency'],
            buyer_notes=buyer_notes or '',
            **_address_fields('shipping', shipping_address),
            **_address_fields('billing', billing_address or shipping_address),
        )

        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=item.product,
                product_name=item.product.name,
                product_sku=item.product.sku or '',
                variant_key=item.variant_key,
                quantity=item.quantity,
                price=item.unit_price,
                subtotal=item.get_line_total(),
            )
            for item in items
        ])

        for item in items:
            _decrement_stock(item)

        cart.status = 'completed'
        cart.session_id = None
        cart.save(update_fields=['status', 'session_id', 'updated_at'])

        OrderEvent.objects.create(
            order=order,
            event_type='order_created',
            description=f"Order {order.order_number} placed",
            performed_by=buyer,
            payload={'cart_id': cart.id, 'total': str(order.total)},
        )

    logger.info(f"Order {order.order_number} created for buyer {buyer.id} from cart {cart.id}")
    invalidate_orders_cache(buyer_id=order.buyer_id, seller_id=order.seller_id)
    _notify(order, 'order_created')
    emit('sale_completed', sender=Order, order_id=order.id, seller_id=order.seller_id, total=str(order.total))
    return order


@cached_query(cache_ttl=ORDERS_LIST_CACHE_TTL, key_prefix=lambda user, role: orders_prefix(role, user.id))
def list_orders(user, role):
    """Serialized order list for a buyer (role='buyer') or seller (role='seller')"""
    lookup = {'seller': user} if role == 'seller' else {'buyer': user}
    orders = Order.objects.filter(**lookup).prefetch_related('items')
    return OrderListSerializer(orders, many=True).data


def get_order(order_id, user):
    """Order visible to its buyer or seller"""
    order = Order.objects.filter(pk=order_id).first()
    if order is None or user.id not in (order.buyer_id, order.seller_id):
        raise NotFound('Order not found')
    return order


def get_seller_order(order_id, seller):
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        raise NotFound('Order not found')
    if order.seller_id != seller.id:
        raise PermissionDenied('Unauthorized')
    return order


@transaction.atomic
def update_order_status(order, new_status, seller):
    new_status = (new_status or '').lower()
    allowed = get_next_order_statuses(order.status)
    if new_status not in allowed:
        raise BusinessRuleViolation(
            f"Cannot change order status from '{order.status}' to '{new_status}'. Allowed: {', '.join(allowed) or 'none'}",
            'invalid_transition',
        )

    previous = order.status
    order.status = new_status
    if new_status == 'paid':
        order.payment_status = 'paid'
        order.amount_paid = order.total
    order.save(update_fields=['status', 'payment_status', 'amount_paid', 'updated_at'])

    OrderEvent.objects.create(
        order=order,
        event_type='status_changed',
        description=f"Status changed from {previous} to {new_status}",
        performed_by=seller,
        payload={'from': previous, 'to': new_status},
    )
    invalidate_orders_cache(buyer_id=order.buyer_id, seller_id=order.seller_id)
    _notify(order, 'status_changed')
    return order


@transaction.atomic
def update_order_fulfillment(order, fulfillment_status, seller, tracking_number=None, carrier=None):
    """Set the fulfillment status; items get tracking details when both tracking number and carrier are given"""
    fulfillment_status = (fulfillment_status or '').lower()
    if fulfillment_status not in FULFILLMENT_STATUS_LABELS:
        raise ValidationError({'status': f"Unknown fulfillment status '{fulfillment_status}'"})
    order.fulfillment_status = fulfillment_status
    if tracking_number:
        order.tracking_number = tracking_number
    if carrier:
        order.carrier = carrier
    order.save(update_fields=['fulfillment_status', 'tracking_number', 'carrier', 'updated_at'])

    if tracking_number and carrier:
        order.items.update(item_status=fulfillment_status, tracking_number=tracking_number, carrier=carrier)

    OrderEvent.objects.create(
        order=order,
        event_type='fulfillment_updated',
        description=f"Fulfillment status set to {fulfillment_status}",
        performed_by=seller,
        payload={'fulfillment_status': fulfillment_status, 'tracking_number': tracking_number or '', 'carrier': carrier or ''},
    )
    invalidate_orders_cache(buyer_id=order.buyer_id, seller_id=order.seller_id)
    _notify(order, 'fulfillment_updated')
    return order


@transaction.atomic
def issue_refund(order, refund_type, seller, line_items=None, reason=''):
    """
    Refund an order.

    Only orders whose next statuses include ``refunded`` can be refunded.
    The order row is locked first so earlier refunds are always counted.
    A full refund (or a partial one that exhausts the total) moves the
    order and its payment to ``refunded``; otherwise the payment becomes
    ``partially_refunded`` and the order status is kept.
    """
    order = Order.objects.select_for_update().get(pk=order.pk)
    if 'refunded' not in get_next_order_statuses(order.status):
        raise BusinessRuleViolation(f"Order in status '{order.status}' cannot be refunded", 'not_refundable')

    refund_type = (refund_type or '').lower()
    amount = calculate_refund_amount(order, refund_type, line_items)

    refund = Refund.objects.create(
        order=order,
        amount=amount,
        refund_type=refund_type,
        reason=reason or '',
        line_items=line_items or [],
        processed_by=seller,
    )

    order.amount_refunded = order.amount_refunded + amount
    if refund_type == 'full' or order.amount_refunded >= order.total:
        order.status = 'refunded'
        order.payment_status = 'refunded'
    else:
        order.payment_status = 'partially_refunded'
    order.save(update_fields=['status', 'payment_status', 'amount_refunded', 'updated_at'])

    OrderEvent.objects.create(
        order=order,
        event_type='refund_issued',
        description=f"{refund_type.capitalize()} refund of {amount} issued",
        performed_by=seller,
        payload={'refund_id': refund.id, 'amount': str(amount), 'reason': reason or ''},
    )
    invalidate_orders_cache(buyer_id=order.buyer_id, seller_id=order.seller_id)
    _notify(order, 'refund_issued')
    return refund
