"""
Order status wording, colors and allowed transitions.

Pure lookups keyed by the lowercased status; the dashboard and buyer pages
render these as is.
"""

ORDER_STATUS_LABELS = {
    'pending': 'Pending Payment',
    'pending_payment': 'Awaiting Payment',
    'awaiting_payment': 'Awaiting Payment',
    'deposit_paid': 'Deposit Paid',
    'awaiting_balance': 'Awaiting Balance',
    'balance_overdue': 'Balance Overdue',
    'paid': 'Paid',
    'confirmed': 'Confirmed',
    'processing': 'Processing',
    'in_production': 'In Production',
    'ready_to_ship': 'Ready to Ship',
    'shipped': 'Shipped',
    'fulfilled': 'Fulfilled',
    'delivered': 'Delivered',
    'cancelled': 'Cancelled',
    'refunded': 'Refunded',
    'on_hold': 'On Hold',
}

ORDER_STATUS_COLORS = {
    'pending': 'yellow',
    'pending_payment': 'orange',
    'awaiting_payment': 'orange',
    'deposit_paid': 'blue',
    'awaiting_balance': 'orange',
    'balance_overdue': 'red',
    'paid': 'green',
    'confirmed': 'blue',
    'processing': 'blue',
    'in_production': 'purple',
    'ready_to_ship': 'purple',
    'shipped': 'purple',
    'fulfilled': 'green',
    'delivered': 'green',
    'cancelled': 'red',
    'refunded': 'gray',
    'on_hold': 'orange',
}

FULFILLMENT_STATUS_LABELS = {
    'unfulfilled': 'Unfulfilled',
    'partially_fulfilled': 'Partially Fulfilled',
    'fulfilled': 'Fulfilled',
    'in_transit': 'In Transit',
    'delivered': 'Delivered',
}

FULFILLMENT_STATUS_COLORS = {
    'unfulfilled': 'gray',
    'partially_fulfilled': 'yellow',
    'fulfilled': 'blue',
    'in_transit': 'purple',
    'delivered': 'green',
}

ORDER_STATUS_PROGRESSION = {
    'pending': ['awaiting_payment', 'cancelled'],
    'pending_payment': ['deposit_paid', 'paid', 'cancelled'],
    'awaiting_payment': ['deposit_paid', 'paid', 'cancelled'],
    'deposit_paid': ['awaiting_balance', 'cancelled'],
    'awaiting_balance': ['paid', 'balance_overdue', 'cancelled'],
    'balance_overdue': ['paid', 'cancelled'],
    'paid': ['processing', 'cancelled'],
    'confirmed': ['processing', 'cancelled'],
    'processing': ['in_production', 'ready_to_ship', 'fulfilled', 'cancelled'],
    'in_production': ['ready_to_ship', 'fulfilled', 'cancelled'],
    'ready_to_ship': ['fulfilled', 'cancelled'],
    'fulfilled': ['refunded'],
    'shipped': ['delivered', 'refunded'],
    'delivered': ['refunded'],
    'cancelled': [],
    'refunded': [],
}

CANCELLABLE_STATUSES = ('pending_payment', 'awaiting_payment', 'deposit_paid', 'awaiting_balance', 'paid', 'confirmed', 'processing')
REFUNDABLE_STATUSES = ('delivered', 'fulfilled')
FULFILLABLE_STATUSES = ('processing', 'in_production', 'ready_to_ship', 'paid')


def get_order_status_label(status):
    if not status:
        return 'Unknown'
    return ORDER_STATUS_LABELS.get(status.lower(), status)


def get_order_status_color(status):
    if not status:
        return 'gray'
    return ORDER_STATUS_COLORS.get(status.lower(), 'gray')


def get_fulfillment_status_label(status):
    if not status:
        return 'Unknown'
    return FULFILLMENT_STATUS_LABELS.get(status.lower(), status)


def get_fulfillment_status_color(status):
    if not status:
        return 'gray'
    return FULFILLMENT_STATUS_COLORS.get(status.lower(), 'gray')


def get_next_order_statuses(current_status):
    if not current_status:
        return []
    return list(ORDER_STATUS_PROGRESSION.get(current_status.lower(), []))


def get_order_presentation(order):
    if order is None:
        return {
            'status_label': 'Unknown',
            'status_color': 'gray',
            'fulfillment_label': 'Unknown',
            'fulfillment_color': 'gray',
            'next_statuses': [],
            'can_cancel': False,
            'can_refund': False,
            'can_fulfill': False,
        }

    status = order.status or ''
    fulfillment_status = order.fulfillment_status or ''
    normalized = status.lower()
    return {
        'status_label': get_order_status_label(status),
        'status_color': get_order_status_color(status),
        'fulfillment_label': get_fulfillment_status_label(fulfillment_status),
        'fulfillment_color': get_fulfillment_status_color(fulfillment_status),
        'next_statuses': get_next_order_statuses(status),
        'can_cancel': normalized in CANCELLABLE_STATUSES,
        'can_refund': normalized in REFUNDABLE_STATUSES,
        'can_fulfill': normalized in FULFILLABLE_STATUSES,
    }
