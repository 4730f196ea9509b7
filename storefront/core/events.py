"""
Domain events.

Services fire these after their database transaction commits, so a
receiver never observes a rolled-back change. Delivery to browsers
(websockets, push) is left to whatever connects to them.
"""
import logging

from django.db import transaction
from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

order_updated = Signal()
sale_completed = Signal()
cart_updated = Signal()
quotation_created = Signal()
quotation_updated = Signal()
quotation_sent = Signal()
quotation_accepted = Signal()
wholesale_invitation_sent = Signal()
wholesale_invitation_accepted = Signal()
wholesale_invitation_rejected = Signal()
wholesale_order_placed = Signal()

ALL_EVENTS = {
    'order_updated': order_updated,
    'sale_completed': sale_completed,
    'cart_updated': cart_updated,
    'quotation_created': quotation_created,
    'quotation_updated': quotation_updated,
    'quotation_sent': quotation_sent,
    'quotation_accepted': quotation_accepted,
    'wholesale_invitation_sent': wholesale_invitation_sent,
    'wholesale_invitation_accepted': wholesale_invitation_accepted,
    'wholesale_invitation_rejected': wholesale_invitation_rejected,
    'wholesale_order_placed': wholesale_order_placed,
}


def emit(event_name, sender, **payload):
    """Send an event once the surrounding transaction (if any) commits"""
    signal = ALL_EVENTS[event_name]

    def _send():
        results = signal.send_robust(sender=sender, event=event_name, **payload)
        for handler, result in results:
            if isinstance(result, Exception):
                logger.error(f"Event receiver {handler} failed for {event_name}: {result}")

    transaction.on_commit(_send)


@receiver(list(ALL_EVENTS.values()))
def log_event(sender, event=None, **payload):
    logger.info(f"Event {event} from {getattr(sender, '__name__', sender)}: {payload}")
