"""
Cache invalidation signals
Automatically invalidate cached list queries when their rows change
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import (
    invalidate_quotations_cache, invalidate_orders_cache, invalidate_storefront_cache,
)

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender='catalog.Product')
def product_changed(sender, instance, **kwargs):
    invalidate_storefront_cache(instance.seller_id)


@receiver([post_save, post_delete], sender='catalog.ProductVariant')
def variant_changed(sender, instance, **kwargs):
    invalidate_storefront_cache(instance.product.seller_id)


@receiver([post_save, post_delete], sender='orders.Order')
def order_changed(sender, instance, **kwargs):
    invalidate_orders_cache(buyer_id=instance.buyer_id, seller_id=instance.seller_id)


@receiver([post_save, post_delete], sender='quotations.TradeQuotation')
def quotation_changed(sender, instance, **kwargs):
    invalidate_quotations_cache(instance.seller_id)
