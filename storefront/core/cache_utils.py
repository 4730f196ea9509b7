"""
Caching utilities for expensive list queries
Uses Redis (django-redis) in production, local memory in development
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
STOREFRONT_PRODUCTS_CACHE_TTL = 120  # 2 minutes
QUOTATIONS_LIST_CACHE_TTL = 300  # 5 minutes
ORDERS_LIST_CACHE_TTL = 180  # 3 minutes


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def quotations_prefix(seller_id):
    return f"quotations:seller:{seller_id}:"


def orders_prefix(role, user_id):
    return f"orders:{role}:{user_id}:"


def storefront_products_prefix(seller_id):
    return f"storefront_products:{seller_id}:"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    ``key_prefix`` may be a string or a callable receiving the wrapped
    function's arguments, so per-owner prefixes can be invalidated together.

    Usage:
        @cached_query(cache_ttl=120, key_prefix=lambda seller: quotations_prefix(seller.id))
        def list_quotations(seller):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            prefix = key_prefix(*args, **kwargs) if callable(key_prefix) else key_prefix
            cache_key = make_cache_key(prefix, *[getattr(a, 'pk', a) for a in args], **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Uses Redis SCAN when the backend is django-redis; any other backend has
    no key enumeration, so the whole cache is cleared instead.
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")
    except NotImplementedError:
        cache.clear()
        logger.debug(f"Cache backend has no pattern support, cleared cache for pattern: {pattern}")
        return

    try:
        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_quotations_cache(seller_id):
    invalidate_cache_pattern(quotations_prefix(seller_id))


def invalidate_orders_cache(buyer_id=None, seller_id=None):
    if buyer_id:
        invalidate_cache_pattern(orders_prefix('buyer', buyer_id))
    if seller_id:
        invalidate_cache_pattern(orders_prefix('seller', seller_id))


def invalidate_storefront_cache(seller_id):
    invalidate_cache_pattern(storefront_products_prefix(seller_id))
