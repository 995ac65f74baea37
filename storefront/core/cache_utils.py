"""
Caching utilities for expensive storefront queries
Uses Redis (django-redis) when configured, the local-memory cache otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
ANALYTICS_CACHE_TTL = 300  # 5 minutes

PRODUCTS_LIST_PREFIX = "products_list"
ANALYTICS_PREFIX = "analytics"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.

    django-redis exposes delete_pattern (SCAN + DEL); other backends cannot
    enumerate keys, so the whole cache is cleared instead.
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"*{pattern}*")
            logger.info(f"Invalidated {deleted} cache keys matching pattern: {pattern}")
        else:
            cache.clear()
            logger.debug(f"Cache backend has no pattern delete, cleared cache for pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_cached_products_list(filters_dict):
    """
    Get cached storefront products list for a set of query params
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(PRODUCTS_LIST_PREFIX, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_products_list(cache_key, data, ttl=PRODUCTS_LIST_CACHE_TTL):
    """Cache products list data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached products list: {cache_key}")


def get_cached_analytics(day):
    """Get cached analytics dashboard for a calendar day"""
    cache_key = make_cache_key(ANALYTICS_PREFIX, str(day))
    return cache.get(cache_key), cache_key


def cache_analytics(cache_key, data, ttl=ANALYTICS_CACHE_TTL):
    """Cache analytics dashboard data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached analytics dashboard: {cache_key}")


def invalidate_products_cache():
    """Invalidate all storefront product list pages"""
    invalidate_cache_pattern(PRODUCTS_LIST_PREFIX)


def invalidate_analytics_cache():
    """Invalidate the analytics dashboard"""
    invalidate_cache_pattern(ANALYTICS_PREFIX)
