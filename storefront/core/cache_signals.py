"""
Cache invalidation signals
Automatically invalidate cache when catalog or order data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_products_cache, invalidate_analytics_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

CATALOG_MODELS = ('Product', 'ProductVariant', 'Category', 'Review')
ANALYTICS_MODELS = ('Order', 'OrderItem', 'ProductVariant')


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_catalog_cache(sender, instance, **kwargs):
    """Invalidate storefront product pages when catalog rows change"""
    if is_suspended() or sender.__name__ not in CATALOG_MODELS:
        return
    if sender._meta.app_label != 'catalog':
        return
    # Invalidate AFTER commit so the cache is not repopulated with stale rows
    transaction.on_commit(invalidate_products_cache)


@receiver([post_save, post_delete])
def invalidate_dashboard_cache(sender, instance, **kwargs):
    """Invalidate the analytics dashboard when orders or stock change"""
    if is_suspended() or sender.__name__ not in ANALYTICS_MODELS:
        return
    if sender._meta.app_label not in ('orders', 'catalog'):
        return
    transaction.on_commit(invalidate_analytics_cache)
