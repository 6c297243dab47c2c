"""
Caching utilities for expensive read endpoints.

Keys are namespaced by a per-prefix version number held in the cache itself,
so a whole family of keys is invalidated by bumping the version. This works
the same on the Redis backend and the local-memory backend used in tests.
"""
import hashlib
import logging
from functools import wraps

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

PRODUCTS_LIST_CACHE_PREFIX = 'products_list'


def _prefix_version(prefix):
    version_key = f"{prefix}:version"
    version = cache.get(version_key)
    if version is None:
        version = 1
        cache.set(version_key, version, None)
    return version


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:v{_prefix_version(prefix)}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="products_list")
        def get_expensive_data(filters):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_prefix(prefix):
    """Invalidate every key generated for a prefix"""
    version_key = f"{prefix}:version"
    try:
        cache.incr(version_key)
    except ValueError:
        # Version key expired or was never set
        cache.set(version_key, 2, None)
    logger.debug(f"Invalidated cache prefix: {prefix}")


def product_list_cache_ttl():
    return settings.STOREFRONT['PRODUCT_LIST_CACHE_TTL']
