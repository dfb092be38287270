"""
Caching utilities for expensive dashboard queries
Uses Redis when configured (django-redis), local memory otherwise
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_STATS_CACHE_TTL = 300  # 5 minutes
DASHBOARD_CATEGORIES_CACHE_TTL = 300  # 5 minutes

DASHBOARD_CACHE_PREFIXES = ('dashboard_stats', 'dashboard_categories')


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    # Convert args and kwargs to a stable string representation
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="dashboard_stats")
        def get_expensive_data(user_id):
            # expensive query here
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            try:
                cached_data = cache.get(cache_key)
            except Exception as e:
                logger.warning(f"Cache unavailable, proceeding without cache: {e}")
                return func(*args, **kwargs)

            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)

            try:
                cache.set(cache_key, result, cache_ttl)
            except Exception as e:
                logger.warning(f"Could not store {key_prefix} in cache: {e}")

            return result
        return wrapper
    return decorator


def invalidate_dashboard_cache(user_id):
    """Drop a user's cached dashboard aggregates"""
    keys = [make_cache_key(prefix, user_id) for prefix in DASHBOARD_CACHE_PREFIXES]
    try:
        cache.delete_many(keys)
        logger.debug(f"Invalidated dashboard cache for user {user_id}")
    except Exception as e:
        logger.warning(f"Could not invalidate dashboard cache for user {user_id}: {e}")
