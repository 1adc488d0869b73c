"""
Cached read-mostly payloads (product form options and similar lookups)

Keys are ``<name>`` or ``<name>:<digest of arguments>``. With django-redis every
key of a payload can be dropped by prefix; the local-memory cache only drops the
argument-less key.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

PRODUCT_OPTIONS = 'product_options'
PRODUCT_OPTIONS_CACHE_TTL = 600


def make_cache_key(name, *args, **kwargs):
    if not args and not kwargs:
        return name
    digest = hashlib.sha1(repr((args, sorted(kwargs.items()))).encode()).hexdigest()[:16]
    return f"{name}:{digest}"


def cached_payload(name, ttl):
    """Cache a function's return value under ``name`` for ``ttl`` seconds"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            key = make_cache_key(name, *args, **kwargs)
            payload = cache.get(key)
            if payload is None:
                logger.debug(f"Building {name} ({key})")
                payload = func(*args, **kwargs)
                cache.set(key, payload, ttl)
            return payload
        return wrapper
    return decorator


def invalidate_payload(name):
    cache.delete(make_cache_key(name))
    # django-redis only
    if hasattr(cache, 'delete_pattern'):
        cache.delete_pattern(f"{name}:*")
    logger.info(f"Invalidated cached {name}")
