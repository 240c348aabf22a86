import json

import redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger()

_redis_client = None

PRICE_KEY_PREFIX = "price"


def get_redis_client():
    """Shared client, or None when REDIS_URL is unset or the server is down."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    if not settings.redis_url:
        return None

    try:
        client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
        logger.info("Redis connected")
        _redis_client = client
        return _redis_client
    except RedisError as e:
        logger.warning(f"Redis unavailable, price cache disabled: {e}")
        return None


# -------------------------------------------------------
# Generic JSON helpers (a Redis error is a cache miss)
# -------------------------------------------------------
def get_cache(key: str):
    client = get_redis_client()
    if not client:
        return None
    try:
        data = client.get(key)
        return json.loads(data) if data else None
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None


def set_cache(key: str, value, ttl: int = 60):
    client = get_redis_client()
    if not client:
        return
    try:
        client.setex(key, ttl, json.dumps(value))
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")


# -------------------------------------------------------
# Price rules
# -------------------------------------------------------
def price_cache_key(class_type: str, duration: int, package: str) -> str:
    """price:class 7:60:10 lessons"""
    return f"{PRICE_KEY_PREFIX}:{class_type}:{int(duration)}:{package}"


def get_cached_price(key: str):
    """(hit, price). A hit may carry None: the table has no such rule."""
    cached = get_cache(key)
    if cached is None:
        return False, None
    return True, cached.get("price")


def cache_price(key: str, price, ttl: int):
    set_cache(key, {"price": price}, ttl=ttl)
