from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis

from weatherdash import config
from weatherdash.models import Coordinate

logger = logging.getLogger(__name__)

# Upstream payloads per (domain, coordinate). Redis is optional: without
# WEATHERDASH_REDIS_URL every lookup misses and every write is dropped.

KEY_PREFIX = "weatherdash"

_redis: redis.Redis | None = None


def client() -> Optional[redis.Redis]:
    global _redis
    if not config.REDIS_URL:
        return None
    if _redis is None:
        _redis = redis.Redis.from_url(config.REDIS_URL, decode_responses=True)
    return _redis


def reset() -> None:
    """Forget the connection so the next call re-reads config.REDIS_URL."""
    global _redis
    _redis = None


def domain_key(domain: str, coord: Coordinate) -> str:
    return f"{KEY_PREFIX}:{domain}:{coord.latitude}:{coord.longitude}"


def lookup(domain: str, coord: Coordinate) -> Any | None:
    """Cached payload for the domain at this coordinate, or None on a miss."""
    r = client()
    if r is None:
        return None
    key = domain_key(domain, coord)
    try:
        raw = r.get(key)
    except redis.RedisError as e:
        # outage -> behave as a miss
        logger.warning("Cache read for %s failed: %s", key, type(e).__name__)
        return None
    if not raw:
        return None
    logger.debug("Cache hit for %s", key)
    return json.loads(raw)


def remember(domain: str, coord: Coordinate, payload: Any, ttl: int) -> None:
    r = client()
    if r is None:
        return
    key = domain_key(domain, coord)
    try:
        r.set(key, json.dumps(payload, separators=(",", ":")), ex=ttl)
    except redis.RedisError as e:
        logger.warning("Cache write for %s failed: %s", key, type(e).__name__)
