"""Redis-backed response cache with per-key TTL.

Used for lookups that repeat across vacancies within and between runs
(company contacts). Redis expiry is the eviction policy; a Redis outage
degrades to cache misses.
"""

import json
import logging

import redis

from ishimport.config import get_settings

logger = logging.getLogger(__name__)


class RedisResponseCache:

    def __init__(self, client: redis.Redis, prefix: str = "ishimport:", default_ttl: int = 3600):
        self.client = client
        self.prefix = prefix
        self.default_ttl = default_ttl

    @classmethod
    def from_url(cls, url: str | None = None, **kwargs) -> "RedisResponseCache":
        url = url or get_settings().redis_url
        return cls(redis.from_url(url, socket_timeout=5, decode_responses=True), **kwargs)

    def get(self, key: str):
        try:
            raw = self.client.get(self.prefix + key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    def set(self, key: str, value, ttl: int | None = None) -> None:
        try:
            self.client.setex(self.prefix + key, ttl or self.default_ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
