"""Redis response cache degrades to misses when Redis is unavailable."""

import redis

from ishimport.services.cache import RedisResponseCache


class FakeRedis:
    def __init__(self, fail=False):
        self.data = {}
        self.ttls = {}
        self.fail = fail

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("down")
        return self.data.get(key)

    def setex(self, key, ttl, value):
        if self.fail:
            raise redis.ConnectionError("down")
        self.data[key] = value
        self.ttls[key] = ttl


def test_roundtrip_with_prefix_and_ttl():
    client = FakeRedis()
    cache = RedisResponseCache(client, prefix="t:", default_ttl=60)

    cache.set("company:1", {"phone": "+998901112233"})
    cache.set("company:2", {}, ttl=10)

    assert cache.get("company:1") == {"phone": "+998901112233"}
    assert cache.get("company:2") == {}
    assert cache.get("company:3") is None
    assert client.ttls == {"t:company:1": 60, "t:company:2": 10}


def test_redis_errors_are_cache_misses():
    cache = RedisResponseCache(FakeRedis(fail=True))
    cache.set("k", {"a": 1})
    assert cache.get("k") is None


def test_corrupt_value_is_a_miss():
    client = FakeRedis()
    client.data["ishimport:k"] = "{not json"
    assert RedisResponseCache(client).get("k") is None
