import pickle

import fakeredis
import pytest
import redis

from core.domain.exceptions import LockAcquisitionException
from core.infrastructure.cache import RedisCacheService
from core.infrastructure.lock import DistributedLock
from inventory.infrastructure.services.inventory_cache import InventoryCache


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis_client(redis_server):
    return fakeredis.FakeRedis(server=redis_server)


@pytest.fixture
def redis_cache(redis_client):
    return RedisCacheService(redis_client, key_prefix="test:")


@pytest.fixture
def redis_lock(redis_cache, clock):
    return DistributedLock(redis_cache, clock)


class TestRedisCacheService:

    def test_ints_are_stored_raw(self, redis_cache, redis_client):
        redis_cache.set("counter", 42)
        assert redis_client.get("test:counter") == b"42"
        assert redis_cache.get("counter") == 42

    def test_other_values_are_pickled(self, redis_cache, redis_client):
        value = {"items": [1, 2], "name": "widget"}
        redis_cache.set("row", value)
        redis_cache.set("flag", True)

        assert pickle.loads(redis_client.get("test:row")) == value
        assert redis_cache.get("row") == value
        assert redis_cache.get("flag") is True

    def test_set_applies_ttl(self, redis_cache, redis_client):
        redis_cache.set("k", "v", ttl=30)
        assert 0 < redis_client.ttl("test:k") <= 30

    def test_increment_uses_incrby(self, redis_cache, redis_client):
        assert redis_cache.increment("n") == 1
        assert redis_cache.increment("n", 5) == 6
        assert redis_client.get("test:n") == b"6"

    def test_increment_keeps_ttl(self, redis_cache, redis_client):
        redis_cache.set("n", 1, ttl=60)
        redis_cache.increment("n")
        assert 0 < redis_client.ttl("test:n") <= 60

    def test_set_nx_sets_once_with_expiry(self, redis_cache, redis_client):
        assert redis_cache.set_nx("lock", "a", 10) is True
        assert redis_cache.set_nx("lock", "b", 10) is False

        assert redis_cache.get("lock") == "a"
        assert 0 < redis_client.ttl("test:lock") <= 10

    def test_delete_if_equals_checks_value(self, redis_cache):
        redis_cache.set_nx("lock", "mine", 10)

        assert redis_cache.delete_if_equals("lock", "theirs") is False
        assert redis_cache.exists("lock")
        assert redis_cache.delete_if_equals("lock", "mine") is True
        assert not redis_cache.exists("lock")

    def test_delete_pattern_keeps_other_keys(self, redis_cache):
        redis_cache.set("inventory:item:1", 1)
        redis_cache.set("inventory:item:2", 2)
        redis_cache.set("other", 3)

        assert redis_cache.delete_pattern("inventory:item:*") == 2
        assert redis_cache.exists("other")

    def test_local_cache_is_dropped_on_increment(self, redis_client):
        service = RedisCacheService(redis_client, key_prefix="test:", local_cache_size=10)
        service.set("n", 1)
        service.increment("n")
        assert service.get("n") == 2

    def test_read_errors_degrade_and_atomic_errors_propagate(self, redis_server, redis_cache):
        redis_server.connected = False

        assert redis_cache.get("k", "fallback") == "fallback"
        assert redis_cache.set("k", "v") is False
        with pytest.raises(redis.ConnectionError):
            redis_cache.increment("n")
        with pytest.raises(redis.ConnectionError):
            redis_cache.set_nx("lock", "a", 10)


class TestDistributedLockOnRedis:

    def test_acquire_and_release(self, redis_lock):
        token = redis_lock.acquire("lock:a", ttl=10, wait_timeout=0)

        assert redis_lock.is_locked("lock:a")
        assert redis_lock.release("lock:a", token) is True
        assert not redis_lock.is_locked("lock:a")

    def test_foreign_token_cannot_release(self, redis_lock):
        redis_lock.acquire("lock:a", ttl=10, wait_timeout=0)

        assert redis_lock.release("lock:a", "not-mine") is False
        assert redis_lock.is_locked("lock:a")

    def test_double_release_is_harmless(self, redis_lock):
        token = redis_lock.acquire("lock:a", ttl=10, wait_timeout=0)

        assert redis_lock.release("lock:a", token) is True
        assert redis_lock.release("lock:a", token) is False

    def test_held_lock_times_out(self, redis_lock):
        redis_lock.acquire("lock:a", ttl=10, wait_timeout=0)

        with pytest.raises(LockAcquisitionException):
            redis_lock.acquire("lock:a", ttl=10, wait_timeout=0.3, poll_interval=0.1)

    def test_expired_lock_is_taken_over(self, redis_lock, redis_client):
        stale = redis_lock.acquire("lock:a", ttl=10, wait_timeout=0)
        assert 0 < redis_client.ttl("test:lock:a") <= 10

        # TTL到期
        redis_client.delete("test:lock:a")
        fresh = redis_lock.acquire("lock:a", ttl=10, wait_timeout=0)

        assert fresh != stale
        assert redis_lock.release("lock:a", stale) is False
        assert redis_lock.is_locked("lock:a")
        assert redis_lock.release("lock:a", fresh) is True


class TestInventoryCacheOnRedis:

    def test_version_bumps_are_atomic_increments(self, redis_cache, redis_client):
        cache = InventoryCache(redis_cache, item_ttl=60, list_ttl=60, version_ttl=3600)

        versions = [cache.bump_list_version() for _ in range(3)]

        assert versions == [2, 3, 4]
        assert cache.list_version() == 4
        assert 0 < redis_client.ttl("test:inventory:list_version") <= 3600

    def test_invalidate_drops_items_and_bumps_version(self, redis_cache):
        cache = InventoryCache(redis_cache, item_ttl=60, list_ttl=60, version_ttl=3600)
        cache.remember_item(1, lambda: {"quantity": 10})

        cache.invalidate_by_products([1])

        assert cache.remember_item(1, lambda: {"quantity": 9}) == {"quantity": 9}
        assert cache.list_version() == 2
