from core.infrastructure.cache import MemoryCacheService, NoCacheService
from core.infrastructure.metrics import MetricsCollector
from inventory.infrastructure.services.inventory_cache import InventoryCache


class FailingCacheService(NoCacheService):
    """所有读写都抛出异常的缓存后端"""

    def get(self, key, default=None):
        raise ConnectionError("cache down")

    def set(self, key, value, ttl=300):
        raise ConnectionError("cache down")

    def delete(self, key):
        raise ConnectionError("cache down")


class CountingResolver:

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


class TestMemoryCacheService:

    def test_entries_expire_after_their_ttl(self, cache_service, clock):
        cache_service.set("short", 1, ttl=5)
        cache_service.set("long", 2, ttl=60)
        clock.advance(10)
        assert cache_service.get("short") is None
        assert cache_service.get("long") == 2

    def test_increment_starts_from_zero(self, cache_service):
        assert cache_service.increment("counter") == 1
        assert cache_service.increment("counter", 4) == 5

    def test_increment_keeps_original_expiry(self, cache_service, clock):
        cache_service.set("counter", 1, ttl=10)
        clock.advance(6)
        assert cache_service.increment("counter") == 2
        clock.advance(5)
        assert cache_service.get("counter") is None

    def test_set_nx(self, cache_service):
        assert cache_service.set_nx("k", "a", 10) is True
        assert cache_service.set_nx("k", "b", 10) is False
        assert cache_service.get("k") == "a"

    def test_delete_pattern(self, cache_service):
        cache_service.set("inventory:item:1", 1)
        cache_service.set("inventory:item:2", 2)
        cache_service.set("other", 3)
        assert cache_service.delete_pattern("inventory:item:*") == 2
        assert cache_service.exists("other")


class TestInventoryCache:

    def test_item_is_read_through(self, cache_service):
        cache = InventoryCache(cache_service, item_ttl=60, list_ttl=60, version_ttl=3600)
        resolver = CountingResolver({"product_id": 1, "quantity": 5})

        assert cache.remember_item(1, resolver) == {"product_id": 1, "quantity": 5}
        assert cache.remember_item(1, resolver) == {"product_id": 1, "quantity": 5}
        assert resolver.calls == 1

    def test_invalidate_forces_resolver(self, cache_service):
        cache = InventoryCache(cache_service, item_ttl=60, list_ttl=60, version_ttl=3600)
        item_resolver = CountingResolver({"quantity": 5})
        list_resolver = CountingResolver({"items": []})

        cache.remember_item(1, item_resolver)
        cache.remember_list_and_totals("", 15, 1, list_resolver)
        cache.invalidate_by_products([1])
        cache.remember_item(1, item_resolver)
        cache.remember_list_and_totals("", 15, 1, list_resolver)

        assert item_resolver.calls == 2
        assert list_resolver.calls == 2

    def test_search_is_normalized_into_the_same_key(self, cache_service):
        cache = InventoryCache(cache_service, item_ttl=60, list_ttl=60, version_ttl=3600)
        resolver = CountingResolver({"items": []})

        cache.remember_list_and_totals("  Widget ", 15, 1, resolver)
        cache.remember_list_and_totals("widget", 15, 1, resolver)
        cache.remember_list_and_totals_unpaged("WIDGET", resolver)

        assert resolver.calls == 2

    def test_three_bumps_advance_version_by_three(self, cache_service):
        cache = InventoryCache(cache_service, item_ttl=60, list_ttl=60, version_ttl=3600)
        before = cache.list_version()

        for _ in range(3):
            cache.bump_list_version()

        assert cache.list_version() == before + 3

    def test_read_write_bump_without_atomic_increment(self):
        backend = MemoryCacheService()
        backend.supports_increment = False
        cache = InventoryCache(backend, item_ttl=60, list_ttl=60, version_ttl=3600)

        assert cache.bump_list_version() == 2
        assert cache.bump_list_version() == 3
        assert cache.list_version() == 3

    def test_cache_failures_fall_back_to_resolver(self):
        cache = InventoryCache(FailingCacheService(), item_ttl=60, list_ttl=60, version_ttl=3600)
        resolver = CountingResolver({"quantity": 1})

        assert cache.remember_item(1, resolver) == {"quantity": 1}
        assert cache.remember_item(1, resolver) == {"quantity": 1}
        assert resolver.calls == 2
        assert cache.list_version() == 1

    def test_invalidation_failures_are_swallowed(self):
        cache = InventoryCache(FailingCacheService(), item_ttl=60, list_ttl=60, version_ttl=3600)
        cache.invalidate_by_products([1, 2])
        assert cache.bump_list_version() is None


class TestMetricsCollector:

    def test_counters_and_gauges(self, cache_service):
        metrics = MetricsCollector(cache_service)
        metrics.increment("inventory_job.started")
        metrics.increment("inventory_job.started")
        metrics.gauge("inventory_job.last_duration_ms", 12)

        assert metrics.get("inventory_job.started") == 2
        assert metrics.get("inventory_job.last_duration_ms") == 12

    def test_backend_errors_are_swallowed(self):
        metrics = MetricsCollector(FailingCacheService())
        metrics.increment("inventory_job.started")
        metrics.gauge("inventory_job.last_duration_ms", 1)
        assert metrics.get("inventory_job.started", 0) == 0
