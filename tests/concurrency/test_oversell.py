"""
并发扣减测试。
多个线程同时扣减同一商品，库存不能为负，成功次数不能超过库存允许的次数。
"""
from concurrent.futures import ThreadPoolExecutor
import threading

import pytest

from core.domain.clock import SystemClock
from core.domain.exceptions import InsufficientStockException
from core.infrastructure.cache import MemoryCacheService
from core.infrastructure.transaction import NoOpTransactionManager
from inventory.domain.services import StockPolicy
from inventory.infrastructure.factory import InventoryInfrastructureFactory
from inventory.infrastructure.repositories.memory_inventory_repository import MemoryInventoryRepository


@pytest.fixture
def transaction_manager():
    return NoOpTransactionManager()


@pytest.fixture
def repository(transaction_manager):
    return MemoryInventoryRepository(StockPolicy(max_per_product=1_000_000), transaction_manager)


@pytest.fixture
def factory(repository, transaction_manager):
    return InventoryInfrastructureFactory(
        MemoryCacheService(),
        transaction_manager,
        SystemClock(),
        inventory_repository=repository
    )


def run_concurrently(count, target):
    barrier = threading.Barrier(count)

    def worker(index):
        barrier.wait()
        try:
            target(index)
            return "ok"
        except InsufficientStockException:
            return "insufficient"

    with ThreadPoolExecutor(max_workers=count) as executor:
        return list(executor.map(worker, range(count)))


def test_two_jobs_racing_for_the_same_stock(factory, repository):
    repository.upsert_by_product_id(1, 10)

    results = run_concurrently(
        2,
        lambda index: factory.create_update_inventory_job().handle(index, [{"product_id": 1, "quantity": 6}])
    )

    assert sorted(results) == ["insufficient", "ok"]
    assert repository.quantity_of(1) == 4


def test_many_jobs_never_oversell(factory, repository):
    repository.upsert_by_product_id(1, 10)

    results = run_concurrently(
        20,
        lambda index: factory.create_update_inventory_job().handle(index, [{"product_id": 1, "quantity": 1}])
    )

    assert results.count("ok") == 10
    assert results.count("insufficient") == 10
    assert repository.quantity_of(1) == 0


def test_conditional_decrement_alone_never_oversells(repository):
    repository.upsert_by_product_id(1, 5)
    outcomes = []
    outcomes_lock = threading.Lock()

    def decrement(index):
        ok = repository.decrement_if_enough(1, 1)
        with outcomes_lock:
            outcomes.append(ok)

    run_concurrently(16, decrement)

    assert outcomes.count(True) == 5
    assert repository.quantity_of(1) == 0


def test_jobs_on_different_products_do_not_block_each_other(factory, repository):
    for product_id in (1, 2, 3, 4):
        repository.upsert_by_product_id(product_id, 3)

    results = run_concurrently(
        4,
        lambda index: factory.create_update_inventory_job().handle(
            index, [{"product_id": index + 1, "quantity": 3}]
        )
    )

    assert results == ["ok"] * 4
    assert [repository.quantity_of(i) for i in (1, 2, 3, 4)] == [0, 0, 0, 0]
