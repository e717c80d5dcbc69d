from decimal import Decimal

import pytest

from core.domain.clock import ManualClock
from core.domain.events import EventBus
from core.infrastructure.cache import MemoryCacheService
from core.infrastructure.lock import DistributedLock
from core.infrastructure.metrics import MetricsCollector
from core.infrastructure.queue import SyncJobQueue
from core.infrastructure.transaction import DjangoTransactionManager, NoOpTransactionManager
from inventory.domain.services import StockPolicy
from inventory.infrastructure.factory import InventoryInfrastructureFactory
from inventory.infrastructure.repositories.memory_inventory_repository import MemoryInventoryRepository
from sales.infrastructure.factory import SalesInfrastructureFactory


@pytest.fixture
def clock():
    return ManualClock(start=1000.0)


@pytest.fixture
def cache_service(clock):
    return MemoryCacheService(timer=clock.monotonic)


@pytest.fixture
def distributed_lock(cache_service, clock):
    return DistributedLock(cache_service, clock)


@pytest.fixture
def metrics(cache_service):
    return MetricsCollector(cache_service)


@pytest.fixture
def policy():
    return StockPolicy(max_per_product=1_000_000)


@pytest.fixture
def noop_transaction_manager():
    return NoOpTransactionManager()


@pytest.fixture
def memory_repository(policy, noop_transaction_manager):
    return MemoryInventoryRepository(policy, noop_transaction_manager)


@pytest.fixture
def memory_factory(cache_service, clock, memory_repository, noop_transaction_manager):
    """库存工厂，使用内存仓储和空事务，不访问数据库"""
    return InventoryInfrastructureFactory(
        cache_service,
        noop_transaction_manager,
        clock,
        inventory_repository=memory_repository
    )


@pytest.fixture
def inventory_factory(cache_service, clock):
    return InventoryInfrastructureFactory(cache_service, DjangoTransactionManager(), clock)


@pytest.fixture
def job_queue(clock):
    return SyncJobQueue(clock)


@pytest.fixture
def sales_factory(inventory_factory, job_queue):
    return SalesInfrastructureFactory(inventory_factory, DjangoTransactionManager(), job_queue, EventBus())


@pytest.fixture
def make_product(db):
    from inventory.infrastructure.models.inventory_models import Inventory, Product

    def _make(sku, quantity=None, cost_price="5.00", sale_price="10.00", name=None):
        product = Product.objects.create(
            sku=sku,
            name=name or f"商品{sku}",
            cost_price=Decimal(cost_price),
            sale_price=Decimal(sale_price)
        )
        if quantity is not None:
            Inventory.objects.create(product=product, quantity=quantity)
        return product

    return _make
