"""
库存基础设施层工厂类。
"""
from typing import Optional

from core.domain.clock import Clock, SystemClock
from core.infrastructure.cache import CacheService
from core.infrastructure.lock import DistributedLock
from core.infrastructure.metrics import MetricsCollector
from core.infrastructure.transaction import TransactionManager

from inventory.application.inventory_service import InventoryApplicationService
from inventory.domain import InventoryQuery, InventoryRepository, ProductRepository, StockPolicy
from inventory.infrastructure.jobs.update_inventory_job import UpdateInventoryJob
from inventory.infrastructure.repositories.django_inventory_query import DjangoInventoryQuery
from inventory.infrastructure.repositories.django_inventory_repository import DjangoInventoryRepository
from inventory.infrastructure.repositories.django_product_repository import DjangoProductRepository
from inventory.infrastructure.services.inventory_cache import InventoryCache
from inventory.infrastructure.services.inventory_lock_service import InventoryLockService


class InventoryInfrastructureFactory:
    """
    库存基础设施层工厂类。
    负责创建库存领域的仓储、服务和任务实例，并在它们之间注入依赖。
    """

    def __init__(
        self,
        cache_service: CacheService,
        transaction_manager: TransactionManager,
        clock: Optional[Clock] = None,
        inventory_repository: Optional[InventoryRepository] = None,
        lock_cache_service: Optional[CacheService] = None
    ):
        """
        初始化库存基础设施层工厂。

        Args:
            cache_service: 缓存服务，用于读缓存和指标
            transaction_manager: 事务管理器
            clock: 时钟
            inventory_repository: 库存仓储，不提供时使用Django实现
            lock_cache_service: 分布式锁使用的缓存服务，默认与cache_service相同
        """
        self.cache_service = cache_service
        self.transaction_manager = transaction_manager
        self.clock = clock or SystemClock()
        self.lock_cache_service = lock_cache_service or cache_service

        # 存储已创建的实例
        self._stock_policy = None
        self._inventory_repository = inventory_repository
        self._product_repository = None
        self._inventory_query = None
        self._distributed_lock = None
        self._lock_service = None
        self._inventory_cache = None
        self._metrics = None

    def create_stock_policy(self) -> StockPolicy:
        if not self._stock_policy:
            self._stock_policy = StockPolicy()
        return self._stock_policy

    def create_inventory_repository(self) -> InventoryRepository:
        if not self._inventory_repository:
            self._inventory_repository = DjangoInventoryRepository(self.create_stock_policy())
        return self._inventory_repository

    def create_product_repository(self) -> ProductRepository:
        if not self._product_repository:
            self._product_repository = DjangoProductRepository()
        return self._product_repository

    def create_inventory_query(self) -> InventoryQuery:
        if not self._inventory_query:
            self._inventory_query = DjangoInventoryQuery()
        return self._inventory_query

    def create_distributed_lock(self) -> DistributedLock:
        if not self._distributed_lock:
            self._distributed_lock = DistributedLock(self.lock_cache_service, self.clock)
        return self._distributed_lock

    def create_lock_service(self) -> InventoryLockService:
        """
        创建库存锁定服务。

        Returns:
            库存锁定服务实例
        """
        if not self._lock_service:
            self._lock_service = InventoryLockService(self.create_distributed_lock())
        return self._lock_service

    def create_inventory_cache(self) -> InventoryCache:
        """
        创建库存缓存管理服务。

        Returns:
            库存缓存管理服务实例
        """
        if not self._inventory_cache:
            self._inventory_cache = InventoryCache(self.cache_service)
        return self._inventory_cache

    def create_metrics(self) -> MetricsCollector:
        if not self._metrics:
            self._metrics = MetricsCollector(self.cache_service)
        return self._metrics

    def create_update_inventory_job(self) -> UpdateInventoryJob:
        """
        创建库存更新任务，每次调用返回新实例。
        """
        return UpdateInventoryJob(
            inventory_repository=self.create_inventory_repository(),
            lock_service=self.create_lock_service(),
            inventory_cache=self.create_inventory_cache(),
            transaction_manager=self.transaction_manager,
            metrics=self.create_metrics(),
            clock=self.clock
        )

    def create_application_service(self) -> InventoryApplicationService:
        return InventoryApplicationService(
            inventory_repository=self.create_inventory_repository(),
            product_repository=self.create_product_repository(),
            inventory_query=self.create_inventory_query(),
            lock_service=self.create_lock_service(),
            inventory_cache=self.create_inventory_cache(),
            transaction_manager=self.transaction_manager,
            stock_policy=self.create_stock_policy()
        )
