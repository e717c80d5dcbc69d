"""
销售基础设施层工厂类。
"""
from typing import Optional

from core.domain.events import EventBus
from core.infrastructure.queue import JobQueue
from core.infrastructure.transaction import TransactionManager

from inventory.infrastructure.factory import InventoryInfrastructureFactory
from sales.application.sale_finalization import SaleFinalizationService
from sales.application.sale_service import SaleApplicationService
from sales.domain import SaleFinalizedEvent, SaleRepository
from sales.infrastructure.jobs.finalize_sale_job import FinalizeSaleJob
from sales.infrastructure.listeners import UpdateInventoryListener
from sales.infrastructure.repositories.django_sale_repository import DjangoSaleRepository


class SalesInfrastructureFactory:
    """
    销售基础设施层工厂类。
    负责创建销售领域的仓储、服务和任务，并把库存更新监听器注册到事件总线。
    """

    def __init__(
        self,
        inventory_factory: InventoryInfrastructureFactory,
        transaction_manager: TransactionManager,
        job_queue: JobQueue,
        event_bus: Optional[EventBus] = None
    ):
        """
        初始化销售基础设施层工厂。

        Args:
            inventory_factory: 库存基础设施层工厂
            transaction_manager: 事务管理器
            job_queue: 任务队列
            event_bus: 事件总线
        """
        self.inventory_factory = inventory_factory
        self.transaction_manager = transaction_manager
        self.job_queue = job_queue
        self.event_bus = event_bus or EventBus()

        # 存储已创建的实例
        self._sale_repository = None
        self._finalization_service = None
        self._listener = None

    def create_sale_repository(self) -> SaleRepository:
        if not self._sale_repository:
            self._sale_repository = DjangoSaleRepository()
        return self._sale_repository

    def create_finalization_service(self) -> SaleFinalizationService:
        if not self._finalization_service:
            self._finalization_service = SaleFinalizationService(
                sale_repository=self.create_sale_repository(),
                transaction_manager=self.transaction_manager,
                event_bus=self.event_bus
            )
        return self._finalization_service

    def create_finalize_sale_job(self) -> FinalizeSaleJob:
        return FinalizeSaleJob(self.create_finalization_service())

    def create_update_inventory_listener(self) -> UpdateInventoryListener:
        if not self._listener:
            self._listener = UpdateInventoryListener(
                job_queue=self.job_queue,
                job_factory=self.inventory_factory.create_update_inventory_job
            )
        return self._listener

    def register_listeners(self) -> None:
        """
        注册事件监听器，重复调用不会重复注册。
        """
        listener = self.create_update_inventory_listener()
        if listener not in self.event_bus.handlers_for(SaleFinalizedEvent):
            self.event_bus.register(SaleFinalizedEvent, listener)

    def create_application_service(self) -> SaleApplicationService:
        self.register_listeners()
        return SaleApplicationService(
            sale_repository=self.create_sale_repository(),
            product_repository=self.inventory_factory.create_product_repository(),
            transaction_manager=self.transaction_manager,
            job_queue=self.job_queue,
            finalize_job_factory=self.create_finalize_sale_job
        )
