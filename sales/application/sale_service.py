"""
销售应用服务。
定义销售相关的应用层服务，处理命令和查询，协调领域层和基础设施层。
"""
from typing import Any, Callable

from loguru import logger

from core.domain.exceptions import ValidationException
from core.infrastructure.queue import Job, JobQueue
from core.infrastructure.transaction import TransactionManager
from inventory.domain.repositories import ProductRepository
from sales.application.commands import CreateSaleCommand
from sales.application.dtos import SaleDTO
from sales.domain.entities import Sale
from sales.domain.repositories import SaleRepository
from sales.domain.services import MarginCalculator


def _as_int(value: Any, field_name: str) -> int:
    """缺省值按0处理，交给验证器判定；无法转换为整数时抛出ValidationException"""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        raise ValidationException(field_name, f"必须是整数: {value!r}")


class SaleApplicationService:
    """
    销售应用服务。
    创建销售后立即返回ID，完成销售和扣减库存都在后台任务中进行。
    """

    def __init__(
        self,
        sale_repository: SaleRepository,
        product_repository: ProductRepository,
        transaction_manager: TransactionManager,
        job_queue: JobQueue,
        finalize_job_factory: Callable[[], Job],
        margin_calculator: MarginCalculator = None
    ):
        """
        初始化销售应用服务。

        Args:
            sale_repository: 销售仓储
            product_repository: 商品仓储，提供默认单价和成本
            transaction_manager: 事务管理器
            job_queue: 任务队列
            finalize_job_factory: 创建FinalizeSaleJob实例的工厂函数
            margin_calculator: 毛利计算
        """
        self.sale_repository = sale_repository
        self.product_repository = product_repository
        self.transaction_manager = transaction_manager
        self.job_queue = job_queue
        self.finalize_job_factory = finalize_job_factory
        self.margin_calculator = margin_calculator or MarginCalculator()

    def create_sale(self, command: CreateSaleCommand) -> Any:
        """
        创建排队中的销售。
        单价取命令中的值或商品销售价，成本取商品成本价，商品不存在时为0。
        事务提交后把FinalizeSaleJob投递到sales队列。

        Returns:
            销售ID
        """
        product_ids = [_as_int(item.product_id, "product_id") for item in command.items]
        products = self.product_repository.get_many([pid for pid in product_ids if pid > 0])

        with self.transaction_manager.start():
            sale = Sale()
            for item, product_id in zip(command.items, product_ids):
                product = products.get(product_id)
                if item.unit_price is not None:
                    unit_price = item.unit_price
                else:
                    unit_price = product.sale_price if product else 0
                unit_cost = product.cost_price if product else 0
                sale.add_item(product_id, _as_int(item.quantity, "quantity"), unit_price, unit_cost)

            self.sale_repository.save(sale)
            sale_id = sale.id
            self.transaction_manager.on_commit(
                lambda: self.job_queue.dispatch(self.finalize_job_factory().on_queue("sales"), sale_id)
            )

        logger.info(f"销售 {sale_id} 已创建，明细数量: {len(sale.items)}")
        return sale_id

    def cancel_sale(self, sale_id: Any) -> SaleDTO:
        """
        取消排队中的销售。

        Raises:
            EntityNotFoundException: 销售不存在
            InvalidEntityStateException: 销售已完成
        """
        with self.transaction_manager.start():
            sale = self.sale_repository.require(sale_id, for_update=True)
            sale.cancel()
            self.sale_repository.save(sale)

        logger.info(f"销售 {sale_id} 已取消")
        return self._to_dto(sale)

    def get_sale_details(self, sale_id: Any) -> SaleDTO:
        """
        获取销售详情和明细。

        Raises:
            EntityNotFoundException: 销售不存在
        """
        sale = self.sale_repository.require(sale_id)
        return self._to_dto(sale)

    def _to_dto(self, sale: Sale) -> SaleDTO:
        margin = self.margin_calculator.margin_percent(sale.total_amount, sale.total_cost)
        return SaleDTO.from_entity(sale, margin)
