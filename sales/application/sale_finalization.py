"""
销售完成服务。
锁定销售行，校验明细，计算合计并标记完成；事务提交后发布SaleFinalizedEvent。
"""
from typing import Any

from loguru import logger

from core.domain.events import EventBus
from core.infrastructure.transaction import TransactionManager
from sales.domain.repositories import SaleRepository
from sales.domain.services import MarginCalculator, SaleValidator


class SaleFinalizationService:
    """
    销售完成服务。
    对已完成的销售重复调用不做任何修改，也不会再次发布事件。
    """

    def __init__(
        self,
        sale_repository: SaleRepository,
        transaction_manager: TransactionManager,
        event_bus: EventBus,
        validator: SaleValidator = None,
        margin_calculator: MarginCalculator = None
    ):
        self.sale_repository = sale_repository
        self.transaction_manager = transaction_manager
        self.event_bus = event_bus
        self.validator = validator or SaleValidator()
        self.margin_calculator = margin_calculator or MarginCalculator()

    def finalize(self, sale_id: Any) -> bool:
        """
        完成销售。

        Args:
            sale_id: 销售ID

        Returns:
            本次调用是否完成了销售；已完成时返回False

        Raises:
            EntityNotFoundException: 销售不存在
            ValidationException: 明细不合法
            InvalidEntityStateException: 销售已取消
        """
        with self.transaction_manager.start():
            sale = self.sale_repository.require(sale_id, for_update=True)

            if sale.is_completed:
                logger.info(f"销售 {sale_id} 已完成，跳过")
                return False

            self.validator.validate(sale.items)
            total_amount, total_cost, total_profit = self.margin_calculator.totals(sale.items)
            sale.complete(total_amount, total_cost, total_profit)
            self.sale_repository.save(sale)

            for event in sale.clear_domain_events():
                self.transaction_manager.on_commit(lambda event=event: self.event_bus.publish(event))

        logger.info(f"销售 {sale_id} 已完成 总额={total_amount} 成本={total_cost} 毛利={total_profit}")
        return True
