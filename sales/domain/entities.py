"""
销售领域模型中的实体。
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.domain import AggregateRoot, Entity, InvalidEntityStateException, round_money
from sales.domain.events import SaleFinalizedEvent


class SaleStatus:
    """销售状态枚举"""
    QUEUED = "queued"          # 已创建，等待完成
    PROCESSING = "processing"  # 处理中
    COMPLETED = "completed"    # 已完成，终态
    CANCELLED = "cancelled"    # 已取消

    CHOICES = (QUEUED, PROCESSING, COMPLETED, CANCELLED)


class SaleItem(Entity):
    """
    销售明细实体，归属于唯一的销售。
    """

    def __init__(
        self,
        id: Any = None,
        product_id: int = 0,
        quantity: int = 0,
        unit_price: Any = 0,
        unit_cost: Any = 0
    ):
        super().__init__(id)
        self.product_id = product_id
        self.quantity = quantity
        self.unit_price = Decimal(str(unit_price))
        self.unit_cost = Decimal(str(unit_cost))

    @property
    def line_amount(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_cost(self) -> Decimal:
        return self.unit_cost * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "unit_cost": self.unit_cost,
        }


class Sale(AggregateRoot):
    """
    销售聚合根。

    状态迁移：QUEUED -> COMPLETED，QUEUED -> CANCELLED。
    COMPLETED是终态，重复完成不做任何修改；已完成的销售不能取消。
    """

    def __init__(
        self,
        id: Any = None,
        items: Optional[List[SaleItem]] = None,
        status: str = SaleStatus.QUEUED,
        total_amount: Any = 0,
        total_cost: Any = 0,
        total_profit: Any = 0,
        created_at: Optional[datetime] = None
    ):
        super().__init__(id)
        self.items: List[SaleItem] = list(items or [])
        self.status = status
        self.total_amount = round_money(total_amount)
        self.total_cost = round_money(total_cost)
        self.total_profit = round_money(total_profit)
        self.created_at = created_at

    @property
    def is_completed(self) -> bool:
        return self.status == SaleStatus.COMPLETED

    def add_item(self, product_id: int, quantity: int, unit_price: Any, unit_cost: Any) -> SaleItem:
        if self.status != SaleStatus.QUEUED:
            raise InvalidEntityStateException("销售", f"状态为 {self.status} 时不能添加明细")
        item = SaleItem(product_id=product_id, quantity=quantity, unit_price=unit_price, unit_cost=unit_cost)
        self.items.append(item)
        return item

    def complete(self, total_amount: Any, total_cost: Any, total_profit: Any) -> bool:
        """
        完成销售，写入合计并记录SaleFinalizedEvent。

        Returns:
            本次调用是否发生了状态迁移；已完成时返回False
        """
        if self.is_completed:
            return False
        if self.status == SaleStatus.CANCELLED:
            raise InvalidEntityStateException("销售", "已取消的销售不能完成")

        self.total_amount = round_money(total_amount)
        self.total_cost = round_money(total_cost)
        self.total_profit = round_money(total_profit)
        self.status = SaleStatus.COMPLETED
        self.add_domain_event(SaleFinalizedEvent(self.id, self.inventory_lines()))
        return True

    def cancel(self) -> None:
        if self.status == SaleStatus.CANCELLED:
            return
        if self.status != SaleStatus.QUEUED:
            raise InvalidEntityStateException("销售", f"状态为 {self.status} 时不能取消")
        self.status = SaleStatus.CANCELLED

    def inventory_lines(self) -> List[Dict[str, int]]:
        return [
            {"product_id": int(item.product_id), "quantity": int(item.quantity)}
            for item in self.items
        ]

    def check_invariants(self) -> bool:
        if self.status not in SaleStatus.CHOICES:
            raise InvalidEntityStateException("销售", f"未知状态 {self.status}")
        return True
