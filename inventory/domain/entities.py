"""
库存领域模型中的实体。
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from core.domain import Entity, round_money
from inventory.domain.services import StockPolicy


class InventoryItem(Entity):
    """
    库存项实体，以商品ID为标识。
    数量只能通过StockPolicy修改，任何会使库存为负的操作都会失败且不修改状态。
    """

    def __init__(
        self,
        product_id: int,
        quantity: int = 0,
        version: int = 0,
        last_updated: Optional[datetime] = None,
        policy: Optional[StockPolicy] = None
    ):
        super().__init__(product_id)
        self.policy = policy or StockPolicy()
        self._quantity = self.policy.adjust(quantity, 0, product_id)
        self.version = version
        self.last_updated = last_updated

    @property
    def product_id(self) -> int:
        return self.id

    @property
    def quantity(self) -> int:
        return self._quantity

    def increment(self, quantity: int) -> None:
        self._quantity = self.policy.increase(self._quantity, quantity, self.product_id)

    def decrement(self, quantity: int) -> None:
        self._quantity = self.policy.decrease(self._quantity, quantity, self.product_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "version": self.version,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


class Product(Entity):
    """
    商品实体。
    提供销售默认单价、成本价，以及入库时的移动加权平均成本计算。
    """

    def __init__(
        self,
        id: Any = None,
        sku: str = "",
        name: str = "",
        cost_price: Any = 0,
        sale_price: Any = 0
    ):
        super().__init__(id)
        self.sku = sku
        self.name = name
        self.cost_price = round_money(cost_price)
        self.sale_price = round_money(sale_price)

    def apply_entry_cost(self, previous_quantity: int, entry_quantity: int, unit_cost: Any) -> None:
        """
        按移动加权平均重新计算成本价：
        (原库存 * 原成本 + 入库数量 * 入库单价) / (原库存 + 入库数量)
        """
        unit_cost = Decimal(str(unit_cost))
        previous_quantity = max(0, previous_quantity)
        total = previous_quantity + entry_quantity
        if total <= 0:
            self.cost_price = round_money(unit_cost)
            return
        weighted = previous_quantity * self.cost_price + entry_quantity * unit_cost
        self.cost_price = round_money(weighted / total)
