"""
库存应用服务层的数据传输对象(DTOs)。
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional


class InventoryItemDTO:
    """库存项DTO"""

    def __init__(
        self,
        product_id: int,
        sku: str,
        name: str,
        quantity: int,
        cost_price: Decimal,
        sale_price: Decimal,
        last_updated: Optional[str] = None,
        stock_cost_value: Decimal = Decimal("0.00"),
        stock_sale_value: Decimal = Decimal("0.00"),
        projected_profit: Decimal = Decimal("0.00")
    ):
        self.product_id = product_id
        self.sku = sku
        self.name = name
        self.quantity = quantity
        self.cost_price = cost_price
        self.sale_price = sale_price
        self.last_updated = last_updated
        self.stock_cost_value = stock_cost_value
        self.stock_sale_value = stock_sale_value
        self.projected_profit = projected_profit

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'InventoryItemDTO':
        return cls(**row)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class InventoryListDTO:
    """库存列表DTO，包含分页信息和合计"""

    def __init__(
        self,
        items: List[InventoryItemDTO],
        meta: Dict[str, int],
        totals: Dict[str, Decimal]
    ):
        self.items = items
        self.meta = meta
        self.totals = totals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "meta": dict(self.meta),
            "totals": dict(self.totals),
        }
