"""
销售应用服务层的数据传输对象(DTOs)。
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sales.domain.entities import Sale, SaleItem


class SaleItemDTO:
    """销售明细DTO"""

    def __init__(self, product_id: int, quantity: int, unit_price: Decimal, unit_cost: Decimal):
        self.product_id = product_id
        self.quantity = quantity
        self.unit_price = unit_price
        self.unit_cost = unit_cost

    @classmethod
    def from_entity(cls, item: SaleItem) -> 'SaleItemDTO':
        return cls(
            product_id=int(item.product_id),
            quantity=int(item.quantity),
            unit_price=item.unit_price,
            unit_cost=item.unit_cost
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class SaleDTO:
    """销售DTO"""

    def __init__(
        self,
        id: Any,
        status: str,
        total_amount: Decimal,
        total_cost: Decimal,
        total_profit: Decimal,
        margin_percent: Decimal,
        created_at: Optional[str],
        items: List[SaleItemDTO]
    ):
        self.id = id
        self.status = status
        self.total_amount = total_amount
        self.total_cost = total_cost
        self.total_profit = total_profit
        self.margin_percent = margin_percent
        self.created_at = created_at
        self.items = items

    @classmethod
    def from_entity(cls, sale: Sale, margin_percent: Decimal) -> 'SaleDTO':
        return cls(
            id=sale.id,
            status=sale.status,
            total_amount=sale.total_amount,
            total_cost=sale.total_cost,
            total_profit=sale.total_profit,
            margin_percent=margin_percent,
            created_at=sale.created_at.isoformat() if sale.created_at else None,
            items=[SaleItemDTO.from_entity(item) for item in sale.items]
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data["items"] = [item.to_dict() for item in self.items]
        return data
