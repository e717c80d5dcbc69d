"""
销售应用服务层的命令对象。
"""
from typing import Any, Dict, List, Optional


class SaleItemCommand:
    """销售明细"""

    def __init__(self, product_id: int, quantity: int, unit_price: Optional[Any] = None):
        """
        Args:
            product_id: 商品ID
            quantity: 数量
            unit_price: 单价，为None时使用商品销售价
        """
        self.product_id = product_id
        self.quantity = quantity
        self.unit_price = unit_price

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleItemCommand':
        return cls(
            product_id=data.get("product_id"),
            quantity=data.get("quantity"),
            unit_price=data.get("unit_price")
        )


class CreateSaleCommand:
    """创建销售命令"""

    def __init__(self, items: List[Any]):
        self.items = [
            item if isinstance(item, SaleItemCommand) else SaleItemCommand.from_dict(item)
            for item in items
        ]
