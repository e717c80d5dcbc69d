"""
库存应用服务层的命令对象。
"""
from typing import Any, Optional


class RegisterStockEntryCommand:
    """入库命令"""

    def __init__(self, product_id: int, quantity: int, unit_cost: Optional[Any] = None):
        """
        Args:
            product_id: 商品ID
            quantity: 入库数量，必须为正数
            unit_cost: 入库单价，为None时不修改商品成本价
        """
        self.product_id = product_id
        self.quantity = quantity
        self.unit_cost = unit_cost


class ListInventoryQuery:
    """库存列表查询"""

    def __init__(self, search: Optional[str] = None, per_page: int = 15, page: int = 1):
        self.search = search
        self.per_page = per_page
        self.page = page
