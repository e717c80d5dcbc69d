"""
销售领域事件。
"""
from typing import Any, Dict, List

from core.domain.events import DomainEvent


class SaleFinalizedEvent(DomainEvent):
    """
    销售完成事件。
    只在销售完成的事务提交后发布，携带需要扣减的库存明细。
    """

    def __init__(self, sale_id: Any, items: List[Dict[str, int]]):
        """
        Args:
            sale_id: 销售ID
            items: [{product_id, quantity}, ...]
        """
        super().__init__()
        self.sale_id = sale_id
        self.items = [dict(item) for item in items]
