"""
销售领域模型中的仓储接口。
"""
from abc import abstractmethod
from typing import Any, Optional

from core.domain.repositories import Repository
from sales.domain.entities import Sale


class SaleRepository(Repository[Sale]):
    """
    销售仓储接口。
    """

    entity_name = "销售"

    @abstractmethod
    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[Sale]:
        """
        根据ID获取销售及其明细。

        Args:
            id: 销售ID
            for_update: 是否在当前事务中锁定销售行
        """
        pass

    @abstractmethod
    def save(self, sale: Sale) -> Sale:
        """
        保存销售。新建销售会同时写入明细并分配ID；
        已存在的销售只更新状态和合计，明细创建后不再修改。
        """
        pass
