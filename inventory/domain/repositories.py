"""
库存领域模型中的仓储接口。
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from core.domain.repositories import Repository
from inventory.domain.entities import InventoryItem, Product


class InventoryRepository(Repository[InventoryItem]):
    """
    库存仓储接口。
    扣减库存必须由存储引擎以单条条件更新完成，不能在应用代码中先读后写。
    """

    entity_name = "库存"

    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[InventoryItem]:
        return self.get_by_product_id(id, for_update=for_update)

    @abstractmethod
    def get_by_product_id(self, product_id: int, for_update: bool = False) -> Optional[InventoryItem]:
        """
        按商品ID获取库存项。

        Args:
            product_id: 商品ID
            for_update: 是否在当前事务中锁定该行
        """
        pass

    @abstractmethod
    def save(self, item: InventoryItem) -> InventoryItem:
        """保存库存项并递增版本号"""
        pass

    @abstractmethod
    def upsert_by_product_id(self, product_id: int, quantity: int) -> InventoryItem:
        """
        把商品库存设置为quantity，不存在时创建。
        """
        pass

    @abstractmethod
    def decrement_if_enough(self, product_id: int, quantity: int) -> bool:
        """
        原子条件扣减：当前库存 >= quantity 时扣减并返回True，否则不修改并返回False。

        Raises:
            InvalidQuantityException: quantity不是正数
        """
        pass

    @abstractmethod
    def increment(self, product_id: int, quantity: int) -> bool:
        """
        原子增加库存。

        Returns:
            库存行存在并已更新时返回True
        """
        pass

    @abstractmethod
    def cleanup_stale(self, cutoff: datetime) -> Dict[str, int]:
        """
        清理库存表：删除商品已不存在的孤立行，删除 cutoff 之前未更新的行，把负数库存归零。
        应在事务中调用。

        Returns:
            {orphaned, stale, clamped} 各步骤影响的行数
        """
        pass



class ProductRepository(Repository[Product]):
    """
    商品仓储接口。
    """

    entity_name = "商品"

    @abstractmethod
    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[Product]:
        pass

    @abstractmethod
    def get_many(self, ids: List[int]) -> Dict[int, Product]:
        """按ID批量获取商品，返回 {id: Product}"""
        pass

    @abstractmethod
    def save(self, product: Product) -> Product:
        pass


class InventoryQuery(ABC):
    """
    库存列表查询接口。
    返回商品和库存连接后的行数据，按SKU排序，search对SKU和名称做不区分大小写的模糊匹配。
    """

    @abstractmethod
    def by_product_id(self, product_id: int) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def paginate(self, search: str, per_page: int, page: int) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """
        Returns:
            (行列表, 分页信息{current_page, per_page, total, last_page})
        """
        pass

    @abstractmethod
    def list(self, search: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def totals(self, search: str) -> Dict[str, Any]:
        """
        Returns:
            {total_cost, total_sale, projected_profit}
        """
        pass
