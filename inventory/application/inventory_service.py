"""
库存应用服务。
处理入库和库存查询，协调领域层和基础设施层。
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from django.utils import timezone
from loguru import logger

from core.domain.exceptions import EntityNotFoundException, InvalidQuantityException, ValidationException
from core.infrastructure.transaction import TransactionManager
from inventory.application.commands import ListInventoryQuery, RegisterStockEntryCommand
from inventory.application.dtos import InventoryItemDTO, InventoryListDTO
from inventory.domain import config
from inventory.domain.repositories import InventoryQuery, InventoryRepository, ProductRepository
from inventory.domain.services import StockPolicy
from inventory.infrastructure.services.inventory_cache import InventoryCache
from inventory.infrastructure.services.inventory_lock_service import InventoryLockService


class InventoryApplicationService:
    """
    库存应用服务。
    """

    def __init__(
        self,
        inventory_repository: InventoryRepository,
        product_repository: ProductRepository,
        inventory_query: InventoryQuery,
        lock_service: InventoryLockService,
        inventory_cache: InventoryCache,
        transaction_manager: TransactionManager,
        stock_policy: Optional[StockPolicy] = None
    ):
        self.inventory_repository = inventory_repository
        self.product_repository = product_repository
        self.inventory_query = inventory_query
        self.lock_service = lock_service
        self.inventory_cache = inventory_cache
        self.transaction_manager = transaction_manager
        self.stock_policy = stock_policy or StockPolicy()

    def register_stock_entry(self, command: RegisterStockEntryCommand) -> InventoryItemDTO:
        """
        登记入库。
        在事务和商品锁内增加库存；提供unit_cost时按移动加权平均重新计算商品成本价。

        Args:
            command: 入库命令

        Returns:
            入库后的库存项

        Raises:
            InvalidQuantityException: 入库数量不是正数
            EntityNotFoundException: 商品不存在
            BusinessRuleViolationException: 超过单商品库存上限
        """
        product_id = int(command.product_id)
        quantity = int(command.quantity)
        if quantity <= 0:
            raise InvalidQuantityException(quantity, "入库数量必须为正数")

        def apply_entry() -> None:
            product = self.product_repository.require(product_id, for_update=True)

            item = self.inventory_repository.get_by_product_id(product_id, for_update=True)
            previous_quantity = item.quantity if item else 0
            new_quantity = self.stock_policy.increase(previous_quantity, quantity, product_id)
            self.inventory_repository.upsert_by_product_id(product_id, new_quantity)

            if command.unit_cost is not None:
                product.apply_entry_cost(previous_quantity, quantity, command.unit_cost)
                self.product_repository.save(product)

        with self.transaction_manager.start():
            self.lock_service.lock(product_id, apply_entry)

        self.inventory_cache.invalidate_by_products([product_id])
        logger.info(f"入库完成 商品={product_id} 数量={quantity} 单价={command.unit_cost}")

        row = self.inventory_query.by_product_id(product_id)
        return InventoryItemDTO.from_row(row)

    def get_item(self, product_id: Any) -> InventoryItemDTO:
        """
        获取单个库存项（带缓存）。

        Raises:
            EntityNotFoundException: 库存项不存在
        """
        product_id = int(product_id)
        row = self.inventory_cache.remember_item(
            product_id,
            lambda: self.inventory_query.by_product_id(product_id)
        )
        if row is None:
            raise EntityNotFoundException("库存", product_id)
        return InventoryItemDTO.from_row(row)

    def list_inventory(self, query: ListInventoryQuery) -> InventoryListDTO:
        """
        分页查询库存列表及合计（带缓存）。
        """
        search = InventoryCache.normalize_search(query.search)
        per_page = min(max(1, int(query.per_page or config.DEFAULT_PER_PAGE)), config.MAX_PER_PAGE)
        page = max(1, int(query.page or 1))

        def resolve():
            rows, meta = self.inventory_query.paginate(search, per_page, page)
            return {"items": rows, "meta": meta, "totals": self.inventory_query.totals(search)}

        result = self.inventory_cache.remember_list_and_totals(search, per_page, page, resolve)
        return InventoryListDTO(
            items=[InventoryItemDTO.from_row(row) for row in result["items"]],
            meta=result["meta"],
            totals=result["totals"]
        )

    def list_all_inventory(self, search: Optional[str] = None) -> InventoryListDTO:
        """
        不分页查询库存列表及合计（带缓存）。
        """
        search = InventoryCache.normalize_search(search)

        def resolve():
            rows = self.inventory_query.list(search)
            return {"items": rows, "totals": self.inventory_query.totals(search)}

        result = self.inventory_cache.remember_list_and_totals_unpaged(search, resolve)
        items = [InventoryItemDTO.from_row(row) for row in result["items"]]
        return InventoryListDTO(
            items=items,
            meta={"total": len(items)},
            totals=result["totals"]
        )

    def cleanup_old_inventory(self, days: Optional[int] = None) -> Dict[str, int]:
        """
        清理库存表。
        在一个事务中删除孤立行和长期未更新的行，并把负数库存归零，提交后失效所有列表缓存。

        Args:
            days: 超过多少天未更新视为过期，默认取 CLEANUP_DAYS

        Returns:
            {orphaned, stale, clamped} 各步骤影响的行数
        """
        days = config.CLEANUP_DAYS if days is None else int(days)
        if days <= 0:
            raise ValidationException("days", "清理天数必须为正数")
        cutoff = timezone.now() - timedelta(days=days)

        with self.transaction_manager.start():
            result = self.inventory_repository.cleanup_stale(cutoff)

        self.inventory_cache.invalidate_all_lists()
        logger.info(f"库存清理完成 截止={cutoff.isoformat()} 结果={result}")
        return result
