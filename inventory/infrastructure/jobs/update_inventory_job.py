"""
库存更新任务。
根据已完成的销售扣减库存：整批明细在一个事务内处理，每个商品在自己的锁内原子扣减，
任何一项库存不足都会回滚整批，不会部分扣减，因此整批重试是安全的。
"""
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from core.domain.clock import Clock, SystemClock
from core.domain.exceptions import InsufficientStockException, InvalidQuantityException
from core.infrastructure.metrics import MetricsCollector
from core.infrastructure.queue import Job
from core.infrastructure.transaction import TransactionManager
from inventory.domain import config
from inventory.domain.repositories import InventoryRepository
from inventory.infrastructure.services.inventory_cache import InventoryCache
from inventory.infrastructure.services.inventory_lock_service import InventoryLockService


class UpdateInventoryJob(Job):
    """
    库存更新任务。

    流程：START -> (逐项: 加锁 -> 条件扣减 -> 解锁) -> 提交 -> 缓存失效 -> 指标 -> DONE
    """

    queue = "inventory"
    tries = config.JOB_TRIES
    backoff = config.JOB_BACKOFF
    # 库存不足和数量无效是业务失败，重试不会成功
    non_retryable = (InsufficientStockException, InvalidQuantityException)

    def __init__(
        self,
        inventory_repository: InventoryRepository,
        lock_service: InventoryLockService,
        inventory_cache: InventoryCache,
        transaction_manager: TransactionManager,
        metrics: MetricsCollector,
        clock: Optional[Clock] = None
    ):
        self.inventory_repository = inventory_repository
        self.lock_service = lock_service
        self.inventory_cache = inventory_cache
        self.transaction_manager = transaction_manager
        self.metrics = metrics
        self.clock = clock or SystemClock()

    @staticmethod
    def normalize_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, int]]:
        return [
            {"product_id": int(item["product_id"]), "quantity": int(item["quantity"])}
            for item in items
        ]

    def handle(self, sale_id: Any, items: Iterable[Dict[str, Any]]) -> None:
        """
        扣减一次销售的全部库存。

        Args:
            sale_id: 销售ID
            items: [{product_id, quantity}, ...]，按列表顺序处理

        Raises:
            InsufficientStockException: 某项库存不足，整批回滚
            LockAcquisitionException: 获取商品锁超时
        """
        lines = self.normalize_items(items)
        started_at = self.clock.monotonic()
        self.metrics.increment("inventory_job.started")

        try:
            with self.transaction_manager.start():
                for line in lines:
                    self.lock_service.lock(line["product_id"], lambda line=line: self._decrement(line))
        except Exception as e:
            self.metrics.increment("inventory_job.failed")
            logger.warning(f"库存更新失败 销售={sale_id}: {e}")
            raise

        # 提交成功后再失效缓存，避免读到未提交数据后重新缓存
        product_ids = sorted({line["product_id"] for line in lines})
        self.inventory_cache.invalidate_by_products(product_ids)
        self.metrics.increment("inventory_cache.invalidated")

        duration_ms = int((self.clock.monotonic() - started_at) * 1000)
        self.metrics.increment("inventory_job.completed")
        self.metrics.gauge("inventory_job.last_duration_ms", duration_ms)
        logger.info(
            f"已根据销售更新库存 销售={sale_id} "
            f"明细={[(line['product_id'], line['quantity']) for line in lines]} 耗时={duration_ms}ms"
        )

    def _decrement(self, line: Dict[str, int]) -> None:
        product_id, quantity = line["product_id"], line["quantity"]
        if not self.inventory_repository.decrement_if_enough(product_id, quantity):
            item = self.inventory_repository.get_by_product_id(product_id)
            raise InsufficientStockException(product_id, quantity, item.quantity if item else 0)

    def failed(self, error: Exception, sale_id: Any = None, items: Iterable[Dict[str, Any]] = ()) -> None:
        """
        重试用尽后调用，只记录日志和指标，不抛出异常。
        """
        try:
            logger.error(f"UpdateInventoryJob最终失败 销售={sale_id} 明细={list(items or [])}: {error}")
            self.metrics.increment("inventory_job.dead")
        except Exception as e:
            logger.exception(f"记录库存任务失败信息时出错: {e}")
