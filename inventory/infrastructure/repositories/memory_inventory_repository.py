"""
库存仓储的内存实现。
用互斥锁保证条件扣减的原子性，语义与数据库实现一致，用于测试和确定性替换。

传入 NoOpTransactionManager 时，每次修改都会登记撤销操作，
事务作用域抛出异常时已完成的修改按逆序撤销，整批扣减不会部分生效。
"""
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional

from core.domain.exceptions import InvalidQuantityException
from core.infrastructure.transaction import NoOpTransactionManager
from inventory.domain.entities import InventoryItem
from inventory.domain.repositories import InventoryRepository
from inventory.domain.services import StockPolicy


class MemoryInventoryRepository(InventoryRepository):

    def __init__(
        self,
        policy: Optional[StockPolicy] = None,
        transaction_manager: Optional[NoOpTransactionManager] = None
    ):
        self.policy = policy or StockPolicy()
        self.transaction_manager = transaction_manager
        self._rows: Dict[int, Dict] = {}
        self._lock = Lock()

    def get_by_product_id(self, product_id: int, for_update: bool = False) -> Optional[InventoryItem]:
        with self._lock:
            row = self._rows.get(product_id)
            if row is None:
                return None
            return InventoryItem(product_id, row["quantity"], row["version"], row["last_updated"], self.policy)

    def save(self, item: InventoryItem) -> InventoryItem:
        return self.upsert_by_product_id(item.product_id, item.quantity)

    def upsert_by_product_id(self, product_id: int, quantity: int) -> InventoryItem:
        quantity = self.policy.adjust(quantity, 0, product_id)
        with self._lock:
            previous = self._rows.get(product_id)
            previous = dict(previous) if previous is not None else None
            row = self._rows.setdefault(product_id, {"quantity": 0, "version": 0, "last_updated": None})
            row["quantity"] = quantity
            self._touch(row)
        self._on_rollback(lambda: self._restore(product_id, previous))
        return self.get_by_product_id(product_id)

    def decrement_if_enough(self, product_id: int, quantity: int) -> bool:
        if quantity <= 0:
            raise InvalidQuantityException(quantity, "扣减数量必须为正数")
        with self._lock:
            row = self._rows.get(product_id)
            if row is None or row["quantity"] < quantity:
                return False
            row["quantity"] -= quantity
            self._touch(row)
        self._on_rollback(lambda: self._shift(product_id, quantity))
        return True

    def increment(self, product_id: int, quantity: int) -> bool:
        if quantity <= 0:
            raise InvalidQuantityException(quantity, "增加数量必须为正数")
        with self._lock:
            row = self._rows.get(product_id)
            if row is None or row["quantity"] + quantity > self.policy.max_per_product:
                return False
            row["quantity"] += quantity
            self._touch(row)
        self._on_rollback(lambda: self._shift(product_id, -quantity))
        return True

    def cleanup_stale(self, cutoff: datetime) -> Dict[str, int]:
        # 内存仓储没有商品表，不存在孤立行；数量由扣减条件保证不为负
        with self._lock:
            stale = {
                product_id: row for product_id, row in self._rows.items()
                if row["last_updated"] is not None and row["last_updated"] < cutoff
            }
            for product_id in stale:
                del self._rows[product_id]
        for product_id, row in stale.items():
            self._on_rollback(lambda product_id=product_id, row=row: self._restore(product_id, row))
        return {"orphaned": 0, "stale": len(stale), "clamped": 0}

    def quantity_of(self, product_id: int) -> Optional[int]:
        with self._lock:
            row = self._rows.get(product_id)
            return None if row is None else row["quantity"]

    def _on_rollback(self, callback) -> None:
        if self.transaction_manager is not None:
            self.transaction_manager.on_rollback(callback)

    def _shift(self, product_id: int, delta: int) -> None:
        # 按差值撤销，不覆盖其他线程在此期间提交的修改
        with self._lock:
            row = self._rows.get(product_id)
            if row is not None:
                row["quantity"] += delta
                self._touch(row)

    def _restore(self, product_id: int, previous: Optional[Dict]) -> None:
        with self._lock:
            if previous is None:
                self._rows.pop(product_id, None)
            else:
                self._rows[product_id] = dict(previous)

    @staticmethod
    def _touch(row: Dict) -> None:
        row["version"] += 1
        row["last_updated"] = datetime.now(timezone.utc)
