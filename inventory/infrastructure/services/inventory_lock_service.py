"""
库存锁定服务实现。
在分布式锁之上按商品ID加锁，串行化同一商品的复合库存操作。

锁只是原子条件扣减之上的一层，不能替代它。
"""
from typing import Any, Callable, Iterable, Optional, TypeVar

from loguru import logger

from core.infrastructure.lock import DistributedLock
from inventory.domain import config

T = TypeVar('T')


class InventoryLockService:
    """
    按商品加锁的服务。
    锁的粒度是单个商品ID，持有时间只覆盖该商品的操作。
    """

    KEY_PREFIX = "lock:inventory:product:"

    def __init__(
        self,
        lock: DistributedLock,
        ttl: float = None,
        wait_timeout: float = None,
        poll_interval: float = None
    ):
        """
        初始化库存锁定服务。

        Args:
            lock: 分布式锁
            ttl: 单商品锁TTL（秒）
            wait_timeout: 最长等待时间（秒）
            poll_interval: 轮询间隔（秒）
        """
        self.distributed_lock = lock
        self.ttl = config.LOCK_TTL if ttl is None else ttl
        self.wait_timeout = config.LOCK_WAIT_TIMEOUT if wait_timeout is None else wait_timeout
        self.poll_interval = config.LOCK_POLL_INTERVAL if poll_interval is None else poll_interval

    @classmethod
    def key_for(cls, product_id: Any) -> str:
        return f"{cls.KEY_PREFIX}{int(product_id)}"

    def lock(
        self,
        product_id: Any,
        body: Callable[[], T],
        ttl: Optional[float] = None,
        wait_timeout: Optional[float] = None
    ) -> T:
        """
        在商品锁内执行body。

        Raises:
            LockAcquisitionException: 等待超时
        """
        return self.distributed_lock.run(
            self.key_for(product_id),
            self.ttl if ttl is None else ttl,
            body,
            wait_timeout=self.wait_timeout if wait_timeout is None else wait_timeout,
            poll_interval=self.poll_interval
        )

    def lock_many(
        self,
        product_ids: Iterable[Any],
        body: Callable[[], T],
        ttl: Optional[float] = None,
        wait_timeout: Optional[float] = None
    ) -> T:
        """
        同时锁定多个商品后执行body。
        ID去重后按升序加锁，不同调用方的加锁顺序一致，不会互相死锁。
        """
        ids = sorted({int(product_id) for product_id in product_ids})
        ttl = config.LOCK_MANY_TTL if ttl is None else ttl
        wait_timeout = config.LOCK_MANY_WAIT_TIMEOUT if wait_timeout is None else wait_timeout
        logger.debug(f"按顺序锁定商品: {ids}")

        def nest(index: int) -> T:
            if index == len(ids):
                return body()
            return self.lock(ids[index], lambda: nest(index + 1), ttl=ttl, wait_timeout=wait_timeout)

        return nest(0)
