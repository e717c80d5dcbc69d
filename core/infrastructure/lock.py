"""
分布式锁模块。
基于缓存服务的SET NX实现带TTL的互斥锁。

每次加锁写入随机令牌，释放时只删除令牌仍然匹配的键，
因此锁过期后被他人获取时，原持有者的释放不会误删新锁。
"""
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional, TypeVar
import uuid

from loguru import logger

from core.domain.clock import Clock, SystemClock
from core.domain.exceptions import LockAcquisitionException
from core.infrastructure.cache import CacheService

T = TypeVar('T')


class DistributedLock:
    """
    分布式锁。

    锁在释放或TTL到期后消失，持有者崩溃时由TTL保证不会永久死锁。
    """

    def __init__(self, cache_service: CacheService, clock: Optional[Clock] = None):
        """
        初始化分布式锁。

        Args:
            cache_service: 提供set_nx/delete_if_equals的缓存服务
            clock: 时钟，用于计算等待超时和轮询休眠
        """
        self.cache_service = cache_service
        self.clock = clock or SystemClock()

    def acquire(
        self,
        key: str,
        ttl: float,
        wait_timeout: float = 5,
        poll_interval: float = 0.1
    ) -> str:
        """
        获取锁，锁被占用时按poll_interval轮询直到wait_timeout。

        Returns:
            本次持有的令牌，释放时需要传回

        Raises:
            LockAcquisitionException: 等待超时
        """
        token = uuid.uuid4().hex
        deadline = self.clock.monotonic() + wait_timeout

        while True:
            if self.cache_service.set_nx(key, token, ttl):
                logger.debug(f"已获取锁: {key}")
                return token

            remaining = deadline - self.clock.monotonic()
            if remaining <= 0:
                logger.warning(f"获取锁超时: {key}, 等待 {wait_timeout} 秒")
                raise LockAcquisitionException(key)

            self.clock.sleep(min(poll_interval, remaining))

    def release(self, key: str, token: str) -> bool:
        """
        释放锁。重复释放或锁已过期时返回False，不抛出异常。
        """
        released = self.cache_service.delete_if_equals(key, token)
        if released:
            logger.debug(f"已释放锁: {key}")
        else:
            logger.debug(f"锁已不属于当前持有者: {key}")
        return released

    @contextmanager
    def hold(
        self,
        key: str,
        ttl: float,
        wait_timeout: float = 5,
        poll_interval: float = 0.1
    ) -> Generator[str, None, None]:
        """
        持有锁的上下文管理器，离开作用域时释放（包括抛出异常时）。

        Yields:
            锁令牌
        """
        token = self.acquire(key, ttl, wait_timeout, poll_interval)
        try:
            yield token
        finally:
            self.release(key, token)

    def run(
        self,
        key: str,
        ttl: float,
        body: Callable[[], T],
        wait_timeout: float = 5,
        poll_interval: float = 0.1
    ) -> T:
        """
        在锁内执行body并返回其结果。

        Args:
            key: 锁键
            ttl: 锁的存活时间（秒）
            body: 无参回调
            wait_timeout: 最长等待时间（秒）
            poll_interval: 轮询间隔（秒）

        Raises:
            LockAcquisitionException: 等待超时
        """
        with self.hold(key, ttl, wait_timeout, poll_interval):
            return body()

    def is_locked(self, key: str) -> bool:
        return self.cache_service.exists(key)
