"""
时钟抽象模块。
锁等待、任务退避和缓存过期都通过注入的时钟读取时间和休眠，
测试中替换为可手动推进的时钟。
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import Lock
import time


class Clock(ABC):
    """时钟接口"""

    @abstractmethod
    def monotonic(self) -> float:
        """单调递增的秒数，用于计算超时和TTL"""
        pass

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """休眠指定秒数"""
        pass

    def now(self) -> datetime:
        """当前UTC时间"""
        return datetime.now(timezone.utc)


class SystemClock(Clock):
    """生产环境时钟，使用系统时间"""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class ManualClock(Clock):
    """
    手动时钟。
    sleep()不会阻塞，只把时间向前推进，并记录每次休眠的时长。
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._lock = Lock()
        self.sleeps = []

    def monotonic(self) -> float:
        with self._lock:
            return self._now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self._now += max(0.0, seconds)

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds
