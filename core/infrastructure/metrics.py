"""
指标收集模块。
把计数器和仪表值写入缓存服务，所有失败只记录日志，不影响业务流程。
"""
from typing import Any, Optional

from loguru import logger

from core.infrastructure.cache import CacheService


class MetricsCollector:
    """
    尽力而为的指标收集器。
    """

    GAUGE_TTL = 86400

    def __init__(self, cache_service: CacheService, prefix: str = "metrics:"):
        self.cache_service = cache_service
        self.prefix = prefix

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def increment(self, name: str, by: int = 1) -> None:
        """
        计数器加by。
        """
        try:
            self.cache_service.increment(self._key(name), by)
        except Exception as e:
            logger.warning(f"指标计数失败 {name}: {e}")

    def gauge(self, name: str, value: Any) -> None:
        """
        记录仪表当前值。
        """
        try:
            self.cache_service.set(self._key(name), value, self.GAUGE_TTL)
        except Exception as e:
            logger.warning(f"指标记录失败 {name}: {e}")

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        try:
            return self.cache_service.get(self._key(name), default)
        except Exception as e:
            logger.warning(f"指标读取失败 {name}: {e}")
            return default
