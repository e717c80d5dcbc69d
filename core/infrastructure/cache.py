"""
缓存服务模块。
提供缓存服务的接口和实现。

计数器（increment）以原始整数存储，其余值经pickle序列化，
set_nx/delete_if_equals 为分布式锁提供原子的加锁和按持有者释放。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
import fnmatch
import pickle
from threading import RLock
from typing import Any, Callable, Optional
import time

from cachetools import TLRUCache, TTLCache
from loguru import logger
import redis


class CacheService(ABC):
    """
    缓存服务接口。
    定义缓存操作的抽象方法。
    """

    #: 后端是否提供原子自增
    supports_increment: bool = False

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        从缓存中获取值。

        Args:
            key: 缓存键
            default: 键不存在时返回的值

        Returns:
            缓存值或default
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = 300) -> bool:
        """
        将值存入缓存。

        Args:
            key: 缓存键
            value: 要缓存的值
            ttl: 过期时间（秒），None表示不过期

        Returns:
            是否成功
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """从缓存中删除键"""
        pass

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        """删除匹配glob模式的所有键，返回删除数量"""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """检查键是否存在"""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """清空缓存"""
        pass

    @abstractmethod
    def increment(self, key: str, delta: int = 1) -> int:
        """
        原子地把整数计数器加上delta，键不存在时从0开始。

        Returns:
            自增后的值
        """
        pass

    @abstractmethod
    def set_nx(self, key: str, value: Any, ttl: int) -> bool:
        """
        仅当键不存在时写入，并设置过期时间。

        Returns:
            写入成功返回True，键已存在返回False
        """
        pass

    @abstractmethod
    def delete_if_equals(self, key: str, value: Any) -> bool:
        """
        仅当键当前值等于value时删除。

        Returns:
            是否删除了键
        """
        pass


class RedisCacheService(CacheService):
    """
    基于Redis的缓存服务实现。

    get/set/delete 遇到Redis错误时记录日志并返回降级结果；
    increment/set_nx/delete_if_equals 的错误向上传播，由调用方决定如何处理。
    """

    supports_increment = True

    _COMPARE_AND_DELETE = """
    if redis.call('get', KEYS[1]) == ARGV[1] then
        return redis.call('del', KEYS[1])
    end
    return 0
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key_prefix: str = "stockflow:",
        local_cache_size: int = 0,
        local_cache_ttl: int = 5
    ):
        """
        初始化Redis缓存服务。

        Args:
            redis_client: Redis客户端
            key_prefix: 键前缀
            local_cache_size: 进程内二级缓存大小，0表示关闭（二级缓存不能跨进程失效）
            local_cache_ttl: 进程内二级缓存TTL（秒）
        """
        self.redis_client = redis_client
        self.key_prefix = key_prefix
        self.local_cache = (
            TTLCache(maxsize=local_cache_size, ttl=local_cache_ttl)
            if local_cache_size > 0 else None
        )
        self._compare_and_delete = redis_client.register_script(self._COMPARE_AND_DELETE)

    def _get_full_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    @staticmethod
    def _serialize(value: Any) -> bytes:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value).encode()
        return pickle.dumps(value)

    @staticmethod
    def _deserialize(raw: bytes) -> Any:
        try:
            return int(raw)
        except (TypeError, ValueError):
            return pickle.loads(raw)

    def _forget_local(self, key: str) -> None:
        if self.local_cache is not None:
            self.local_cache.pop(key, None)

    def get(self, key: str, default: Any = None) -> Any:
        if self.local_cache is not None and key in self.local_cache:
            logger.debug(f"本地缓存命中: {key}")
            return self.local_cache[key]

        try:
            raw = self.redis_client.get(self._get_full_key(key))
            if raw is not None:
                result = self._deserialize(raw)
                if self.local_cache is not None:
                    self.local_cache[key] = result
                logger.debug(f"Redis缓存命中: {key}")
                return result
        except (redis.RedisError, pickle.PickleError) as e:
            logger.error(f"Redis缓存读取错误: {e}")

        logger.debug(f"缓存未命中: {key}")
        return default

    def set(self, key: str, value: Any, ttl: Optional[int] = 300) -> bool:
        if self.local_cache is not None:
            self.local_cache[key] = value

        full_key = self._get_full_key(key)
        try:
            serialized = self._serialize(value)
            if ttl:
                result = self.redis_client.set(full_key, serialized, ex=int(ttl))
            else:
                result = self.redis_client.set(full_key, serialized)
            logger.debug(f"缓存已设置: {key}, TTL: {ttl}秒")
            return bool(result)
        except (redis.RedisError, pickle.PickleError) as e:
            logger.error(f"Redis缓存写入错误: {e}")
            return False

    def delete(self, key: str) -> bool:
        self._forget_local(key)
        try:
            result = self.redis_client.delete(self._get_full_key(key))
            logger.debug(f"缓存已删除: {key}")
            return result > 0
        except redis.RedisError as e:
            logger.error(f"Redis缓存删除错误: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        count = 0
        try:
            keys = list(self.redis_client.scan_iter(match=self._get_full_key(pattern)))
            if keys:
                count = self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Redis缓存模式删除错误: {e}")
            return 0

        if self.local_cache is not None:
            for k in [k for k in self.local_cache.keys() if fnmatch.fnmatchcase(k, pattern)]:
                self.local_cache.pop(k, None)

        logger.debug(f"已删除匹配模式 {pattern} 的 {count} 个键")
        return count

    def exists(self, key: str) -> bool:
        if self.local_cache is not None and key in self.local_cache:
            return True
        try:
            return bool(self.redis_client.exists(self._get_full_key(key)))
        except redis.RedisError as e:
            logger.error(f"Redis缓存检查错误: {e}")
            return False

    def clear(self) -> bool:
        if self.local_cache is not None:
            self.local_cache.clear()
        try:
            keys = list(self.redis_client.scan_iter(match=self._get_full_key("*")))
            if keys:
                self.redis_client.delete(*keys)
            logger.debug(f"缓存已清空, 删除了 {len(keys)} 个键")
            return True
        except redis.RedisError as e:
            logger.error(f"Redis缓存清空错误: {e}")
            return False

    def increment(self, key: str, delta: int = 1) -> int:
        self._forget_local(key)
        return int(self.redis_client.incrby(self._get_full_key(key), delta))

    def set_nx(self, key: str, value: Any, ttl: int) -> bool:
        return bool(self.redis_client.set(
            self._get_full_key(key), self._serialize(value), nx=True, ex=max(1, int(ttl))
        ))

    def delete_if_equals(self, key: str, value: Any) -> bool:
        self._forget_local(key)
        deleted = self._compare_and_delete(
            keys=[self._get_full_key(key)], args=[self._serialize(value)]
        )
        return bool(deleted)


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: Optional[float]


def _entry_expiry(key: str, entry: _Entry, now: float) -> float:
    return float("inf") if entry.expires_at is None else entry.expires_at


class MemoryCacheService(CacheService):
    """
    基于内存的缓存服务实现。
    使用cachetools的TLRUCache为每个键单独设置TTL，适用于开发环境、单进程部署和测试。
    所有操作由可重入锁保护，支持多线程并发访问。
    """

    supports_increment = True

    def __init__(
        self,
        maxsize: int = 10000,
        default_ttl: Optional[int] = 300,
        timer: Callable[[], float] = time.monotonic
    ):
        """
        初始化内存缓存服务。

        Args:
            maxsize: 最大缓存项数
            default_ttl: 默认TTL（秒）
            timer: 计时函数，测试中可注入手动时钟
        """
        self.cache = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=timer)
        self.default_ttl = default_ttl
        self._lock = RLock()

    def _put(self, key: str, value: Any, ttl: Optional[float]) -> None:
        expires_at = self.cache.timer() + ttl if ttl else None
        self.cache[key] = _Entry(value, expires_at)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self.cache.get(key)
            return default if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        with self._lock:
            self._put(key, value, self.default_ttl if ttl is None else ttl)
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self.cache.pop(key, None) is not None

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            self.cache.expire()
            keys_to_delete = [k for k in list(self.cache.keys()) if fnmatch.fnmatchcase(k, pattern)]
            for key in keys_to_delete:
                self.cache.pop(key, None)
            return len(keys_to_delete)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self.cache

    def clear(self) -> bool:
        with self._lock:
            self.cache.clear()
            return True

    def increment(self, key: str, delta: int = 1) -> int:
        with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                self._put(key, delta, None)
                return delta
            # 与Redis INCRBY一致，保留原有的过期时间
            self.cache[key] = _Entry(int(entry.value) + delta, entry.expires_at)
            return int(entry.value) + delta

    def set_nx(self, key: str, value: Any, ttl: int) -> bool:
        with self._lock:
            if key in self.cache:
                return False
            self._put(key, value, ttl)
            return True

    def delete_if_equals(self, key: str, value: Any) -> bool:
        with self._lock:
            entry = self.cache.get(key)
            if entry is None or entry.value != value:
                return False
            self.cache.pop(key, None)
            return True


class NoCacheService(CacheService):
    """
    空缓存服务实现。
    不进行实际缓存，适用于禁用缓存的场景；不能用作分布式锁的后端。
    """

    def get(self, key: str, default: Any = None) -> Any:
        return default

    def set(self, key: str, value: Any, ttl: Optional[int] = 300) -> bool:
        return True

    def delete(self, key: str) -> bool:
        return True

    def delete_pattern(self, pattern: str) -> int:
        return 0

    def exists(self, key: str) -> bool:
        return False

    def clear(self) -> bool:
        return True

    def increment(self, key: str, delta: int = 1) -> int:
        raise NotImplementedError("NoCacheService不支持自增")

    def set_nx(self, key: str, value: Any, ttl: int) -> bool:
        raise NotImplementedError("NoCacheService不支持加锁")

    def delete_if_equals(self, key: str, value: Any) -> bool:
        return False
