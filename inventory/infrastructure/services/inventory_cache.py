"""
库存缓存管理服务。
负责库存单项和列表的读穿缓存，以及基于列表版本号的失效。

列表缓存键中嵌入当前版本号，版本号递增后旧键不再被读取，随TTL自然过期，
不需要逐个删除所有参数组合。
"""
import hashlib
import json
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from core.infrastructure.cache import CacheService
from inventory.domain import config

_MISS = object()


class InventoryCache:
    """
    库存缓存管理服务。
    缓存失败不会向外传播：读取失败退回resolver，写入、删除和版本递增失败只记录日志。
    """

    # 缓存键
    NAMESPACE = "inventory"
    VERSION_KEY = "inventory:list_version"

    SEARCH_MAX_LENGTH = 100

    def __init__(
        self,
        cache_service: CacheService,
        item_ttl: Optional[int] = None,
        list_ttl: Optional[int] = None,
        version_ttl: Optional[int] = None
    ):
        """
        初始化库存缓存管理服务。
        版本递增策略在构造时根据后端是否支持原子自增确定，之后不再探测。

        Args:
            cache_service: 缓存服务
            item_ttl: 单项缓存TTL（秒）
            list_ttl: 列表缓存TTL（秒）
            version_ttl: 版本号键TTL（秒）
        """
        self.cache_service = cache_service
        self.item_ttl = config.CACHE_ITEM_TTL if item_ttl is None else item_ttl
        self.list_ttl = config.CACHE_LIST_TTL if list_ttl is None else list_ttl
        self.version_ttl = config.CACHE_VERSION_TTL if version_ttl is None else version_ttl

        if cache_service.supports_increment:
            self._bump = self._bump_atomic
        else:
            self._bump = self._bump_read_write

    # ---------------------------
    # 读穿缓存
    # ---------------------------

    def remember_item(self, product_id: Any, resolver: Callable[[], Any]) -> Any:
        return self._remember(self._key(f"item:{int(product_id)}"), self.item_ttl, resolver)

    def remember_list_and_totals(
        self,
        search: Optional[str],
        per_page: int,
        page: int,
        resolver: Callable[[], Any]
    ) -> Any:
        """
        分页列表、分页信息和合计。
        """
        params = {"q": self.normalize_search(search), "pp": per_page, "p": page}
        key = self._key(f"list:paged:v{self.list_version()}:{self._digest(params)}")
        return self._remember(key, self.list_ttl, resolver)

    def remember_list_and_totals_unpaged(self, search: Optional[str], resolver: Callable[[], Any]) -> Any:
        """
        不分页的列表和合计。
        """
        params = {"q": self.normalize_search(search)}
        key = self._key(f"list:unpaged:v{self.list_version()}:{self._digest(params)}")
        return self._remember(key, self.list_ttl, resolver)

    # ---------------------------
    # 失效
    # ---------------------------

    def invalidate_by_products(self, product_ids: Iterable[Any]) -> None:
        """
        删除每个商品的单项缓存，然后递增列表版本。
        """
        for product_id in product_ids:
            key = self._key(f"item:{int(product_id)}")
            try:
                self.cache_service.delete(key)
            except Exception as e:
                logger.warning(f"删除库存缓存失败 {key}: {e}")
        self.bump_list_version()

    def invalidate_all_lists(self) -> None:
        self.bump_list_version()

    def bump_list_version(self) -> Optional[int]:
        """
        递增列表版本号。

        Returns:
            新版本号，递增失败时返回None
        """
        try:
            version = self._bump()
            logger.debug(f"库存列表版本号递增为 {version}")
            return version
        except Exception as e:
            logger.warning(f"库存列表版本号递增失败: {e}")
            return None

    def list_version(self) -> int:
        try:
            version = int(self.cache_service.get(self.VERSION_KEY, 1) or 1)
        except Exception as e:
            logger.warning(f"读取库存列表版本号失败: {e}")
            return 1
        return version if version > 0 else 1

    # ---------------------------
    # 内部方法
    # ---------------------------

    def _bump_atomic(self) -> int:
        # 版本号从1开始，键不存在时先写入1再自增
        self.cache_service.set_nx(self.VERSION_KEY, 1, self.version_ttl)
        return self.cache_service.increment(self.VERSION_KEY)

    def _bump_read_write(self) -> int:
        # 读后写存在竞争窗口，只在后端不支持自增时使用
        version = self.list_version() + 1
        self.cache_service.set(self.VERSION_KEY, version, self.version_ttl)
        return version

    @classmethod
    def normalize_search(cls, search: Optional[str]) -> str:
        return (search or "").strip()[:cls.SEARCH_MAX_LENGTH].lower()

    @staticmethod
    def _digest(params: dict) -> str:
        payload = json.dumps(params, sort_keys=True, separators=(",", ":"))
        return hashlib.md5(payload.encode("utf-8")).hexdigest()

    def _key(self, suffix: str) -> str:
        return f"{self.NAMESPACE}:{suffix}"

    def _remember(self, key: str, ttl: int, resolver: Callable[[], Any]) -> Any:
        try:
            cached = self.cache_service.get(key, _MISS)
        except Exception as e:
            logger.warning(f"读取库存缓存失败 {key}: {e}")
            cached = _MISS

        if cached is not _MISS:
            return cached

        value = resolver()
        try:
            self.cache_service.set(key, value, ttl)
        except Exception as e:
            logger.warning(f"写入库存缓存失败 {key}: {e}")
        return value
