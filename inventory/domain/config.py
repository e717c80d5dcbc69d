"""
库存模块配置文件。
从Django设置中获取库存模块的配置。
"""
from django.conf import settings

# 获取库存模块配置，如果不存在则使用默认值
INVENTORY_SETTINGS = getattr(settings, 'INVENTORY_SETTINGS', {})

# 单个商品的库存上限
STOCK_MAX_PER_PRODUCT = INVENTORY_SETTINGS.get('STOCK_MAX_PER_PRODUCT', 1_000_000)

# 单商品锁配置（秒）
LOCK_TTL = INVENTORY_SETTINGS.get('LOCK_TTL', 10)
LOCK_WAIT_TIMEOUT = INVENTORY_SETTINGS.get('LOCK_WAIT_TIMEOUT', 5)
LOCK_POLL_INTERVAL = INVENTORY_SETTINGS.get('LOCK_POLL_INTERVAL', 0.1)

# 多商品锁配置（秒）
LOCK_MANY_TTL = INVENTORY_SETTINGS.get('LOCK_MANY_TTL', 15)
LOCK_MANY_WAIT_TIMEOUT = INVENTORY_SETTINGS.get('LOCK_MANY_WAIT_TIMEOUT', 8)

# 缓存TTL（秒）
CACHE_ITEM_TTL = INVENTORY_SETTINGS.get('CACHE_ITEM_TTL', 60)
CACHE_LIST_TTL = INVENTORY_SETTINGS.get('CACHE_LIST_TTL', 60)
CACHE_VERSION_TTL = INVENTORY_SETTINGS.get('CACHE_VERSION_TTL', 86400)

# 库存更新任务的重试配置
JOB_TRIES = INVENTORY_SETTINGS.get('JOB_TRIES', 3)
JOB_BACKOFF = tuple(INVENTORY_SETTINGS.get('JOB_BACKOFF', (5, 15, 60)))

# 列表查询配置
DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100

# 库存清理：删除超过该天数未更新的库存行
CLEANUP_DAYS = INVENTORY_SETTINGS.get('CLEANUP_DAYS', 90)
