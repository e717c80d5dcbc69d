"""
基础配置文件。
各环境共享的Django配置，环境特定的配置在development/production/testing中覆盖。
"""
from .env import *

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'inventory.apps.InventoryConfig',
    'sales.apps.SalesConfig',
]

MIDDLEWARE = []

USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# 默认使用进程内缓存，开发和生产环境覆盖为Redis
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

# 缓存后端：redis 或 memory
CACHE_BACKEND = 'redis'

# 库存模块配置
INVENTORY_SETTINGS = {
    'STOCK_MAX_PER_PRODUCT': STOCK_MAX_PER_PRODUCT,
    'LOCK_TTL': INVENTORY_LOCK_TTL,
    'LOCK_WAIT_TIMEOUT': INVENTORY_LOCK_WAIT_TIMEOUT,
    'LOCK_POLL_INTERVAL': 0.1,
    'LOCK_MANY_TTL': 15,
    'LOCK_MANY_WAIT_TIMEOUT': 8,
    'CACHE_ITEM_TTL': INVENTORY_CACHE_TTL,
    'CACHE_LIST_TTL': INVENTORY_CACHE_TTL,
    'CACHE_VERSION_TTL': 86400,
    'JOB_TRIES': 3,
    'JOB_BACKOFF': tuple(float(delay) for delay in INVENTORY_JOB_BACKOFF),
    'CLEANUP_DAYS': 90,
}
