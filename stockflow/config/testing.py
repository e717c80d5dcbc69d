"""
测试环境配置文件。
包含测试环境特定的Django配置。
"""
from .base import *
from .env import *

# 测试环境禁用调试模式
DEBUG = False

SECRET_KEY = 'stockflow-testing-key'

# 使用内存数据库加速测试
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# 测试使用进程内缓存，不依赖Redis
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}
CACHE_BACKEND = 'memory'

# 测试使用同步任务队列
JOB_QUEUE_BACKEND = 'sync'

# 简化日志配置
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'console': {
            'level': 'ERROR',
            'class': 'logging.StreamHandler',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
    },
}

# 库存模块测试环境配置
INVENTORY_SETTINGS = {
    'STOCK_MAX_PER_PRODUCT': 1_000_000,
    'LOCK_TTL': 10,
    'LOCK_WAIT_TIMEOUT': 5,
    'LOCK_POLL_INTERVAL': 0.01,
    'LOCK_MANY_TTL': 15,
    'LOCK_MANY_WAIT_TIMEOUT': 8,
    'CACHE_ITEM_TTL': 60,
    'CACHE_LIST_TTL': 60,
    'CACHE_VERSION_TTL': 86400,
    'JOB_TRIES': 3,
    'JOB_BACKOFF': (5, 15, 60),
}
