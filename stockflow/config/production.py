"""
生产环境配置文件。
包含生产环境特定的Django配置。
"""
import os
from .base import *
from .env import *

# 生产环境禁用调试模式
DEBUG = False

# 数据库配置
DATABASES = {
    'default': {
        'ENGINE': DB_ENGINE,
        'NAME': DB_NAME,
        'USER': DB_USER,
        'PASSWORD': DB_PASSWORD,
        'HOST': DB_HOST,
        'PORT': DB_PORT,
        'OPTIONS': {
            'charset': 'utf8mb4',
            'use_unicode': True,
            # 条件扣减依赖行锁，使用READ COMMITTED减少间隙锁
            'isolation_level': 'read committed',
        },
        'CONN_MAX_AGE': 60,  # 连接持久化
    }
}

# Redis缓存配置
CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            'CONNECTION_POOL_KWARGS': {'max_connections': REDIS_MAX_CONNECTIONS},
            'PASSWORD': REDIS_PASSWORD,
            'SOCKET_TIMEOUT': 5,  # 生产环境设置超时
            'SOCKET_CONNECT_TIMEOUT': 5,
        },
        'KEY_PREFIX': REDIS_KEY_PREFIX,
        'TIMEOUT': 300,
    }
}
CACHE_BACKEND = 'redis'

# 日志配置 - 生产环境更关注错误和警告
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': 'WARNING',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose'
        },
        'file': {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(BASE_DIR, 'logs/django.log'),
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 10,
            'formatter': 'verbose',
        },
        'error_file': {
            'level': 'ERROR',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(BASE_DIR, 'logs/error.log'),
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 10,
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'file', 'error_file'],
            'level': 'INFO',
            'propagate': True,
        },
    },
}

# 确保日志目录存在
os.makedirs(os.path.join(BASE_DIR, 'logs'), exist_ok=True)

# loguru输出到滚动文件
LOGURU_FILE = os.path.join(BASE_DIR, 'logs/stockflow.log')
