"""
基础设施层包。
提供事务管理、缓存服务、分布式锁、指标收集和任务队列等基础设施组件。
"""

# 事务管理
from core.infrastructure.transaction import (
    TransactionManager,
    DjangoTransactionManager,
    NoOpTransactionManager
)

# 缓存服务
from core.infrastructure.cache import (
    CacheService,
    RedisCacheService,
    MemoryCacheService,
    NoCacheService
)

# 分布式锁
from core.infrastructure.lock import DistributedLock

# 指标收集
from core.infrastructure.metrics import MetricsCollector

# 任务队列
from core.infrastructure.queue import (
    Job,
    FailedJob,
    JobQueue,
    SyncJobQueue,
    ThreadedJobQueue
)

__all__ = [
    # 事务管理
    'TransactionManager',
    'DjangoTransactionManager',
    'NoOpTransactionManager',

    # 缓存服务
    'CacheService',
    'RedisCacheService',
    'MemoryCacheService',
    'NoCacheService',

    # 分布式锁
    'DistributedLock',

    # 指标收集
    'MetricsCollector',

    # 任务队列
    'Job',
    'FailedJob',
    'JobQueue',
    'SyncJobQueue',
    'ThreadedJobQueue',
]
