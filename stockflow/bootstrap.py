"""
应用装配模块。
根据Django设置创建缓存服务、任务队列和事件总线，并通过各模块工厂完成依赖注入。
"""
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.db import close_old_connections
from loguru import logger

from core.domain.clock import Clock, SystemClock
from core.domain.events import EventBus
from core.infrastructure.cache import CacheService, MemoryCacheService, RedisCacheService
from core.infrastructure.queue import JobQueue, SyncJobQueue, ThreadedJobQueue
from core.infrastructure.transaction import DjangoTransactionManager
from inventory.infrastructure.factory import InventoryInfrastructureFactory
from sales.infrastructure.factory import SalesInfrastructureFactory


def configure_logging() -> None:
    """
    生产环境把loguru日志写入滚动文件。
    """
    log_file = getattr(settings, 'LOGURU_FILE', None)
    if log_file:
        logger.add(log_file, rotation="10 MB", retention=10, level="INFO", enqueue=True)


def build_cache_service() -> CacheService:
    backend = getattr(settings, 'CACHE_BACKEND', 'memory')
    if backend == 'redis':
        from django_redis import get_redis_connection

        prefix = f"{getattr(settings, 'REDIS_KEY_PREFIX', 'stockflow')}:"
        return RedisCacheService(get_redis_connection("default"), key_prefix=prefix)
    return MemoryCacheService()


def build_job_queue(clock: Clock) -> JobQueue:
    backend = getattr(settings, 'JOB_QUEUE_BACKEND', 'sync')
    if backend == 'threaded':
        # 工作线程不经过请求信号，每次尝试前后自行回收超过CONN_MAX_AGE或已断开的连接
        return ThreadedJobQueue(
            workers=getattr(settings, 'JOB_QUEUE_WORKERS', 4),
            clock=clock,
            attempt_hook=close_old_connections
        )
    return SyncJobQueue(clock)


@dataclass
class Application:
    """装配完成的应用组件"""
    cache_service: CacheService
    job_queue: JobQueue
    event_bus: EventBus
    inventory: InventoryInfrastructureFactory
    sales: SalesInfrastructureFactory


def bootstrap(
    cache_service: Optional[CacheService] = None,
    job_queue: Optional[JobQueue] = None,
    clock: Optional[Clock] = None
) -> Application:
    """
    装配应用。

    Args:
        cache_service: 缓存服务，不提供时按CACHE_BACKEND创建
        job_queue: 任务队列，不提供时按JOB_QUEUE_BACKEND创建
        clock: 时钟
    """
    configure_logging()
    clock = clock or SystemClock()
    cache_service = cache_service or build_cache_service()
    job_queue = job_queue or build_job_queue(clock)
    transaction_manager = DjangoTransactionManager()
    event_bus = EventBus()

    inventory_factory = InventoryInfrastructureFactory(cache_service, transaction_manager, clock)
    sales_factory = SalesInfrastructureFactory(inventory_factory, transaction_manager, job_queue, event_bus)
    sales_factory.register_listeners()

    logger.info(f"应用装配完成 缓存={type(cache_service).__name__} 队列={type(job_queue).__name__}")
    return Application(cache_service, job_queue, event_bus, inventory_factory, sales_factory)
