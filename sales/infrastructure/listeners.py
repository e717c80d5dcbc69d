"""
销售事件监听器。
"""
from typing import Callable

from loguru import logger

from core.infrastructure.queue import Job, JobQueue
from sales.domain.events import SaleFinalizedEvent


class UpdateInventoryListener:
    """
    监听SaleFinalizedEvent，把库存更新任务投递到inventory队列。
    销售完成的延迟与库存扣减的延迟互不影响，库存更新可以独立重试。
    """

    queue = "inventory"

    def __init__(self, job_queue: JobQueue, job_factory: Callable[[], Job]):
        """
        Args:
            job_queue: 任务队列
            job_factory: 创建UpdateInventoryJob实例的工厂函数
        """
        self.job_queue = job_queue
        self.job_factory = job_factory

    def __call__(self, event: SaleFinalizedEvent) -> None:
        self.handle(event)

    def handle(self, event: SaleFinalizedEvent) -> None:
        try:
            self.job_queue.dispatch(self.job_factory().on_queue(self.queue), event.sale_id, event.items)
        except Exception as e:
            logger.error(f"UpdateInventoryListener投递失败 销售={event.sale_id} 明细={event.items}: {e}")
            raise
