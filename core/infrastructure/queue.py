"""
任务队列模块。
提供后台任务的基类和队列实现。

队列负责重试：每次尝试调用 job.handle(*args, **kwargs)，
失败后按 job.backoff 等待再重试，尝试次数用完（或异常属于 job.non_retryable）
时调用一次 job.failed(error, *args, **kwargs)。

attempt_hook 在每次尝试前后各调用一次，工作线程用它回收过期的数据库连接。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import heapq
import itertools
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from loguru import logger

from core.domain.clock import Clock, SystemClock


class Job(ABC):
    """
    任务基类。
    子类实现handle()，通过构造函数注入依赖。
    """

    #: 队列名称
    queue: str = "default"
    #: 最大尝试次数
    tries: int = 3
    #: 第n次失败后的等待秒数，超出部分沿用最后一个值
    backoff: Tuple[float, ...] = (5, 15, 60)
    #: 不重试的异常类型
    non_retryable: Tuple[Type[BaseException], ...] = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def on_queue(self, queue: str) -> 'Job':
        """指定投递的队列名称"""
        self.queue = queue
        return self

    @abstractmethod
    def handle(self, *args: Any, **kwargs: Any) -> Any:
        """执行一次任务"""
        pass

    def failed(self, error: Exception, *args: Any, **kwargs: Any) -> None:
        """
        尝试次数用完后调用，默认只记录日志。
        """
        logger.error(f"任务 {self.name} 最终失败: {error}")

    def backoff_for(self, attempt: int) -> float:
        """
        第attempt次尝试失败后的等待时间。
        """
        if not self.backoff:
            return 0
        return self.backoff[min(attempt, len(self.backoff)) - 1]

    def should_retry(self, error: Exception, attempt: int) -> bool:
        if isinstance(error, self.non_retryable):
            return False
        return attempt < self.tries


@dataclass
class FailedJob:
    """最终失败的任务记录"""
    job: Job
    error: Exception
    attempts: int
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


class JobQueue(ABC):
    """
    任务队列接口。
    """

    def __init__(self, attempt_hook: Optional[Callable[[], None]] = None):
        self.failed_jobs: List[FailedJob] = []
        self.attempt_hook = attempt_hook

    @abstractmethod
    def dispatch(self, job: Job, *args: Any, **kwargs: Any) -> None:
        """
        投递任务。

        Args:
            job: 任务实例
            *args, **kwargs: 传给handle()的参数
        """
        pass

    def _run_attempt(self, job: Job, attempt: int, args: tuple, kwargs: Dict[str, Any]) -> Optional[float]:
        """
        执行一次尝试。

        Returns:
            需要重试时返回等待秒数，成功或最终失败时返回None
        """
        try:
            if self.attempt_hook:
                self.attempt_hook()
            logger.debug(f"执行任务 {job.name}[{job.queue}]，第 {attempt}/{job.tries} 次")
            job.handle(*args, **kwargs)
            return None
        except Exception as e:
            if job.should_retry(e, attempt):
                delay = job.backoff_for(attempt)
                logger.warning(f"任务 {job.name} 第 {attempt} 次失败: {e}，{delay} 秒后重试")
                return delay

            logger.error(f"任务 {job.name} 在第 {attempt} 次尝试后放弃: {e}")
            self.failed_jobs.append(FailedJob(job, e, attempt, args, dict(kwargs)))
            self._call_failed(job, e, args, kwargs)
            return None
        finally:
            self._after_attempt()

    def _after_attempt(self) -> None:
        if not self.attempt_hook:
            return
        try:
            self.attempt_hook()
        except Exception as e:
            logger.warning(f"任务尝试后的回调失败: {e}")

    @staticmethod
    def _call_failed(job: Job, error: Exception, args: tuple, kwargs: Dict[str, Any]) -> None:
        try:
            job.failed(error, *args, **kwargs)
        except Exception as e:
            logger.exception(f"任务 {job.name} 的failed()抛出异常: {e}")


class SyncJobQueue(JobQueue):
    """
    同步任务队列。
    在调用线程中立即执行任务，重试之间通过时钟休眠，适用于测试和命令行场景。
    """

    def __init__(self, clock: Optional[Clock] = None, attempt_hook: Optional[Callable[[], None]] = None):
        super().__init__(attempt_hook)
        self.clock = clock or SystemClock()

    def dispatch(self, job: Job, *args: Any, **kwargs: Any) -> None:
        attempt = 1
        while True:
            delay = self._run_attempt(job, attempt, args, kwargs)
            if delay is None:
                return
            self.clock.sleep(delay)
            attempt += 1


class ThreadedJobQueue(JobQueue):
    """
    多线程任务队列。
    工作线程从共享队列取任务并行执行；失败的任务在backoff到期后重新入队，
    不同任务之间不保证顺序。
    """

    def __init__(
        self,
        workers: int = 4,
        clock: Optional[Clock] = None,
        attempt_hook: Optional[Callable[[], None]] = None
    ):
        super().__init__(attempt_hook)
        self.clock = clock or SystemClock()
        self._heap: List[tuple] = []
        self._counter = itertools.count()
        self._condition = threading.Condition()
        self._pending = 0
        self._stopping = False
        self._threads = [
            threading.Thread(target=self._worker, name=f"job-worker-{i}", daemon=True)
            for i in range(workers)
        ]
        for thread in self._threads:
            thread.start()

    def dispatch(self, job: Job, *args: Any, **kwargs: Any) -> None:
        with self._condition:
            if self._stopping:
                raise RuntimeError("任务队列已关闭")
            self._pending += 1
            self._push(0, job, 1, args, kwargs)

    def _push(self, delay: float, job: Job, attempt: int, args: tuple, kwargs: Dict[str, Any]) -> None:
        available_at = self.clock.monotonic() + delay
        heapq.heappush(self._heap, (available_at, next(self._counter), job, attempt, args, kwargs))
        self._condition.notify_all()

    def _next(self):
        with self._condition:
            while True:
                if self._stopping and not self._heap:
                    return None
                if self._heap:
                    wait = self._heap[0][0] - self.clock.monotonic()
                    if wait <= 0:
                        return heapq.heappop(self._heap)
                    self._condition.wait(timeout=wait)
                else:
                    self._condition.wait()

    def _worker(self) -> None:
        while True:
            item = self._next()
            if item is None:
                return
            _, _, job, attempt, args, kwargs = item
            delay = self._run_attempt(job, attempt, args, kwargs)
            with self._condition:
                if delay is None:
                    self._pending -= 1
                else:
                    self._push(delay, job, attempt + 1, args, kwargs)
                self._condition.notify_all()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        等待所有已投递任务完成（包括重试）。

        Returns:
            超时前全部完成返回True
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._pending == 0, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        with self._condition:
            self._stopping = True
            self._condition.notify_all()
        if wait:
            for thread in self._threads:
                thread.join()
