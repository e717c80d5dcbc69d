"""
事务管理器模块。
提供事务控制的接口和实现。

on_commit() 注册的回调只在最外层事务成功提交后执行，
回滚时丢弃，用于提交后派发任务、发布事件和清理缓存。
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
import threading
from typing import Callable, Generator, List

from django.db import transaction as django_transaction
from loguru import logger


class TransactionManager(ABC):
    """
    事务管理器接口。
    定义开启、提交、回滚事务和注册提交后回调的抽象方法。
    """

    @abstractmethod
    @contextmanager
    def start(self) -> Generator[None, None, None]:
        """
        开启一个事务。
        返回一个上下文管理器，作用域正常结束时提交，抛出异常时回滚。

        Yields:
            None
        """
        pass

    @abstractmethod
    def commit(self) -> None:
        """提交当前事务"""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """回滚当前事务"""
        pass

    @abstractmethod
    def on_commit(self, callback: Callable[[], None]) -> None:
        """
        注册提交后回调。
        不在事务中时立即执行。

        Args:
            callback: 无参回调函数
        """
        pass


class DjangoTransactionManager(TransactionManager):
    """
    基于Django的事务管理器实现。
    使用Django的atomic()和on_commit()管理事务。
    """

    def __init__(self, using: str = None):
        self.using = using

    @contextmanager
    def start(self) -> Generator[None, None, None]:
        try:
            with django_transaction.atomic(using=self.using):
                logger.debug("事务已开启")
                yield
                logger.debug("事务已提交")
        except Exception as e:
            logger.error(f"事务回滚: {e}")
            raise

    def commit(self) -> None:
        """
        由atomic()在作用域结束时自动提交，此方法只记录日志。
        """
        logger.debug("显式提交事务")

    def rollback(self) -> None:
        """
        标记当前atomic块回滚，作用域结束时生效。
        """
        logger.debug("显式回滚事务")
        django_transaction.set_rollback(True, using=self.using)

    def on_commit(self, callback: Callable[[], None]) -> None:
        django_transaction.on_commit(callback, using=self.using)


class NoOpTransactionManager(TransactionManager):
    """
    空操作事务管理器。
    不访问数据库，用于单元测试和内存仓储。
    仍然按嵌套深度跟踪事务，提交后回调只在最外层作用域成功结束时执行。
    内存仓储通过 on_rollback() 登记撤销操作，最外层作用域抛出异常或被标记回滚时按逆序执行。
    """

    def __init__(self):
        self._local = threading.local()

    def _state(self):
        if not hasattr(self._local, "depth"):
            self._local.depth = 0
            self._local.callbacks = []
            self._local.undo = []
            self._local.rollback_only = False
        return self._local

    @contextmanager
    def start(self) -> Generator[None, None, None]:
        state = self._state()
        state.depth += 1
        logger.debug("模拟事务已开启")
        try:
            yield
        except Exception:
            state.depth -= 1
            if state.depth == 0:
                self._undo(state)
            logger.debug("模拟事务已回滚")
            raise

        state.depth -= 1
        if state.depth > 0:
            return

        callbacks: List[Callable[[], None]] = state.callbacks
        if state.rollback_only:
            self._undo(state)
            logger.debug("模拟事务已回滚")
            return

        state.callbacks = []
        state.undo = []
        logger.debug("模拟事务已提交")
        for callback in callbacks:
            callback()

    def _undo(self, state) -> None:
        undo = state.undo
        state.callbacks = []
        state.undo = []
        state.rollback_only = False
        for callback in reversed(undo):
            callback()

    def commit(self) -> None:
        logger.debug("模拟提交事务")

    def rollback(self) -> None:
        logger.debug("模拟回滚事务")
        self._state().rollback_only = True

    def on_commit(self, callback: Callable[[], None]) -> None:
        state = self._state()
        if state.depth == 0:
            callback()
        else:
            state.callbacks.append(callback)

    def on_rollback(self, callback: Callable[[], None]) -> None:
        """
        登记回滚时执行的撤销操作。
        不在事务中时没有可回滚的作用域，直接忽略。
        """
        state = self._state()
        if state.depth > 0:
            state.undo.append(callback)
