"""
领域事件模块。
包含DomainEvent基类和EventBus，用于领域事件的发布和订阅。
"""
from datetime import datetime, timezone
from threading import RLock
from typing import Callable, Dict, List, Type
import uuid

from loguru import logger


class DomainEvent:
    """
    领域事件基类。
    领域事件表示领域模型中发生的重要事件，通常用于跨聚合的业务流程。
    """

    def __init__(self):
        self.id = uuid.uuid4()
        self.occurred_on = datetime.now(timezone.utc)


# 事件处理器类型
EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """
    进程内事件总线。
    同步地把事件分发给所有按事件类型注册的处理器。
    实例通过构造函数注入，不存在全局处理器表。
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._lock = RLock()

    def register(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        注册事件处理器。

        Args:
            event_type: 事件类型
            handler: 事件处理器
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unregister(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        取消注册事件处理器，处理器不存在时忽略。
        """
        with self._lock:
            handlers = self._handlers.get(event_type)
            if not handlers or handler not in handlers:
                return
            handlers.remove(handler)
            if not handlers:
                del self._handlers[event_type]

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        with self._lock:
            return list(self._handlers.get(event_type, []))

    def publish(self, event: DomainEvent) -> None:
        """
        发布事件。
        处理器按注册顺序调用，处理器抛出的异常向调用方传播。

        Args:
            event: 要发布的事件
        """
        handlers = self.handlers_for(type(event))
        logger.debug(f"发布事件 {type(event).__name__}，处理器数量: {len(handlers)}")
        for handler in handlers:
            handler(event)

    def clear_handlers(self) -> None:
        """清除所有事件处理器"""
        with self._lock:
            self._handlers.clear()
