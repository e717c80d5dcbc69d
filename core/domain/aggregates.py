"""
聚合根模块。
包含AggregateRoot基类，用于定义领域聚合的边界和不变性规则。
"""
from typing import Any, List

from core.domain.base import Entity
from core.domain.events import DomainEvent


class AggregateRoot(Entity):
    """
    聚合根基类。
    聚合根是外部访问聚合内部对象的唯一入口点，
    并收集聚合内产生的领域事件，由应用层在事务提交后发布。
    """

    def __init__(self, id: Any = None):
        super().__init__(id)
        self._domain_events: List[DomainEvent] = []

    def add_domain_event(self, event: DomainEvent) -> None:
        """
        添加领域事件到事件列表中，等待发布。

        Args:
            event: 要添加的领域事件
        """
        self._domain_events.append(event)

    def clear_domain_events(self) -> List[DomainEvent]:
        """
        清除并返回所有未发布的领域事件。

        Returns:
            未发布的领域事件列表
        """
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def check_invariants(self) -> bool:
        """
        检查聚合的不变性规则，子类按需重写。
        """
        return True
