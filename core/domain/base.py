"""
核心领域模型基类模块。
包含Entity基类，用于所有具有唯一标识的领域对象。
"""
from typing import Any


class Entity:
    """
    实体基类。
    实体的相等性通过标识而非属性值判断。
    标识由持久化层分配，未保存的实体标识为None。
    """

    def __init__(self, id: Any = None):
        """
        初始化实体。

        Args:
            id: 实体标识，未持久化时为None
        """
        self.id = id

    @property
    def is_transient(self) -> bool:
        """实体是否尚未持久化"""
        return self.id is None

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Entity) or type(self) is not type(other):
            return False
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        if self.id is None:
            return id(self)
        return hash((type(self).__name__, self.id))
