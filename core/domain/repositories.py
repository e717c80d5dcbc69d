"""
仓储接口模块。
领域实体与持久化模型之间的边界，仓储只接收和返回领域实体。
"""
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from core.domain.exceptions import EntityNotFoundException

T = TypeVar('T')


class Repository(Generic[T], ABC):
    """
    仓储接口。

    for_update=True 时在当前事务中锁定读取的行，直到事务结束，
    不在事务中调用时不提供任何锁定保证。
    """

    #: 实体名称，用于未找到时的异常信息
    entity_name: str = "实体"

    @abstractmethod
    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[T]:
        pass

    @abstractmethod
    def save(self, entity: T) -> T:
        """
        保存实体，新建实体会被分配ID。
        """
        pass

    def require(self, id: Any, for_update: bool = False) -> T:
        """
        获取实体，不存在时抛出异常。

        Raises:
            EntityNotFoundException: 实体不存在
        """
        entity = self.get_by_id(id, for_update=for_update)
        if entity is None:
            raise EntityNotFoundException(self.entity_name, id)
        return entity
