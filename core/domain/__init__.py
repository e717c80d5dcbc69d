"""
领域模型包。
提供实体、值对象、聚合根、领域事件和领域异常等核心概念。
"""

# 基础类
from core.domain.base import Entity
from core.domain.value_objects import ValueObject, Money, round_money
from core.domain.aggregates import AggregateRoot

# 领域事件
from core.domain.events import DomainEvent, EventBus

# 时钟
from core.domain.clock import Clock, SystemClock, ManualClock

# 领域异常
from core.domain.exceptions import (
    DomainException,
    InvalidEntityStateException,
    EntityNotFoundException,
    BusinessRuleViolationException,
    InsufficientStockException,
    InvalidQuantityException,
    ValidationException,
    LockAcquisitionException,
)

# 仓储接口
from core.domain.repositories import Repository

__all__ = [
    # 基础类
    'Entity',
    'ValueObject',
    'Money',
    'round_money',
    'AggregateRoot',

    # 领域事件
    'DomainEvent',
    'EventBus',

    # 时钟
    'Clock',
    'SystemClock',
    'ManualClock',

    # 领域异常
    'DomainException',
    'InvalidEntityStateException',
    'EntityNotFoundException',
    'BusinessRuleViolationException',
    'InsufficientStockException',
    'InvalidQuantityException',
    'ValidationException',
    'LockAcquisitionException',

    # 仓储接口
    'Repository',
]
