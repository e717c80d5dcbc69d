"""
领域异常模块。
包含领域模型中使用的各种异常类。
"""
from typing import Any, Optional


class DomainException(Exception):
    """
    领域异常基类。
    所有领域模型中的异常都应继承自此类。
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidEntityStateException(DomainException):
    """
    实体状态无效异常。
    当实体的状态不允许执行某个迁移时抛出。
    """

    def __init__(self, entity_name: str, reason: str):
        message = f"{entity_name}处于无效状态: {reason}"
        super().__init__(message)
        self.entity_name = entity_name
        self.reason = reason


class EntityNotFoundException(DomainException):
    """
    实体未找到异常。
    """

    def __init__(self, entity_name: str, entity_id: Any):
        message = f"无法找到{entity_name}: ID={entity_id}"
        super().__init__(message)
        self.entity_name = entity_name
        self.entity_id = entity_id


class BusinessRuleViolationException(DomainException):
    """
    业务规则违反异常。
    """

    def __init__(self, rule_name: str, message: str):
        full_message = f"违反业务规则 '{rule_name}': {message}"
        super().__init__(full_message)
        self.rule_name = rule_name


class InsufficientStockException(DomainException):
    """
    库存不足异常。
    当商品库存不足以满足扣减请求时抛出，属于业务失败，重试无法成功。
    """

    def __init__(self, product_id: Any, requested: int, available: Optional[int] = None):
        if available is None:
            message = f"商品(ID={product_id})库存不足，请求:{requested}"
        else:
            message = f"商品(ID={product_id})库存不足，请求:{requested}，可用:{available}"
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidQuantityException(DomainException):
    """
    数量无效异常。
    当库存数量或变化量为负数时抛出。
    """

    def __init__(self, quantity: Any, reason: str = "数量不能为负数"):
        super().__init__(f"无效数量 {quantity}: {reason}")
        self.quantity = quantity
        self.reason = reason


class ValidationException(DomainException):
    """
    数据验证异常。
    当数据验证失败时抛出，不可重试。
    """

    def __init__(self, field_name: Optional[str] = None, message: str = "数据验证失败"):
        if field_name:
            full_message = f"字段'{field_name}'验证失败: {message}"
        else:
            full_message = message
        super().__init__(full_message)
        self.field_name = field_name


class LockAcquisitionException(DomainException):
    """
    锁获取异常。
    在等待超时内无法获取资源锁时抛出，可重试。
    """

    def __init__(self, resource_name: str):
        super().__init__(f"could not acquire lock: {resource_name}")
        self.resource_name = resource_name
