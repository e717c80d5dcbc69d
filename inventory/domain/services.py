"""
库存领域服务。
包含库存数量的业务规则。
"""
from typing import Optional

from core.domain.exceptions import (
    BusinessRuleViolationException,
    InsufficientStockException,
    InvalidQuantityException,
)
from inventory.domain import config


class StockPolicy:
    """
    库存策略。

    纯函数式的数量规则：库存永不为负，变化量不能为负，
    单个商品库存不超过max_per_product。无I/O，结果只取决于输入。
    """

    def __init__(self, max_per_product: Optional[int] = None):
        """
        Args:
            max_per_product: 单个商品库存上限，默认读取STOCK_MAX_PER_PRODUCT配置
        """
        self.max_per_product = (
            max_per_product if max_per_product is not None else int(config.STOCK_MAX_PER_PRODUCT)
        )

    def increase(self, current: int, delta: int, product_id=None) -> int:
        """
        增加库存。

        Raises:
            InvalidQuantityException: current或delta为负数
            BusinessRuleViolationException: 结果超过库存上限
        """
        current = self._normalize(current)
        delta = self._normalize_delta(delta)

        new_quantity = current + delta
        if new_quantity > self.max_per_product:
            raise BusinessRuleViolationException(
                "stock_max_per_product",
                f"商品(ID={product_id})库存 {new_quantity} 超过上限 {self.max_per_product}"
            )
        return new_quantity

    def decrease(self, current: int, delta: int, product_id=None) -> int:
        """
        减少库存。

        Raises:
            InvalidQuantityException: current或delta为负数
            InsufficientStockException: delta大于current
        """
        current = self._normalize(current)
        delta = self._normalize_delta(delta)

        if delta > current:
            raise InsufficientStockException(product_id, delta, current)
        return current - delta

    def adjust(self, current: int, delta: int = 0, product_id=None) -> int:
        """
        按有符号变化量调整库存，正数增加，负数减少，0只校验current。
        """
        if delta == 0:
            return self._normalize(current)
        if delta > 0:
            return self.increase(current, delta, product_id)
        return self.decrease(current, -delta, product_id)

    @staticmethod
    def _normalize(quantity: int) -> int:
        if quantity < 0:
            raise InvalidQuantityException(quantity, "当前库存不能为负数")
        return int(quantity)

    @staticmethod
    def _normalize_delta(delta: int) -> int:
        if delta < 0:
            raise InvalidQuantityException(delta, "变化量不能为负数")
        return int(delta)
