"""
销售领域服务。
"""
from decimal import Decimal
from typing import Any, Iterable, Tuple

from core.domain import ValidationException, round_money


def _field(item: Any, name: str, default: Any = 0) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


class SaleValidator:
    """
    销售明细校验器。
    遇到第一个不合法的明细立即失败。
    """

    def validate(self, items: Iterable[Any]) -> None:
        """
        Args:
            items: SaleItem或包含product_id/quantity/unit_price/unit_cost的字典

        Raises:
            ValidationException: 没有明细，或某项product_id<=0、quantity<=0、
                unit_price<0、unit_cost<0
        """
        count = 0
        for item in items:
            count += 1
            product_id = int(_field(item, "product_id") or 0)
            quantity = int(_field(item, "quantity") or 0)
            unit_price = Decimal(str(_field(item, "unit_price") or 0))
            unit_cost = Decimal(str(_field(item, "unit_cost") or 0))

            if product_id <= 0:
                raise ValidationException("product_id", "明细缺少有效的商品ID")
            if quantity <= 0:
                raise ValidationException("quantity", f"商品 {product_id} 的数量必须大于0")
            if unit_price < 0:
                raise ValidationException("unit_price", f"商品 {product_id} 的单价不能为负数")
            if unit_cost < 0:
                raise ValidationException("unit_cost", f"商品 {product_id} 的成本不能为负数")

        if count == 0:
            raise ValidationException("items", "销售至少需要一个明细")


class MarginCalculator:
    """
    毛利计算。
    """

    def totals(self, items: Iterable[Any]) -> Tuple[Decimal, Decimal, Decimal]:
        """
        Returns:
            (销售总额, 总成本, 毛利)，均保留2位小数
        """
        total_amount = Decimal("0")
        total_cost = Decimal("0")
        for item in items:
            quantity = int(_field(item, "quantity"))
            total_amount += Decimal(str(_field(item, "unit_price"))) * quantity
            total_cost += Decimal(str(_field(item, "unit_cost"))) * quantity
        return round_money(total_amount), round_money(total_cost), self.profit(total_amount, total_cost)

    def profit(self, total_amount: Any, total_cost: Any) -> Decimal:
        return round_money(Decimal(str(total_amount)) - Decimal(str(total_cost)))

    def margin_percent(self, total_amount: Any, total_cost: Any) -> Decimal:
        """
        毛利率（百分比），销售总额<=0时为0。
        """
        total_amount = Decimal(str(total_amount))
        if total_amount <= 0:
            return round_money(0)
        return round_money((total_amount - Decimal(str(total_cost))) / total_amount * 100)
