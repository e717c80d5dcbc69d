"""
值对象模块。
包含ValueObject基类和常用值对象实现，如Money。
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

TWO_PLACES = Decimal("0.01")


class ValueObject:
    """
    值对象基类。
    值对象是通过其属性值而非标识定义的不可变对象。
    """

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.__dict__.items())))


def round_money(amount: Any) -> Decimal:
    """
    把金额四舍五入到2位小数（半数进位）。

    Args:
        amount: 金额数值，可为int/float/str/Decimal

    Returns:
        保留2位小数的Decimal
    """
    if isinstance(amount, float):
        amount = repr(amount)
    if isinstance(amount, str):
        amount = amount.replace(",", ".")
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class Money(ValueObject):
    """
    金额值对象，始终保留2位小数。
    """

    def __init__(self, amount: Any = 0):
        self.amount = round_money(amount)

    @classmethod
    def zero(cls) -> 'Money':
        return cls(0)

    def __add__(self, other: 'Money') -> 'Money':
        return Money(self.amount + other.amount)

    def __sub__(self, other: 'Money') -> 'Money':
        return Money(self.amount - other.amount)

    def __mul__(self, multiplier: Any) -> 'Money':
        """
        金额乘法运算，结果重新舍入到2位小数。
        """
        return Money(self.amount * Decimal(multiplier))

    def __lt__(self, other: 'Money') -> bool:
        return self.amount < other.amount

    def is_negative(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        return f"{self.amount:.2f}"

    def __repr__(self) -> str:
        return f"Money('{self.amount}')"

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": str(self.amount)}
