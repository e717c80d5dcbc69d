"""
销售领域包。
"""
from sales.domain.entities import Sale, SaleItem, SaleStatus
from sales.domain.events import SaleFinalizedEvent
from sales.domain.services import MarginCalculator, SaleValidator
from sales.domain.repositories import SaleRepository

__all__ = [
    'Sale',
    'SaleItem',
    'SaleStatus',
    'SaleFinalizedEvent',
    'MarginCalculator',
    'SaleValidator',
    'SaleRepository',
]
