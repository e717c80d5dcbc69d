"""
库存领域包。
"""
from inventory.domain.services import StockPolicy
from inventory.domain.entities import InventoryItem, Product
from inventory.domain.repositories import (
    InventoryRepository,
    ProductRepository,
    InventoryQuery,
)

__all__ = [
    'StockPolicy',
    'InventoryItem',
    'Product',
    'InventoryRepository',
    'ProductRepository',
    'InventoryQuery',
]
