"""
商品仓储的Django实现。
"""
from typing import Any, Dict, List, Optional

from inventory.domain.entities import Product
from inventory.domain.repositories import ProductRepository
from inventory.infrastructure.models.inventory_models import Product as ProductModel


class DjangoProductRepository(ProductRepository):
    """
    基于Django ORM的商品仓储实现。
    """

    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[Product]:
        queryset = ProductModel.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return self._to_domain(queryset.get(id=id))
        except (ProductModel.DoesNotExist, ValueError, TypeError):
            return None

    def get_many(self, ids: List[int]) -> Dict[int, Product]:
        if not ids:
            return {}
        return {
            model.id: self._to_domain(model)
            for model in ProductModel.objects.filter(id__in=set(ids))
        }

    def save(self, product: Product) -> Product:
        if product.id is None:
            model = ProductModel.objects.create(
                sku=product.sku,
                name=product.name,
                cost_price=product.cost_price,
                sale_price=product.sale_price
            )
            product.id = model.id
            return product

        ProductModel.objects.update_or_create(
            id=product.id,
            defaults={
                'sku': product.sku,
                'name': product.name,
                'cost_price': product.cost_price,
                'sale_price': product.sale_price,
            }
        )
        return product

    @staticmethod
    def _to_domain(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            sku=model.sku,
            name=model.name,
            cost_price=model.cost_price,
            sale_price=model.sale_price
        )
