"""
销售仓储的Django实现。
"""
from typing import Any, Optional

from django.db import transaction

from core.domain import round_money
from sales.domain.entities import Sale, SaleItem
from sales.domain.repositories import SaleRepository
from sales.infrastructure.models.sale_models import (
    Sale as SaleModel,
    SaleItem as SaleItemModel,
)


class DjangoSaleRepository(SaleRepository):
    """
    基于Django ORM的销售仓储实现。
    """

    def get_by_id(self, id: Any, for_update: bool = False) -> Optional[Sale]:
        queryset = SaleModel.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            sale_model = queryset.get(id=id)
        except (SaleModel.DoesNotExist, ValueError, TypeError):
            return None

        item_models = SaleItemModel.objects.filter(sale_id=sale_model.id).order_by('id')
        return self._to_domain(sale_model, item_models)

    def save(self, sale: Sale) -> Sale:
        with transaction.atomic():
            if sale.id is None:
                sale_model = SaleModel.objects.create(
                    status=sale.status,
                    total_amount=round_money(sale.total_amount),
                    total_cost=round_money(sale.total_cost),
                    total_profit=round_money(sale.total_profit)
                )
                sale.id = sale_model.id
                sale.created_at = sale_model.created_at
                for item in sale.items:
                    item_model = SaleItemModel.objects.create(
                        sale=sale_model,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=round_money(item.unit_price),
                        unit_cost=round_money(item.unit_cost)
                    )
                    item.id = item_model.id
                return sale

            SaleModel.objects.filter(id=sale.id).update(
                status=sale.status,
                total_amount=round_money(sale.total_amount),
                total_cost=round_money(sale.total_cost),
                total_profit=round_money(sale.total_profit)
            )
            return sale

    @staticmethod
    def _to_domain(sale_model: SaleModel, item_models) -> Sale:
        items = [
            SaleItem(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                unit_cost=item.unit_cost
            )
            for item in item_models
        ]
        return Sale(
            id=sale_model.id,
            items=items,
            status=sale_model.status,
            total_amount=sale_model.total_amount,
            total_cost=sale_model.total_cost,
            total_profit=sale_model.total_profit,
            created_at=sale_model.created_at
        )
