"""
库存列表查询的Django实现。
连接商品和库存，计算每行的库存成本、销售额和预计利润。
"""
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.core.paginator import Paginator
from django.db.models import DecimalField, ExpressionWrapper, F, Q, Sum, Value
from django.db.models.functions import Coalesce

from core.domain import round_money
from inventory.domain.repositories import InventoryQuery
from inventory.infrastructure.models.inventory_models import Inventory as InventoryModel

_MONEY = DecimalField(max_digits=20, decimal_places=2)


class DjangoInventoryQuery(InventoryQuery):

    def _base_queryset(self, search: Optional[str] = None):
        queryset = InventoryModel.objects.select_related('product').order_by('product__sku')
        if search:
            queryset = queryset.filter(
                Q(product__sku__icontains=search) | Q(product__name__icontains=search)
            )
        return queryset

    @staticmethod
    def _to_row(model: InventoryModel) -> Dict[str, Any]:
        product = model.product
        stock_cost_value = round_money(model.quantity * product.cost_price)
        stock_sale_value = round_money(model.quantity * product.sale_price)
        return {
            "product_id": product.id,
            "sku": product.sku,
            "name": product.name,
            "quantity": model.quantity,
            "cost_price": round_money(product.cost_price),
            "sale_price": round_money(product.sale_price),
            "last_updated": model.last_updated.isoformat() if model.last_updated else None,
            "stock_cost_value": stock_cost_value,
            "stock_sale_value": stock_sale_value,
            "projected_profit": stock_sale_value - stock_cost_value,
        }

    def by_product_id(self, product_id: int) -> Optional[Dict[str, Any]]:
        model = self._base_queryset().filter(product_id=product_id).first()
        return self._to_row(model) if model else None

    def paginate(self, search: str, per_page: int, page: int) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        paginator = Paginator(self._base_queryset(search), per_page)
        total = paginator.count
        last_page = max(1, math.ceil(total / per_page))
        # 超出范围的页码返回空列表，不报错
        if 1 <= page <= paginator.num_pages:
            rows = [self._to_row(model) for model in paginator.page(page).object_list]
        else:
            rows = []
        meta = {
            "current_page": page,
            "per_page": per_page,
            "total": total,
            "last_page": last_page,
        }
        return rows, meta

    def list(self, search: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        queryset = self._base_queryset(search)
        if limit is not None:
            queryset = queryset[:limit]
        return [self._to_row(model) for model in queryset]

    def totals(self, search: str) -> Dict[str, Any]:
        zero = Value(Decimal("0.00"), output_field=_MONEY)
        aggregates = self._base_queryset(search).order_by().aggregate(
            total_cost=Coalesce(
                Sum(ExpressionWrapper(F('quantity') * F('product__cost_price'), output_field=_MONEY)),
                zero
            ),
            total_sale=Coalesce(
                Sum(ExpressionWrapper(F('quantity') * F('product__sale_price'), output_field=_MONEY)),
                zero
            ),
        )
        total_cost = round_money(aggregates["total_cost"])
        total_sale = round_money(aggregates["total_sale"])
        return {
            "total_cost": total_cost,
            "total_sale": total_sale,
            "projected_profit": total_sale - total_cost,
        }
