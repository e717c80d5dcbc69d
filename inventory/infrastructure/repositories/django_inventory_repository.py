"""
库存仓储的Django实现。
"""
from datetime import datetime
from typing import Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from loguru import logger

from core.domain.exceptions import InvalidQuantityException
from inventory.domain.entities import InventoryItem
from inventory.domain.repositories import InventoryRepository
from inventory.domain.services import StockPolicy
from inventory.infrastructure.models.inventory_models import (
    Inventory as InventoryModel,
    Product as ProductModel,
)


class DjangoInventoryRepository(InventoryRepository):
    """
    基于Django ORM的库存仓储实现。

    decrement_if_enough 生成单条语句：
    UPDATE inventory SET quantity = quantity - N, version = version + 1
    WHERE product_id = ? AND quantity >= N
    条件判断和扣减由数据库原子完成，不依赖任何外部锁。
    """

    def __init__(self, policy: Optional[StockPolicy] = None):
        self.policy = policy or StockPolicy()

    def get_by_product_id(self, product_id: int, for_update: bool = False) -> Optional[InventoryItem]:
        queryset = InventoryModel.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        model = queryset.filter(product_id=product_id).first()
        return self._to_domain(model) if model else None

    def save(self, item: InventoryItem) -> InventoryItem:
        return self.upsert_by_product_id(item.product_id, item.quantity)

    def upsert_by_product_id(self, product_id: int, quantity: int) -> InventoryItem:
        quantity = self.policy.adjust(quantity, 0, product_id)
        now = timezone.now()

        with transaction.atomic():
            updated = InventoryModel.objects.filter(product_id=product_id).update(
                quantity=quantity,
                version=F('version') + 1,
                last_updated=now
            )
            if not updated:
                try:
                    with transaction.atomic():
                        InventoryModel.objects.create(
                            product_id=product_id,
                            quantity=quantity,
                            version=1,
                            last_updated=now
                        )
                except IntegrityError:
                    # 并发创建，退回到更新
                    InventoryModel.objects.filter(product_id=product_id).update(
                        quantity=quantity,
                        version=F('version') + 1,
                        last_updated=now
                    )

        return self.get_by_product_id(product_id)

    def decrement_if_enough(self, product_id: int, quantity: int) -> bool:
        if quantity <= 0:
            raise InvalidQuantityException(quantity, "扣减数量必须为正数")

        updated = InventoryModel.objects.filter(
            product_id=product_id,
            quantity__gte=quantity
        ).update(
            quantity=F('quantity') - quantity,
            version=F('version') + 1,
            last_updated=timezone.now()
        )
        logger.debug(f"条件扣减库存 商品={product_id} 数量={quantity} 结果={bool(updated)}")
        return updated > 0

    def increment(self, product_id: int, quantity: int) -> bool:
        if quantity <= 0:
            raise InvalidQuantityException(quantity, "增加数量必须为正数")

        updated = InventoryModel.objects.filter(
            product_id=product_id,
            quantity__lte=self.policy.max_per_product - quantity
        ).update(
            quantity=F('quantity') + quantity,
            version=F('version') + 1,
            last_updated=timezone.now()
        )
        return updated > 0

    def cleanup_stale(self, cutoff: datetime) -> Dict[str, int]:
        orphaned, _ = InventoryModel.objects.exclude(
            product_id__in=ProductModel.objects.values('id')
        ).delete()
        stale, _ = InventoryModel.objects.filter(last_updated__lt=cutoff).delete()
        clamped = InventoryModel.objects.filter(quantity__lt=0).update(
            quantity=0,
            version=F('version') + 1,
            last_updated=timezone.now()
        )
        logger.info(f"库存清理 孤立行={orphaned} 过期行={stale} 负数归零={clamped}")
        return {"orphaned": orphaned, "stale": stale, "clamped": clamped}

    def _to_domain(self, model: InventoryModel) -> InventoryItem:
        return InventoryItem(
            product_id=model.product_id,
            quantity=model.quantity,
            version=model.version,
            last_updated=model.last_updated,
            policy=self.policy
        )
