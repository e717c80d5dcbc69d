"""
销售基础设施层数据库模型。
"""
from decimal import Decimal
from django.db import models


class Sale(models.Model):
    """销售数据库模型"""

    class StatusChoices(models.TextChoices):
        QUEUED = 'queued', '排队中'
        PROCESSING = 'processing', '处理中'
        COMPLETED = 'completed', '已完成'
        CANCELLED = 'cancelled', '已取消'

    status = models.CharField(
        max_length=20,
        choices=StatusChoices.choices,
        default=StatusChoices.QUEUED,
        verbose_name="状态"
    )
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), verbose_name="销售总额")
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), verbose_name="总成本")
    total_profit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), verbose_name="毛利")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="创建时间")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="更新时间")

    class Meta:
        app_label = 'sales'
        db_table = 'sales'
        verbose_name = "销售"
        verbose_name_plural = "销售"
        indexes = [
            models.Index(fields=['status'], name='idx_sale_status'),
            models.Index(fields=['created_at'], name='idx_sale_created_at'),
        ]

    def __str__(self):
        return f"销售 {self.pk} ({self.status})"


class SaleItem(models.Model):
    """
    销售明细数据库模型。
    数量和价格的合法性由领域校验器在完成销售时检查。
    """
    sale = models.ForeignKey(
        Sale,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name="销售"
    )
    product_id = models.IntegerField(verbose_name="商品ID")
    quantity = models.IntegerField(verbose_name="数量")
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, verbose_name="单价")
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, verbose_name="单位成本")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="创建时间")

    class Meta:
        app_label = 'sales'
        db_table = 'sale_items'
        verbose_name = "销售明细"
        verbose_name_plural = "销售明细"
        indexes = [
            models.Index(fields=['product_id'], name='idx_sale_item_product'),
        ]
