"""
库存基础设施层数据库模型。
定义与库存领域相关的Django ORM模型。
"""
from decimal import Decimal
from django.db import models
from django.utils import timezone


class Product(models.Model):
    """商品数据库模型"""
    sku = models.CharField(max_length=64, unique=True, verbose_name="SKU")
    name = models.CharField(max_length=200, verbose_name="商品名称")
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name="成本价"
    )
    sale_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        verbose_name="销售价"
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="创建时间")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="更新时间")

    class Meta:
        app_label = 'inventory'
        db_table = 'products'
        verbose_name = "商品"
        verbose_name_plural = "商品"
        indexes = [
            models.Index(fields=['name'], name='idx_product_name'),
        ]

    def __str__(self):
        return f"{self.sku} {self.name}"


class Inventory(models.Model):
    """
    库存数据库模型。
    每个商品一行，quantity只通过条件更新修改，version在每次写入时递增。
    """
    product = models.OneToOneField(
        Product,
        on_delete=models.CASCADE,
        related_name='inventory',
        verbose_name="商品"
    )
    quantity = models.PositiveIntegerField(default=0, verbose_name="库存数量")
    version = models.PositiveIntegerField(default=0, verbose_name="版本号")
    last_updated = models.DateTimeField(default=timezone.now, verbose_name="最后更新时间")

    class Meta:
        app_label = 'inventory'
        db_table = 'inventory'
        verbose_name = "库存"
        verbose_name_plural = "库存"

    def __str__(self):
        return f"商品 {self.product_id}: {self.quantity}"
