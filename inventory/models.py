from django.db import models

# 引用基础设施层的模型
from inventory.infrastructure.models.inventory_models import (
    Product,
    Inventory,
)
