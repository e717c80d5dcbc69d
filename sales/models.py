from django.db import models

# 引用基础设施层的模型
from sales.infrastructure.models.sale_models import (
    Sale,
    SaleItem,
)
