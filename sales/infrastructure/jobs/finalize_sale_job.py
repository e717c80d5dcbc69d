"""
销售完成任务。
"""
from typing import Any

from core.domain.exceptions import (
    EntityNotFoundException,
    InvalidEntityStateException,
    ValidationException,
)
from core.infrastructure.queue import Job
from sales.application.sale_finalization import SaleFinalizationService


class FinalizeSaleJob(Job):
    """
    异步完成销售。
    """

    queue = "sales"
    non_retryable = (ValidationException, EntityNotFoundException, InvalidEntityStateException)

    def __init__(self, finalization_service: SaleFinalizationService):
        self.finalization_service = finalization_service

    def handle(self, sale_id: Any) -> None:
        self.finalization_service.finalize(sale_id)
