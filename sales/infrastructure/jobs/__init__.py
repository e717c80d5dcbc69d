from sales.infrastructure.jobs.finalize_sale_job import FinalizeSaleJob

__all__ = ['FinalizeSaleJob']
