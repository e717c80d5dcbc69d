from inventory.infrastructure.jobs.update_inventory_job import UpdateInventoryJob

__all__ = ['UpdateInventoryJob']
