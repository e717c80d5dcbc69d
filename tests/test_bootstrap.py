from django.db import close_old_connections

from core.domain.clock import ManualClock
from core.infrastructure.cache import MemoryCacheService
from core.infrastructure.queue import SyncJobQueue, ThreadedJobQueue
from sales.domain.events import SaleFinalizedEvent
from stockflow.bootstrap import bootstrap, build_job_queue


def test_bootstrap_uses_testing_backends():
    app = bootstrap(clock=ManualClock())

    assert isinstance(app.cache_service, MemoryCacheService)
    assert isinstance(app.job_queue, SyncJobQueue)
    assert len(app.event_bus.handlers_for(SaleFinalizedEvent)) == 1
    assert app.sales.inventory_factory is app.inventory


def test_threaded_queue_backend(settings):
    settings.JOB_QUEUE_BACKEND = 'threaded'
    settings.JOB_QUEUE_WORKERS = 1

    queue = build_job_queue(ManualClock())
    try:
        assert isinstance(queue, ThreadedJobQueue)
        assert queue.attempt_hook is close_old_connections
    finally:
        queue.shutdown()


def test_sync_queue_leaves_caller_connection_alone(settings):
    settings.JOB_QUEUE_BACKEND = 'sync'
    assert build_job_queue(ManualClock()).attempt_hook is None
