import threading

import pytest

from core.domain.clock import SystemClock
from core.infrastructure.queue import Job, SyncJobQueue, ThreadedJobQueue


class FlakyJob(Job):
    """前failures次执行抛出异常的任务"""

    backoff = (5, 15, 60)

    def __init__(self, failures, error_type=RuntimeError):
        self.failures = failures
        self.error_type = error_type
        self.calls = []
        self.failed_calls = []

    def handle(self, value):
        self.calls.append(value)
        if len(self.calls) <= self.failures:
            raise self.error_type(f"attempt {len(self.calls)}")

    def failed(self, error, value=None):
        self.failed_calls.append((error, value))


class PermanentError(Exception):
    pass


class PickyJob(FlakyJob):
    non_retryable = (PermanentError,)


class TestJob:

    def test_backoff_sequence(self):
        job = FlakyJob(0)
        assert [job.backoff_for(n) for n in (1, 2, 3, 4)] == [5, 15, 60, 60]

    def test_on_queue(self):
        assert FlakyJob(0).on_queue("inventory").queue == "inventory"


class TestSyncJobQueue:

    def test_success_on_first_attempt(self, job_queue, clock):
        job = FlakyJob(0)
        job_queue.dispatch(job, "x")
        assert job.calls == ["x"]
        assert clock.sleeps == []

    def test_retries_with_backoff_then_succeeds(self, job_queue, clock):
        job = FlakyJob(2)
        job_queue.dispatch(job, "x")
        assert len(job.calls) == 3
        assert clock.sleeps == [5, 15]
        assert job.failed_calls == []
        assert job_queue.failed_jobs == []

    def test_exhausted_retries_call_failed_once(self, job_queue, clock):
        job = FlakyJob(10)
        job_queue.dispatch(job, "x")

        assert len(job.calls) == 3
        assert clock.sleeps == [5, 15]
        assert len(job.failed_calls) == 1
        assert str(job.failed_calls[0][0]) == "attempt 3"
        assert job.failed_calls[0][1] == "x"
        assert len(job_queue.failed_jobs) == 1
        assert job_queue.failed_jobs[0].attempts == 3

    def test_non_retryable_error_fails_immediately(self, job_queue, clock):
        job = PickyJob(10, error_type=PermanentError)
        job_queue.dispatch(job, "x")

        assert len(job.calls) == 1
        assert clock.sleeps == []
        assert len(job.failed_calls) == 1

    def test_failed_hook_errors_are_contained(self, job_queue):
        class BrokenHookJob(FlakyJob):
            def failed(self, error, value=None):
                raise RuntimeError("hook broken")

        job = BrokenHookJob(10)
        job_queue.dispatch(job, "x")
        assert len(job_queue.failed_jobs) == 1

    def test_attempt_hook_runs_around_every_attempt(self, clock):
        events = []

        class RecordingJob(FlakyJob):
            def handle(self, value):
                events.append("handle")
                super().handle(value)

        queue = SyncJobQueue(clock, attempt_hook=lambda: events.append("hook"))
        queue.dispatch(RecordingJob(1), "x")

        assert events == ["hook", "handle", "hook", "hook", "handle", "hook"]
        assert queue.failed_jobs == []

    def test_attempt_hook_error_after_attempt_is_contained(self, clock):
        calls = []

        def hook():
            calls.append(1)
            if len(calls) == 2:
                raise ConnectionError("close failed")

        queue = SyncJobQueue(clock, attempt_hook=hook)
        job = FlakyJob(0)
        queue.dispatch(job, "x")

        assert job.calls == ["x"]
        assert queue.failed_jobs == []


class TestThreadedJobQueue:

    def test_jobs_run_on_worker_threads(self):
        queue = ThreadedJobQueue(workers=2, clock=SystemClock())
        jobs = [FlakyJob(0) for _ in range(5)]
        try:
            for index, job in enumerate(jobs):
                queue.dispatch(job, index)
            assert queue.join(timeout=5)
        finally:
            queue.shutdown()

        assert [job.calls for job in jobs] == [[0], [1], [2], [3], [4]]

    def test_retries_are_scheduled(self):
        queue = ThreadedJobQueue(workers=1, clock=SystemClock())
        job = FlakyJob(1)
        job.backoff = (0.01,)
        try:
            queue.dispatch(job, "x")
            assert queue.join(timeout=5)
        finally:
            queue.shutdown()

        assert job.calls == ["x", "x"]

    def test_dispatch_after_shutdown_is_rejected(self):
        queue = ThreadedJobQueue(workers=1, clock=SystemClock())
        queue.shutdown()
        with pytest.raises(RuntimeError):
            queue.dispatch(FlakyJob(0), "x")

    def test_attempt_hook_runs_on_worker_thread(self):
        threads = []
        queue = ThreadedJobQueue(
            workers=1,
            clock=SystemClock(),
            attempt_hook=lambda: threads.append(threading.current_thread().name)
        )
        try:
            queue.dispatch(FlakyJob(0), "x")
            assert queue.join(timeout=5)
        finally:
            queue.shutdown()

        assert threads == ["job-worker-0", "job-worker-0"]


def test_sync_queue_defaults_to_system_clock():
    assert isinstance(SyncJobQueue().clock, SystemClock)
