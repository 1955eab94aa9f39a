"""Tick-driven dispatch loop.

Each cycle reads the concurrency ceiling and the running count from the
store, then launches workers for as many of the oldest queued jobs as
there are free slots. The slot count is a snapshot: API inserts and
worker status writes landing between the read and the launch can push
the number of running jobs past the ceiling for a while.
"""
import logging
import threading
import time

from job_scheduler.config import DEFAULT_CHECK_INTERVAL
from job_scheduler.store import StoreError
from job_scheduler.worker import ExecutionWorker

logger = logging.getLogger(__name__)


class Scheduler:
    def __init__(self, store, check_interval=DEFAULT_CHECK_INTERVAL, worker=None):
        self.store = store
        self.check_interval = check_interval
        self.worker = worker or ExecutionWorker(store)
        self._active = set()
        self._lock = threading.Lock()

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def run(self, stop_event: threading.Event):
        """Dispatch now and then every ``check_interval`` seconds until
        ``stop_event`` is set, then wait for in-flight jobs and return."""
        logger.info("Scheduler is running, checking for queued jobs every %ss...", self.check_interval)

        next_tick = time.monotonic()
        try:
            while True:
                try:
                    self.dispatch_cycle()
                except Exception:
                    logger.exception("Scheduler error")
                next_tick += self.check_interval
                now = time.monotonic()
                if next_tick < now:
                    # a slow cycle skips the ticks it missed
                    next_tick = now + self.check_interval
                if stop_event.wait(next_tick - now):
                    break
        finally:
            logger.info("Scheduler stopping, waiting for active jobs to complete...")
            self.shutdown()

    def shutdown(self):
        """Block until every launched worker has returned."""
        while True:
            with self._lock:
                pending = list(self._active)
            if not pending:
                break
            for thread in pending:
                thread.join()
        logger.info("All active jobs completed")

    def dispatch_cycle(self):
        """Run one cycle and return the jobs it launched."""
        try:
            max_concurrent = self.store.get_max_concurrent_jobs()
        except StoreError as e:
            logger.error("Error fetching max_concurrent_jobs config: %s", e)
            return []

        try:
            running_count = self.store.get_running_job_count()
        except StoreError as e:
            logger.error("Error counting running jobs: %s", e)
            return []

        available = max_concurrent - running_count
        logger.info("Max concurrent: %d, Running: %d, Available slots: %d",
                    max_concurrent, running_count, available)
        if available <= 0:
            logger.info("No available slots, waiting for running jobs to complete")
            return []

        try:
            jobs = self.store.get_queued_jobs()
        except StoreError as e:
            logger.error("Error fetching queued jobs: %s", e)
            return []

        if not jobs:
            logger.info("No queued jobs found")
            return []

        logger.info("Found %d queued job(s)", len(jobs))
        selected = list(jobs[:available])
        if len(jobs) > available:
            logger.info("Limiting execution to %d job(s) due to concurrent limit", available)

        launched = []
        for job in selected:
            try:
                self._launch(job)
            except RuntimeError as e:
                logger.error("Could not start worker for job %s, leaving %d job(s) queued: %s",
                             job.id, len(selected) - len(launched), e)
                break
            launched.append(job)

        logger.info("Spawned %d job(s), continuing to next check cycle", len(launched))
        return launched

    def _launch(self, job):
        thread = threading.Thread(target=self._run_job, args=(job,), name=f"job-{job.id}")
        with self._lock:
            self._active.add(thread)
        try:
            thread.start()
        except RuntimeError:
            with self._lock:
                self._active.discard(thread)
            raise

    def _run_job(self, job):
        try:
            logger.info("Executing job: %s (ID: %s)", job.name, job.id)
            self.worker.execute(job)
        except Exception:
            logger.exception("Unhandled error while executing job %s", job.id)
        finally:
            with self._lock:
                self._active.discard(threading.current_thread())
