from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from job_scheduler import db, models
from job_scheduler.models import JobStatus
from job_scheduler.store import JobStore, StoreError


@pytest.fixture()
def engine(tmp_path):
    engine = db.make_engine(f"sqlite:///{tmp_path}/scheduler.db")
    db.init_db(engine, default_max_concurrent_jobs=5)
    yield engine
    engine.dispose()


@pytest.fixture()
def store(engine) -> JobStore:
    return JobStore(db.make_session_factory(engine))


class FakeStore:
    """In-memory store recording every status and last_run write."""

    def __init__(self, max_concurrent_jobs: int = 5) -> None:
        self.max_concurrent_jobs = max_concurrent_jobs
        self.jobs: dict[int, models.Job] = {}
        self.history: dict[int, list[JobStatus]] = {}
        self.last_run_writes: dict[int, int] = {}
        self.fail: set[str] = set()
        self.cycles = 0
        self._lock = threading.Lock()
        self._next_id = 1
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def add_job(self, name: str, command: str = "true", status: JobStatus = JobStatus.queued) -> models.Job:
        with self._lock:
            self._clock += timedelta(seconds=1)
            job = models.Job(
                id=self._next_id,
                name=name,
                command=command,
                status=status,
                created_at=self._clock,
                updated_at=self._clock,
            )
            self.jobs[job.id] = job
            self.history[job.id] = [status]
            self._next_id += 1
            return job

    def _check(self, op: str) -> None:
        if op in self.fail:
            raise StoreError(f"{op} unavailable")

    def get_max_concurrent_jobs(self) -> int:
        self.cycles += 1
        self._check("get_max_concurrent_jobs")
        return self.max_concurrent_jobs

    def get_running_job_count(self) -> int:
        self._check("get_running_job_count")
        with self._lock:
            return sum(1 for j in self.jobs.values() if j.status == JobStatus.running)

    def get_queued_jobs(self) -> list[models.Job]:
        self._check("get_queued_jobs")
        with self._lock:
            queued = [j for j in self.jobs.values() if j.status == JobStatus.queued]
        return sorted(queued, key=lambda j: (j.created_at, j.id))

    def update_job_status(self, job_id: int, status: JobStatus) -> None:
        self._check(f"update_job_status:{status.value}")
        with self._lock:
            self.jobs[job_id].status = status
            self.history[job_id].append(status)

    def update_job_last_run(self, job_id: int) -> None:
        self._check("update_job_last_run")
        with self._lock:
            self.last_run_writes[job_id] = self.last_run_writes.get(job_id, 0) + 1
            self.jobs[job_id].last_run = datetime.now(timezone.utc)


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()
