"""Store operations used by the scheduler, its workers and the API.

Every method opens its own session and commits on its own; nothing here
spans more than one statement transactionally.
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from job_scheduler import crud
from job_scheduler.models import MAX_CONCURRENT_JOBS_KEY, JobStatus

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A store read or write failed."""


class JobStore:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action):
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"failed to {action}: {e}") from e
        finally:
            session.close()

    # --- scheduler / worker operations ---

    def get_max_concurrent_jobs(self) -> int:
        with self._session("get max_concurrent_jobs config") as db:
            value = crud.get_config_value(db, MAX_CONCURRENT_JOBS_KEY)
        if value is None:
            raise StoreError("failed to get max_concurrent_jobs config: no such key")
        try:
            return int(value.strip())
        except ValueError as e:
            raise StoreError(f"failed to parse max_concurrent_jobs value {value!r}") from e

    def get_running_job_count(self) -> int:
        with self._session("count running jobs") as db:
            return crud.count_running_jobs(db)

    def get_queued_jobs(self):
        with self._session("query queued jobs") as db:
            return crud.get_queued_jobs(db)

    def update_job_status(self, job_id, status: JobStatus):
        with self._session("update job status") as db:
            crud.update_job_status(db, job_id, status)

    def update_job_last_run(self, job_id):
        with self._session("update job last_run") as db:
            crud.update_job_last_run(db, job_id)

    # --- API operations ---

    def create_job(self, name: str, command: str):
        with self._session("create job") as db:
            job = crud.create_job(db, name, command)
        logger.info("Created new job: %s (ID: %s)", job.name, job.id)
        return job

    def get_job(self, job_id):
        with self._session("get job") as db:
            return crud.get_job(db, job_id)

    def list_jobs(self):
        with self._session("query all jobs") as db:
            return crud.list_jobs(db)

    def update_max_concurrent_jobs(self, value: int):
        with self._session("update max_concurrent_jobs") as db:
            crud.set_config_value(db, MAX_CONCURRENT_JOBS_KEY, str(value))
        logger.info("Updated max_concurrent_jobs to %d", value)

    def get_job_stats(self):
        with self._session("get job stats") as db:
            return crud.job_stats(db)
