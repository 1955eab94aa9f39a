import logging
import subprocess
from dataclasses import dataclass
from typing import Optional

from job_scheduler.models import JobStatus
from job_scheduler.store import StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    exit_code: Optional[int]
    output: bytes
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


def run_command(command: str) -> CommandResult:
    """Run ``command`` through ``/bin/sh -c`` with stderr folded into stdout."""
    try:
        proc = subprocess.run(
            command,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
        )
    except (OSError, ValueError) as e:
        return CommandResult(exit_code=None, output=b"", error=str(e))
    if proc.returncode != 0:
        return CommandResult(
            exit_code=proc.returncode,
            output=proc.stdout or b"",
            error=f"exit status {proc.returncode}",
        )
    return CommandResult(exit_code=0, output=proc.stdout or b"")


class ExecutionWorker:
    """Runs a single job's command and records its outcome in the store."""

    def __init__(self, store, runner=run_command):
        self.store = store
        self.runner = runner

    def execute(self, job):
        try:
            self.store.update_job_status(job.id, JobStatus.running)
        except StoreError as e:
            logger.error("Failed to update job %s to running: %s", job.id, e)
            return

        result = self.runner(job.command)

        # once per attempt, whatever the outcome
        try:
            self.store.update_job_last_run(job.id)
        except StoreError as e:
            logger.error("Failed to update last_run for job %s: %s", job.id, e)

        if not result.ok:
            logger.warning("Job %s failed: %s\nOutput: %s", job.name, result.error, result.text)
            self._finish(job, JobStatus.failed)
            return

        logger.info("Job %s completed successfully\nOutput: %s", job.name, result.text)
        self._finish(job, JobStatus.completed)

    def _finish(self, job, status):
        try:
            self.store.update_job_status(job.id, status)
        except StoreError as e:
            logger.error("Failed to update job %s to %s: %s", job.id, status.value, e)
