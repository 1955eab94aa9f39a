from datetime import datetime, timezone
import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String, Text

from job_scheduler.db import Base

MAX_CONCURRENT_JOBS_KEY = "max_concurrent_jobs"


def utcnow():
    return datetime.now(timezone.utc)


class JobStatus(enum.Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"


class Job(Base):
    __tablename__ = "jobs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    command = Column(Text, nullable=False)   # run through /bin/sh -c
    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.queued, index=True)
    last_run = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Job id={self.id} name={self.name!r} status={getattr(self.status, 'value', self.status)}>"


class SchedulerConfig(Base):
    __tablename__ = "scheduler_config"
    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)   # stored as text, parsed on read
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
