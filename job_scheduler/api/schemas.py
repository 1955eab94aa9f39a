from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from job_scheduler.models import JobStatus


class JobCreate(BaseModel):
    name: str = Field(min_length=1)
    command: str = Field(min_length=1)


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    command: str
    status: JobStatus
    last_run: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ConfigIn(BaseModel):
    max_concurrent_jobs: int = Field(ge=0)


class ConfigOut(BaseModel):
    max_concurrent_jobs: int


class StatsOut(BaseModel):
    queued_count: int
    running_count: int
    completed_count: int
    failed_count: int
    total_count: int
