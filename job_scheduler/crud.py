from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from job_scheduler import models
from job_scheduler.models import JobStatus, utcnow


def create_job(db: Session, name: str, command: str):
    job = models.Job(name=name, command=command, status=JobStatus.queued)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_job(db: Session, job_id):
    return db.get(models.Job, job_id)


def list_jobs(db: Session):
    return db.query(models.Job).order_by(models.Job.created_at.desc(), models.Job.id.desc()).all()


def get_queued_jobs(db: Session):
    return (
        db.query(models.Job)
        .filter(models.Job.status == JobStatus.queued)
        .order_by(models.Job.created_at.asc(), models.Job.id.asc())
        .all()
    )


def count_running_jobs(db: Session) -> int:
    return db.scalar(
        select(func.count()).select_from(models.Job).where(models.Job.status == JobStatus.running)
    )


def update_job_status(db: Session, job_id, status: JobStatus):
    db.execute(
        update(models.Job)
        .where(models.Job.id == job_id)
        .values(status=status, updated_at=utcnow())
    )
    db.commit()


def update_job_last_run(db: Session, job_id):
    now = utcnow()
    db.execute(
        update(models.Job)
        .where(models.Job.id == job_id)
        .values(last_run=now, updated_at=now)
    )
    db.commit()


def get_config_value(db: Session, key: str):
    row = db.get(models.SchedulerConfig, key)
    return None if row is None else row.value


def set_config_value(db: Session, key: str, value: str):
    row = db.get(models.SchedulerConfig, key)
    if row is None:
        row = models.SchedulerConfig(key=key, value=value)
        db.add(row)
    else:
        row.value = value
        row.updated_at = utcnow()
    db.commit()


def job_stats(db: Session):
    row = db.execute(
        select(
            func.count(models.Job.id),
            func.sum(case((models.Job.status == JobStatus.queued, 1), else_=0)),
            func.sum(case((models.Job.status == JobStatus.running, 1), else_=0)),
            func.sum(case((models.Job.status == JobStatus.completed, 1), else_=0)),
            func.sum(case((models.Job.status == JobStatus.failed, 1), else_=0)),
        )
    ).one()
    total, queued, running, completed, failed = (int(v or 0) for v in row)
    return {
        "total": total,
        "queued": queued,
        "running": running,
        "completed": completed,
        "failed": failed,
    }
