import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from job_scheduler.api import schemas
from job_scheduler.store import JobStore, StoreError

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

router = APIRouter()


def get_store(request: Request) -> JobStore:
    return request.app.state.store


def _store_failure(e: StoreError) -> HTTPException:
    logger.error("Store error: %s", e)
    return HTTPException(status_code=500, detail=str(e))


@router.get("/health")
def health():
    return {"status": "ok"}

# --- JOBS ---

@router.get("/api/v1/jobs", response_model=List[schemas.JobOut])
def list_jobs(store: JobStore = Depends(get_store)):
    try:
        return store.list_jobs()
    except StoreError as e:
        raise _store_failure(e)

@router.post("/api/v1/jobs", response_model=schemas.JobOut, status_code=201)
def create_job(job_in: schemas.JobCreate, store: JobStore = Depends(get_store)):
    try:
        return store.create_job(job_in.name, job_in.command)
    except StoreError as e:
        raise _store_failure(e)

# --- CONFIG / STATS ---

@router.get("/api/v1/config", response_model=schemas.ConfigOut)
def get_config(store: JobStore = Depends(get_store)):
    try:
        return schemas.ConfigOut(max_concurrent_jobs=store.get_max_concurrent_jobs())
    except StoreError as e:
        raise _store_failure(e)

@router.put("/api/v1/config", response_model=schemas.ConfigOut)
def update_config(config_in: schemas.ConfigIn, store: JobStore = Depends(get_store)):
    try:
        store.update_max_concurrent_jobs(config_in.max_concurrent_jobs)
    except StoreError as e:
        raise _store_failure(e)
    return schemas.ConfigOut(max_concurrent_jobs=config_in.max_concurrent_jobs)

@router.get("/api/v1/stats", response_model=schemas.StatsOut)
def get_stats(store: JobStore = Depends(get_store)):
    try:
        stats = store.get_job_stats()
    except StoreError as e:
        raise _store_failure(e)
    return schemas.StatsOut(
        queued_count=stats["queued"],
        running_count=stats["running"],
        completed_count=stats["completed"],
        failed_count=stats["failed"],
        total_count=stats["total"],
    )


def create_app(store: JobStore) -> FastAPI:
    app = FastAPI(title="Job Scheduler API")
    app.state.store = store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router)
    # after the API routes so they take precedence
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="dashboard")
    return app
