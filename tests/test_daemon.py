from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from job_scheduler import daemon, db
from job_scheduler.config import load_settings


def test_connect_store_creates_schema(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}/daemon.db")
    monkeypatch.setenv("DEFAULT_MAX_CONCURRENT_JOBS", "3")

    store = daemon.connect_store(load_settings(env_file=None))

    assert store.get_max_concurrent_jobs() == 3
    assert store.get_queued_jobs() == []


def test_wait_for_database_gives_up(tmp_path) -> None:
    engine = db.make_engine(f"sqlite:///{tmp_path}/missing/dir/jobs.db")

    with pytest.raises(OperationalError):
        db.wait_for_database(engine, retries=2, delay=0)


def test_main_exits_when_database_is_unreachable(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}/missing/dir/jobs.db")
    monkeypatch.setenv("DB_CONNECT_RETRIES", "1")
    monkeypatch.setenv("API_ENABLED", "false")
    monkeypatch.setattr(daemon, "load_settings", lambda: load_settings(env_file=None))

    assert daemon.main() == 1
