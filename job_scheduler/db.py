import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(database_url):
    """Create an engine for ``database_url``.

    SQLite connections are shared between the dispatch loop and worker
    threads, so the same-thread check is turned off for them.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def make_session_factory(engine):
    # Jobs handed to worker threads outlive the session that loaded them.
    return sessionmaker(bind=engine, expire_on_commit=False)


def wait_for_database(engine, retries=5, delay=2.0):
    """Block until the database answers ``SELECT 1``.

    Raises the last ``OperationalError`` once ``retries`` attempts have
    failed; the daemon must not start its loop without a store.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            logger.info("Connected to database successfully")
            return
        except (OperationalError, ProgrammingError) as e:
            if attempt >= retries:
                raise
            logger.warning(
                "Database not ready yet (attempt %d/%d): %s. Retrying in %ss...",
                attempt, retries, e, delay,
            )
            time.sleep(delay)


def init_db(engine, default_max_concurrent_jobs=5):
    """Create missing tables and seed the concurrency ceiling if absent."""
    from job_scheduler import models

    Base.metadata.create_all(bind=engine)
    session_factory = make_session_factory(engine)
    with session_factory() as session:
        row = session.get(models.SchedulerConfig, models.MAX_CONCURRENT_JOBS_KEY)
        if row is None:
            session.add(models.SchedulerConfig(
                key=models.MAX_CONCURRENT_JOBS_KEY,
                value=str(default_max_concurrent_jobs),
            ))
            session.commit()
            logger.info("Seeded %s=%d", models.MAX_CONCURRENT_JOBS_KEY, default_max_concurrent_jobs)
