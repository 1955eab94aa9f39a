"""Process entry point: wires the store, the API server and the scheduler."""
import logging
import signal
import sys
import threading

import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from job_scheduler import db
from job_scheduler.api.main import create_app
from job_scheduler.config import Settings, load_settings
from job_scheduler.scheduler import Scheduler
from job_scheduler.store import JobStore

logger = logging.getLogger(__name__)


def configure_logging(level="INFO"):
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def connect_store(settings: Settings) -> JobStore:
    """Connect to the database, create the schema and return the store.

    Raises ``SQLAlchemyError`` when the database cannot be reached.
    """
    engine = db.make_engine(settings.database_url)
    db.wait_for_database(
        engine,
        retries=settings.db_connect_retries,
        delay=settings.db_connect_retry_delay,
    )
    db.init_db(engine, default_max_concurrent_jobs=settings.default_max_concurrent_jobs)
    return JobStore(db.make_session_factory(engine))


def start_api_server(store: JobStore, settings: Settings):
    config = uvicorn.Config(
        create_app(store),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="api-server", daemon=True)
    thread.start()
    logger.info("Starting management API on http://%s:%d", settings.api_host, settings.api_port)
    return server, thread


def install_signal_handlers(stop_event: threading.Event):
    def _handle(signum, frame):
        logger.info("Received %s, stopping scheduler...", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main():
    settings = load_settings()
    configure_logging(settings.log_level)

    logger.info("Starting Job Scheduler Daemon...")
    logger.info("Check interval: %d seconds", settings.check_interval)

    try:
        store = connect_store(settings)
    except SQLAlchemyError as e:
        logger.error("Failed to connect to database: %s", e)
        return 1

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    server = None
    if settings.api_enabled:
        server, api_thread = start_api_server(store, settings)

    scheduler = Scheduler(store, check_interval=settings.check_interval)
    scheduler.run(stop_event)

    if server is not None:
        server.should_exit = True
        api_thread.join(timeout=5)

    logger.info("Job Scheduler Daemon stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
