"""Environment-driven settings for the daemon."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

DEFAULT_CHECK_INTERVAL = 10

# names accepted by both logging.basicConfig and uvicorn
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env_int(key: str, default: int, minimum: Optional[int] = None) -> int:
    try:
        value = int(os.getenv(key, "").strip())
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, "").strip())
    except ValueError:
        return default


def _env_log_level(key: str, default: str = "INFO") -> str:
    value = os.getenv(key, "").strip().upper()
    return value if value in LOG_LEVELS else default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key, "").strip().lower()
    if not value:
        return default
    return value not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    db_host: str = field(default_factory=lambda: os.getenv("DB_HOST") or "localhost")
    db_port: int = field(default_factory=lambda: _env_int("DB_PORT", 5432, minimum=1))
    db_name: str = field(default_factory=lambda: os.getenv("DB_NAME") or "scheduler_db")
    db_user: str = field(default_factory=lambda: os.getenv("DB_USER") or "postgres")
    db_password: str = field(default_factory=lambda: os.getenv("DB_PASSWORD", ""))
    database_url_override: str = field(default_factory=lambda: os.getenv("DATABASE_URL", ""))

    check_interval: int = field(
        default_factory=lambda: _env_int("CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL, minimum=1)
    )
    default_max_concurrent_jobs: int = field(
        default_factory=lambda: _env_int("DEFAULT_MAX_CONCURRENT_JOBS", 5, minimum=0)
    )
    db_connect_retries: int = field(default_factory=lambda: _env_int("DB_CONNECT_RETRIES", 5, minimum=1))
    db_connect_retry_delay: float = field(default_factory=lambda: _env_float("DB_CONNECT_RETRY_DELAY", 2.0))

    api_enabled: bool = field(default_factory=lambda: _env_bool("API_ENABLED", True))
    api_host: str = field(default_factory=lambda: os.getenv("API_HOST") or "0.0.0.0")
    api_port: int = field(default_factory=lambda: _env_int("API_PORT", 8080, minimum=1))

    log_level: str = field(default_factory=lambda: _env_log_level("LOG_LEVEL"))

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)


def load_settings(env_file: Optional[str] = ".env") -> Settings:
    """Load ``env_file`` (if present) into the environment, then read settings.

    Variables already set in the environment take precedence over the file.
    """
    if env_file:
        load_dotenv(env_file, override=False)
    return Settings()
