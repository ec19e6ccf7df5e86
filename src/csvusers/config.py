"""Settings loaded from environment variables."""

import os
from dataclasses import dataclass
from typing import Mapping

from csvusers.errors import ConfigurationError

DEFAULT_DB_URL = "sqlite:///users.db"
DEFAULT_CSV_FILE_PATH = "./data/users.csv"


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _database_url(environ: Mapping[str, str]) -> str:
    url = environ.get("DATABASE_URL")
    if url:
        return url
    host = environ.get("DB_HOST")
    if not host:
        return DEFAULT_DB_URL
    user = environ.get("DB_USER", "postgres")
    password = environ.get("DB_PASSWORD", "postgres")
    port = environ.get("DB_PORT", "5432")
    name = environ.get("DB_NAME", "csv_converter")
    return f"postgresql://{user}:{password}@{host}:{port}/{name}"


@dataclass(frozen=True)
class Settings:
    db_url: str = DEFAULT_DB_URL
    csv_file_path: str = DEFAULT_CSV_FILE_PATH
    max_file_size_mb: int = 100
    chunk_size: int = 1000
    pool_size: int = 4
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            db_url=_database_url(env),
            csv_file_path=env.get("CSV_FILE_PATH") or DEFAULT_CSV_FILE_PATH,
            max_file_size_mb=_positive_int(env, "MAX_FILE_SIZE_MB", 100),
            chunk_size=_positive_int(env, "BATCH_SIZE", 1000),
            pool_size=_positive_int(env, "DB_POOL_SIZE", 4),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
