"""CSV-to-users loader: service factory and public API."""

from csvusers.config import Settings
from csvusers.database import DatabaseService, create_service
from csvusers.errors import CsvUsersError
from csvusers.ingestion import parse_csv_file, parse_csv_text
from csvusers.pipeline import ProcessResult, process_csv
from csvusers.ratelimit import SlidingWindowRateLimiter
from csvusers.users import (
    AgeStatistics,
    clear_users,
    ensure_users_schema,
    get_age_statistics,
    insert_users,
    list_users,
)

__all__ = [
    "AgeStatistics",
    "CsvUsersError",
    "DatabaseService",
    "ProcessResult",
    "Settings",
    "SlidingWindowRateLimiter",
    "clear_users",
    "create_service",
    "ensure_users_schema",
    "get_age_statistics",
    "insert_users",
    "list_users",
    "parse_csv_file",
    "parse_csv_text",
    "process_csv",
]
