"""Parse-then-persist pipeline for one CSV file."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from csvusers.database import DatabaseService
from csvusers.ingestion.csv_parse import MB, parse_csv_file
from csvusers.ratelimit import SlidingWindowRateLimiter
from csvusers.users.schema import ensure_users_schema
from csvusers.users.store import DEFAULT_CHUNK_SIZE, ProgressCallback, insert_users

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    total_records: int
    inserted_records: int
    elapsed_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "insertedRecords": self.inserted_records,
            "processingTimeMs": self.elapsed_ms,
        }


def process_csv(
    service: DatabaseService,
    file_path: str | Path,
    max_file_size_mb: int = 100,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    limiter: SlidingWindowRateLimiter | None = None,
    client: str = "local",
    on_progress: ProgressCallback | None = None,
) -> ProcessResult:
    """Parse ``file_path`` fully, then insert every record in one transaction.

    Parse errors are raised before anything is written. Persistence errors
    leave the table unchanged.
    """
    if limiter is not None:
        limiter.acquire(client)

    start = time.perf_counter()
    logger.info("Starting CSV processing of %s", file_path)

    records = parse_csv_file(file_path, max_file_size_mb * MB)
    ensure_users_schema(service)
    inserted = insert_users(service, records, chunk_size, on_progress)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        "Processed %s: %d parsed, %d inserted in %d ms",
        file_path,
        len(records),
        inserted,
        elapsed_ms,
    )
    return ProcessResult(
        total_records=len(records), inserted_records=inserted, elapsed_ms=elapsed_ms
    )
