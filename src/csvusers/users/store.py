"""User persistence: all-or-nothing batch insert and read/maintenance queries."""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterator, NamedTuple, Sequence

from csvusers.database import DatabaseService, Row
from csvusers.errors import InvalidRequest, PersistenceFailure
from csvusers.ingestion.mapper import Record
from csvusers.users.schema import USERS_COLUMNS, USERS_SELECT_COLUMNS, USERS_TABLE

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
MAX_PAGE_SIZE = 1000

# Called after every chunk with (chunk_number, chunk_count, inserted_so_far).
ProgressCallback = Callable[[int, int, int], None]

_CORE_KEYS = ("name", "age", "address")
_JSON_COLUMNS = ("address", "additional_info")


class PersistableUser(NamedTuple):
    """Column values for one users row, in USERS_COLUMNS order."""

    name: str
    age: int
    address: str | None
    additional_info: str | None


@dataclass(frozen=True)
class UserPage:
    records: list[Row]
    total: int


def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _coerce_age(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return 0


def to_persistable(record: Record) -> PersistableUser:
    """Flatten a nested record into the four writable columns."""
    name_part = record.get("name")
    if not isinstance(name_part, dict):
        name_part = {}
    first_name = name_part.get("firstName") or ""
    last_name = name_part.get("lastName") or ""
    name = f"{first_name} {last_name}".strip()

    address = record.get("address")
    extra = {key: value for key, value in record.items() if key not in _CORE_KEYS}

    return PersistableUser(
        name=name,
        age=_coerce_age(record.get("age")),
        address=_to_json(address) if address not in (None, "") else None,
        additional_info=_to_json(extra) if extra else None,
    )


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of ``size`` items; the last may be shorter."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


def insert_users(
    service: DatabaseService,
    records: Sequence[Record],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: ProgressCallback | None = None,
) -> int:
    """Insert all records inside one transaction.

    One multi-row INSERT is issued per chunk. If any chunk fails the whole
    transaction is rolled back, so either every record is committed or none.

    Returns the total number of rows inserted.
    """
    if chunk_size < 1:
        raise InvalidRequest(f"Chunk size must be a positive integer, got {chunk_size}")
    if not records:
        logger.info("No users to insert")
        return 0

    chunk_count = math.ceil(len(records) / chunk_size)
    inserted = 0
    chunk_number = 0
    try:
        with service.transaction():
            for chunk_number, chunk in enumerate(chunked(records, chunk_size), start=1):
                rows = [tuple(to_persistable(record)) for record in chunk]
                inserted += service.batch_insert(USERS_TABLE, USERS_COLUMNS, rows)
                logger.info(
                    "Processed batch %d/%d (%d rows so far)", chunk_number, chunk_count, inserted
                )
                if on_progress is not None:
                    on_progress(chunk_number, chunk_count, inserted)
    except Exception as e:
        logger.error("Batch insert failed in chunk %d/%d, rolled back: %s", chunk_number, chunk_count, e)
        raise PersistenceFailure(str(e), chunk_number=chunk_number) from e

    logger.info("Successfully inserted %d users", inserted)
    return inserted


def _decode_row(row: Row) -> Row:
    # SQLite hands JSON columns back as text, psycopg2 already decodes JSONB.
    for column in _JSON_COLUMNS:
        value = row.get(column)
        if isinstance(value, str):
            row[column] = json.loads(value)
    return row


def _check_user_id(user_id: int) -> None:
    if user_id < 1:
        raise InvalidRequest("Invalid user ID")


def list_users(service: DatabaseService, limit: int = 10, offset: int = 0) -> UserPage:
    """Return one page of users ordered by id, plus the total row count."""
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidRequest(f"Limit must be a positive integer between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise InvalidRequest("Offset must not be negative")

    p = service.placeholder
    with service.transaction():
        count_rows = service.execute(f"SELECT COUNT(*) AS cnt FROM {USERS_TABLE}")
        rows = service.execute(
            f"SELECT {USERS_SELECT_COLUMNS} FROM {USERS_TABLE} ORDER BY id LIMIT {p} OFFSET {p}",
            (limit, offset),
        )
    return UserPage(records=[_decode_row(row) for row in rows], total=int(count_rows[0]["cnt"]))


def get_user(service: DatabaseService, user_id: int) -> Row | None:
    _check_user_id(user_id)
    p = service.placeholder
    with service.transaction():
        rows = service.execute(
            f"SELECT {USERS_SELECT_COLUMNS} FROM {USERS_TABLE} WHERE id = {p}", (user_id,)
        )
    return _decode_row(rows[0]) if rows else None


def update_user(service: DatabaseService, user_id: int, record: Record) -> Row | None:
    """Replace a user's columns with the projection of ``record``."""
    _check_user_id(user_id)
    user = to_persistable(record)
    p = service.placeholder
    with service.transaction():
        updated = service.execute_update(
            f"UPDATE {USERS_TABLE} SET name = {p}, age = {p}, address = {p}, "
            f"additional_info = {p}, updated_at = CURRENT_TIMESTAMP WHERE id = {p}",
            (*user, user_id),
        )
        if not updated:
            return None
        rows = service.execute(
            f"SELECT {USERS_SELECT_COLUMNS} FROM {USERS_TABLE} WHERE id = {p}", (user_id,)
        )
    return _decode_row(rows[0])


def delete_user(service: DatabaseService, user_id: int) -> bool:
    _check_user_id(user_id)
    with service.transaction():
        deleted = service.execute_update(
            f"DELETE FROM {USERS_TABLE} WHERE id = {service.placeholder}", (user_id,)
        )
    return deleted > 0


def clear_users(service: DatabaseService) -> int:
    """Delete every user and return how many rows were removed."""
    with service.transaction():
        deleted = service.execute_update(f"DELETE FROM {USERS_TABLE}")
    logger.info("Cleared %d users from database", deleted)
    return deleted
