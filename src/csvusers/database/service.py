"""Abstract DatabaseService interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from csvusers.database.types import Params, Row


class DatabaseService(ABC):
    """Database-agnostic interface for all DB operations.

    Lifecycle is explicit: construct, call connect(), hand the service to
    callers, call close(). Nothing connects on import.

    - Stateless: no mutable state beyond the connection pool
    - Thread-safe: each transaction() acquires its own connection
    - DB-agnostic: callers program against this ABC, never a concrete backend
    """

    #: Name of the SQL dialect, used to pick DDL.
    dialect: str = ""
    #: Positional parameter marker of the driver.
    placeholder: str = "?"

    @abstractmethod
    def connect(self) -> None:
        """Initialize the connection pool."""

    @abstractmethod
    def close(self) -> None:
        """Close all connections and release resources."""

    @abstractmethod
    def execute(self, sql: str, params: Params | None = None) -> list[Row]:
        """Execute a single SQL statement and return rows as dicts."""

    @abstractmethod
    def execute_update(self, sql: str, params: Params | None = None) -> int:
        """Execute a write statement and return the affected row count."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager: acquires a connection, commits on success, rolls back on error."""

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements (CREATE TABLE, CREATE INDEX, etc.)."""

    @abstractmethod
    def ping(self) -> bool:
        """Return True when a pooled connection answers a trivial query."""

    def batch_insert(self, table: str, columns: list[str], rows: list[tuple]) -> int:
        """Insert rows with one multi-row INSERT and return the inserted count.

        Every row contributes len(columns) positional parameters.
        """
        if not rows:
            return 0
        cols = ", ".join(columns)
        row_marks = "(" + ", ".join(self.placeholder for _ in columns) + ")"
        values = ", ".join(row_marks for _ in rows)
        sql = f"INSERT INTO {table} ({cols}) VALUES {values}"
        params = [value for row in rows for value in row]
        return self.execute_update(sql, params)
