"""SQLite implementation of DatabaseService."""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Iterator

from csvusers.database.service import DatabaseService
from csvusers.database.types import Params, Row

logger = logging.getLogger(__name__)


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection and returns it on exit.
    """

    dialect = "sqlite"
    placeholder = "?"

    def __init__(self, db_path: str, pool_size: int = 4):
        if db_path == ":memory:" and pool_size != 1:
            # Every sqlite3 connection to :memory: gets its own private database.
            logger.info("In-memory SQLite database; using a single pooled connection")
            pool_size = 1
        self._db_path = db_path
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._pool.put(conn)
        logger.info("Opened %d SQLite connections to %s", self._pool_size, self._db_path)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self) -> sqlite3.Connection:
        return self._pool.get(timeout=30)

    def _release(self, conn: sqlite3.Connection) -> None:
        self._pool.put(conn)

    def _get_conn(self) -> sqlite3.Connection:
        """Get the connection bound to the current transaction."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._acquire()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._release(conn)

    def execute(self, sql: str, params: Params | None = None) -> list[Row]:
        conn = self._get_conn()
        cursor = conn.execute(sql, params or ())
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_update(self, sql: str, params: Params | None = None) -> int:
        conn = self._get_conn()
        cursor = conn.execute(sql, params or ())
        return cursor.rowcount

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            conn.executescript(sql)
            conn.commit()
        finally:
            self._release(conn)

    def ping(self) -> bool:
        conn = self._acquire()
        try:
            conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as e:
            logger.warning("SQLite ping failed: %s", e)
            return False
        finally:
            self._release(conn)
