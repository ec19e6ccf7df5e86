"""Users table schema."""

import logging

from csvusers.database import DatabaseService

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
USERS_COLUMNS = ["name", "age", "address", "additional_info"]
USERS_SELECT_COLUMNS = "id, name, age, address, additional_info, created_at, updated_at"

SQLITE_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id              INTEGER     PRIMARY KEY AUTOINCREMENT,
    name            TEXT        NOT NULL,
    age             INTEGER     NOT NULL,
    address         TEXT        NULL,
    additional_info TEXT        NULL,
    created_at      TIMESTAMP   DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP   DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_users_age ON users(age);
CREATE INDEX IF NOT EXISTS idx_users_name ON users(name);
CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at);
"""

POSTGRES_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id              SERIAL      PRIMARY KEY,
    name            VARCHAR     NOT NULL,
    age             INTEGER     NOT NULL,
    address         JSONB       NULL,
    additional_info JSONB       NULL,
    created_at      TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_users_age ON users(age);
CREATE INDEX IF NOT EXISTS idx_users_name ON users(name);
CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at);
CREATE INDEX IF NOT EXISTS idx_users_address_gin ON users USING GIN(address);
CREATE INDEX IF NOT EXISTS idx_users_additional_info_gin ON users USING GIN(additional_info);
"""

USERS_DDL = {
    "sqlite": SQLITE_USERS_DDL,
    "postgresql": POSTGRES_USERS_DDL,
}

TABLE_EXISTS_SQL = {
    "sqlite": "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
    "postgresql": (
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = 'public' AND table_name = %s"
    ),
}


def ensure_users_schema(service: DatabaseService) -> None:
    """Create the users table and its indexes if they don't exist."""
    try:
        ddl = USERS_DDL[service.dialect]
    except KeyError:
        raise ValueError(f"No users schema for dialect {service.dialect!r}") from None
    service.execute_ddl(ddl)


def drop_users_table(service: DatabaseService) -> None:
    service.execute_ddl(f"DROP TABLE IF EXISTS {USERS_TABLE}")
    logger.info("Dropped table %s", USERS_TABLE)


def reset_users_schema(service: DatabaseService) -> None:
    drop_users_table(service)
    ensure_users_schema(service)
    logger.info("Users schema reset")


def users_table_exists(service: DatabaseService) -> bool:
    with service.transaction():
        rows = service.execute(TABLE_EXISTS_SQL[service.dialect], (USERS_TABLE,))
    return bool(rows)
