"""Users: table schema, batch persistence, queries and age report."""

from csvusers.users.report import AgeBucket, AgeStatistics, format_age_report, get_age_statistics
from csvusers.users.schema import (
    drop_users_table,
    ensure_users_schema,
    reset_users_schema,
    users_table_exists,
)
from csvusers.users.store import (
    PersistableUser,
    UserPage,
    clear_users,
    delete_user,
    get_user,
    insert_users,
    list_users,
    to_persistable,
    update_user,
)

__all__ = [
    "AgeBucket",
    "AgeStatistics",
    "PersistableUser",
    "UserPage",
    "clear_users",
    "delete_user",
    "drop_users_table",
    "ensure_users_schema",
    "format_age_report",
    "get_age_statistics",
    "get_user",
    "insert_users",
    "list_users",
    "reset_users_schema",
    "to_persistable",
    "update_user",
    "users_table_exists",
]
