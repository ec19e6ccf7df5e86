"""Command-line entry point.

Usage:
    csvusers --db-url sqlite:///users.db process --file data/users.csv [--chunk-size 1000]
    csvusers users --limit 10 --offset 0
    csvusers report [--text]
    csvusers clear
    csvusers migrate up|down|reset|check
"""

import argparse
import json
import logging
import sys

from csvusers.config import Settings
from csvusers.database import DatabaseService, create_service
from csvusers.errors import CsvUsersError
from csvusers.pipeline import process_csv
from csvusers.users import (
    clear_users,
    drop_users_table,
    ensure_users_schema,
    format_age_report,
    get_age_statistics,
    get_user,
    list_users,
    reset_users_schema,
    users_table_exists,
)

logger = logging.getLogger(__name__)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csvusers", description="Load users from CSV into the database and report on them"
    )
    parser.add_argument("--db-url", help="Database URL (sqlite:/// or postgresql://)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("process", help="Parse a CSV file and insert its users")
    p.add_argument("--file", help="Path to CSV file (default: $CSV_FILE_PATH)")
    p.add_argument("--chunk-size", type=int, help="Rows per INSERT statement")
    p.add_argument("--max-file-size-mb", type=int, help="Reject files larger than this")

    p = sub.add_parser("users", help="List users")
    p.add_argument("--limit", type=int, default=10)
    p.add_argument("--offset", type=int, default=0)

    p = sub.add_parser("user", help="Show one user")
    p.add_argument("id", type=int)

    p = sub.add_parser("report", help="Age distribution report")
    p.add_argument("--text", action="store_true", help="Print the console table instead of JSON")

    sub.add_parser("clear", help="Delete all users")

    p = sub.add_parser("migrate", help="Manage the users table")
    p.add_argument("action", choices=["up", "down", "reset", "check"])

    sub.add_parser("health", help="Check the database connection")
    return parser


def run_command(args: argparse.Namespace, service: DatabaseService, settings: Settings) -> int:
    if args.command == "migrate":
        if args.action == "up":
            ensure_users_schema(service)
        elif args.action == "down":
            drop_users_table(service)
        elif args.action == "reset":
            reset_users_schema(service)
        else:
            print(f"Tables exist: {users_table_exists(service)}")
            return 0
        logger.info("Migration %r completed", args.action)
        return 0

    if args.command == "health":
        ok = service.ping()
        _print_json({"status": "OK" if ok else "UNAVAILABLE"})
        return 0 if ok else 1

    ensure_users_schema(service)

    if args.command == "process":
        result = process_csv(
            service,
            args.file or settings.csv_file_path,
            max_file_size_mb=args.max_file_size_mb or settings.max_file_size_mb,
            chunk_size=args.chunk_size or settings.chunk_size,
        )
        _print_json({"success": True, "data": result.to_dict()})
        print(format_age_report(get_age_statistics(service)))
    elif args.command == "users":
        page = list_users(service, args.limit, args.offset)
        _print_json({"success": True, "data": {"users": page.records, "total": page.total}})
    elif args.command == "user":
        user = get_user(service, args.id)
        if user is None:
            _print_json({"success": False, "error": {"message": f"User {args.id} not found"}})
            return 1
        _print_json({"success": True, "data": user})
    elif args.command == "report":
        stats = get_age_statistics(service)
        if args.text:
            print(format_age_report(stats))
        else:
            _print_json({"success": True, "data": stats.to_dict()})
    elif args.command == "clear":
        deleted = clear_users(service)
        _print_json({"success": True, "data": {"deletedCount": deleted}})
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except CsvUsersError as e:
        print(json.dumps({"success": False, "error": e.to_dict()}), file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    service = create_service(args.db_url or settings.db_url, settings.pool_size)
    service.connect()
    try:
        return run_command(args, service, settings)
    except CsvUsersError as e:
        logger.error("%s failed: %s", args.command, e)
        print(json.dumps({"success": False, "error": e.to_dict()}), file=sys.stderr)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
