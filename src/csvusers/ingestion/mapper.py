"""Header-to-nested-record mapping."""

import math
import re
from typing import Any

from csvusers.errors import InvalidHeader, MissingRequiredHeaders, SchemaMismatch

Record = dict[str, Any]

REQUIRED_HEADERS = ("name.firstName", "name.lastName", "age")
NUMERIC_SUFFIXES = (".age", ".id", ".count")

_INT_LITERAL = re.compile(r"[+-]?\d+")
_FLOAT_LITERAL = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")


def validate_headers(headers: list[str]) -> None:
    """Check the header row once per file."""
    for position, header in enumerate(headers, start=1):
        if not header.strip():
            raise InvalidHeader(position)
    missing = [h for h in REQUIRED_HEADERS if h not in headers]
    if missing:
        raise MissingRequiredHeaders(missing)


def is_numeric_header(header: str) -> bool:
    return header == "age" or header.lower().endswith(NUMERIC_SUFFIXES)


def parse_number(value: str) -> int | float | str | None:
    """Coerce a field to a number; keep the original string if it isn't one."""
    stripped = value.strip()
    if not stripped:
        return None
    if _INT_LITERAL.fullmatch(stripped):
        return int(stripped)
    if _FLOAT_LITERAL.fullmatch(stripped):
        number = float(stripped)
        if math.isfinite(number):
            return number
    return value


def set_nested(record: Record, path: str, value: Any) -> None:
    """Assign ``value`` at a dot-path, replacing scalars that are in the way."""
    keys = path.split(".")
    node = record
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[keys[-1]] = value


def map_row(headers: list[str], values: list[str], line_number: int | None = None) -> Record:
    """Build one nested record from a header row and a value row."""
    if len(headers) != len(values):
        raise SchemaMismatch(len(headers), len(values), line_number)

    record: Record = {}
    for header, raw in zip(headers, values):
        value: Any = raw
        if is_numeric_header(header):
            value = parse_number(raw)
        set_nested(record, header, value)
    return record
