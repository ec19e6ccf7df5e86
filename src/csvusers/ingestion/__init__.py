"""CSV ingestion: tokenizer, record mapper and whole-file parser."""

from csvusers.ingestion.csv_parse import parse_csv_file, parse_csv_text, read_csv_file
from csvusers.ingestion.mapper import (
    REQUIRED_HEADERS,
    Record,
    map_row,
    parse_number,
    set_nested,
    validate_headers,
)
from csvusers.ingestion.tokenizer import Lines, escape_field, format_line, tokenize_line

__all__ = [
    "Lines",
    "REQUIRED_HEADERS",
    "Record",
    "escape_field",
    "format_line",
    "map_row",
    "parse_csv_file",
    "parse_csv_text",
    "parse_number",
    "read_csv_file",
    "set_nested",
    "tokenize_line",
    "validate_headers",
]
