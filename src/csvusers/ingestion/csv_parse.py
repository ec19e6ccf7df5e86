"""Whole-file CSV parsing into nested user records."""

import logging
import stat
from pathlib import Path

from csvusers.errors import (
    EmptyOrHeaderOnlyFile,
    FileNotFound,
    FileTooLarge,
    FileUnreadable,
    NotARegularFile,
)
from csvusers.ingestion.mapper import Record, map_row, validate_headers
from csvusers.ingestion.tokenizer import Lines, tokenize_line

logger = logging.getLogger(__name__)

MB = 1024 * 1024


def read_csv_file(file_path: str | Path, max_file_size_bytes: int) -> str:
    """Check the file and return its decoded content.

    The whole file is loaded into memory; the size ceiling is the only guard.
    """
    path = Path(file_path).resolve()
    try:
        st = path.stat()
    except FileNotFoundError:
        raise FileNotFound(str(path)) from None
    except PermissionError as e:
        raise FileUnreadable(f"Cannot access CSV file: {e}", str(path)) from e

    if not stat.S_ISREG(st.st_mode):
        raise NotARegularFile(str(path))
    if st.st_size > max_file_size_bytes:
        raise FileTooLarge(str(path), st.st_size, max_file_size_bytes)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise FileUnreadable(f"Cannot read CSV file: {e}", str(path)) from e
    try:
        # utf-8-sig drops a leading BOM so the first header matches.
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileUnreadable(f"CSV file is not valid UTF-8: {e}", str(path)) from e


def parse_csv_text(text: str) -> list[Record]:
    """Parse CSV text into records, or raise without returning any.

    The first line is always the header row, even when it is blank.
    """
    all_lines = list(Lines(text))
    if sum(1 for line in all_lines if line.strip()) < 2:
        raise EmptyOrHeaderOnlyFile()

    headers = tokenize_line(all_lines[0])
    validate_headers(headers)

    return [
        map_row(headers, tokenize_line(line), line_number)
        for line_number, line in enumerate(all_lines[1:], start=2)
        if line.strip()
    ]


def parse_csv_file(file_path: str | Path, max_file_size_bytes: int = 100 * MB) -> list[Record]:
    text = read_csv_file(file_path, max_file_size_bytes)
    records = parse_csv_text(text)
    logger.info("Successfully parsed %d users from %s", len(records), file_path)
    return records
