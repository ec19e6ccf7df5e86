"""Exception hierarchy.

Every error raised on purpose by csvusers derives from CsvUsersError and
carries a ``category`` so callers can tell file problems, schema problems and
persistence problems apart without parsing messages.
"""

from typing import Any


class CsvUsersError(Exception):
    """Base class for all csvusers errors."""

    category = "Internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "type": type(self).__name__,
            "message": self.message,
        }


# File access


class FileAccessError(CsvUsersError):
    category = "FileAccess"

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class FileNotFound(FileAccessError):
    def __init__(self, path: str):
        super().__init__(f"CSV file not found at path: {path}", path)


class NotARegularFile(FileAccessError):
    def __init__(self, path: str):
        super().__init__(f"Path {path} is not a file", path)


class FileTooLarge(FileAccessError):
    def __init__(self, path: str, size: int, limit: int):
        super().__init__(
            f"File size {size} bytes exceeds limit of {limit} bytes", path
        )
        self.size = size
        self.limit = limit


class FileUnreadable(FileAccessError):
    pass


# Schema validation


class SchemaValidationError(CsvUsersError):
    category = "SchemaValidation"


class MissingRequiredHeaders(SchemaValidationError):
    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required headers: {', '.join(missing)}")
        self.missing = missing


class InvalidHeader(SchemaValidationError):
    def __init__(self, position: int):
        super().__init__(f"Header at column {position} is empty")
        self.position = position


class SchemaMismatch(SchemaValidationError):
    def __init__(self, expected: int, actual: int, line_number: int | None = None):
        where = f" on line {line_number}" if line_number is not None else ""
        super().__init__(
            f"Header count ({expected}) doesn't match value count ({actual}){where}"
        )
        self.expected = expected
        self.actual = actual
        self.line_number = line_number


class EmptyOrHeaderOnlyFile(SchemaValidationError):
    def __init__(self):
        super().__init__("CSV file must contain at least a header row and one data row")


# Persistence


class PersistenceFailure(CsvUsersError):
    """A write inside the batch transaction failed; nothing was committed."""

    category = "PersistenceFailure"

    def __init__(self, message: str, chunk_number: int | None = None):
        super().__init__(message)
        self.chunk_number = chunk_number


# Caller and environment


class InvalidRequest(CsvUsersError):
    category = "InvalidRequest"


class ConfigurationError(CsvUsersError):
    category = "Configuration"


class RateLimitExceeded(CsvUsersError):
    category = "RateLimited"

    def __init__(self, key: str, retry_after: float):
        super().__init__(
            f"Too many heavy operations for {key!r}. Retry in {retry_after:.1f}s."
        )
        self.key = key
        self.retry_after = retry_after
