"""Line splitting and quote-aware field tokenizing."""

import re
from typing import Iterator

_LINE_BREAK = re.compile(r"\r?\n")
_NEEDS_QUOTES = re.compile(r'[",]')


class Lines:
    """Lazy view of ``text`` split on ``\\n`` and ``\\r\\n``.

    Each iteration starts from the beginning of the text. A lone ``\\r``
    is not a line break.
    """

    def __init__(self, text: str):
        self._text = text

    def __iter__(self) -> Iterator[str]:
        start = 0
        for match in _LINE_BREAK.finditer(self._text):
            yield self._text[start : match.start()]
            start = match.end()
        yield self._text[start:]


def tokenize_line(line: str) -> list[str]:
    """Split one CSV line into trimmed fields.

    ``""`` inside a quoted section is a literal quote. An unterminated quote
    is tolerated: the rest of the line becomes part of the last field.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def escape_field(value: str) -> str:
    """Quote ``value`` if it holds a comma or a quote.

    Surrounding whitespace is trimmed by tokenize_line either way, and
    line breaks cannot be represented since lines are split first.
    """
    if _NEEDS_QUOTES.search(value):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_line(fields: list[str]) -> str:
    return ",".join(escape_field(field) for field in fields)
