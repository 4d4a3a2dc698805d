"""
Tokenization of TextGrid text.

Both TextGrid layouts carry the same values in the same order; they differ
only in the labels, indices and punctuation around them. Instead of parsing
that decoration, the text is reduced to a flat queue of the values it
carries:

    normalize_lines   drop blank lines and same-line "!" comments
    split_line        whitespace split that keeps "quoted spans" whole
    filter_tokens     keep quoted strings (unquoted) and numeric literals
    pull_number       pop tokens until a number turns up

A long-format line such as ``intervals [1]:`` yields nothing, while
``text = "daisy bell"`` yields the single token ``daisy bell``.
"""

from __future__ import annotations

import re
from collections import deque
from typing import Iterable

from .errors import MalformedNumberError, MissingValueError

# A quoted span may contain doubled quotes ("") as escaped literal quotes
_TOKEN_PATTERN = re.compile(r'"(?:[^"]|"")*"|\S+')
# At least one digit and at most one decimal point
_NUMBER_PATTERN = re.compile(r'\d+(?:\.\d*)?|\.\d+', re.ASCII)


def _unescape_praat_string(s: str) -> str:
    """
    Unescape a Praat text string.

    In Praat TextGrid format, strings are quoted with double quotes,
    and a literal quote within the string is represented as two quotes ("").
    This function removes the outer quotes and unescapes inner quotes.
    """
    # Remove outer quotes if present
    if len(s) > 1 and s.startswith('"') and s.endswith('"'):
        s = s[1:-1]
    # Unescape doubled quotes
    return s.replace('""', '"')


def _escape_praat_string(s: str) -> str:
    """
    Escape a string for Praat TextGrid format.

    Escapes literal quotes as "" and wraps in outer quotes.
    """
    return '"' + s.replace('"', '""') + '"'


def strip_comment(line: str) -> str:
    """Truncate ``line`` at the first ``!`` that is outside a quoted span."""
    quote_indices: list[int] = []
    for i, char in enumerate(line):
        if char == '"':
            quote_indices.append(i)
        elif char == '!' and len(quote_indices) % 2 == 0:
            return line[:i].rstrip()
    return line


def normalize_lines(lines: Iterable[str]) -> list[str]:
    """
    Remove blank lines and comments from raw input lines.

    A quoted span left open at the end of a line continues on the next one,
    so a label holding line breaks comes back as a single logical line with
    its breaks intact.
    """
    normalized = []
    pending = None
    for line in lines:
        line = line.rstrip('\r\n')
        if pending is not None:
            line = pending + '\n' + line
            pending = None
        elif not line.strip():
            continue
        line = strip_comment(line)
        # A comment can only start outside quotes, so an odd count means no comment was cut
        if line.count('"') % 2:
            pending = line
            continue
        if line.strip():
            normalized.append(line)
    if pending is not None:
        normalized.append(pending)
    return normalized


def split_line(line: str) -> list[str]:
    """Split a line on whitespace, keeping quoted spans as single tokens."""
    return _TOKEN_PATTERN.findall(line)


def filter_tokens(tokens: Iterable[str]) -> list[str]:
    """Keep only quoted strings (unescaped) and purely numeric tokens."""
    kept = []
    for token in tokens:
        if len(token) > 1 and token.startswith('"') and token.endswith('"'):
            kept.append(_unescape_praat_string(token))
        elif _NUMBER_PATTERN.fullmatch(token):
            kept.append(token)
    return kept


def tokenize(lines: Iterable[str]) -> deque[str]:
    """Run the full line-to-token pipeline and return a token queue."""
    queue: deque[str] = deque()
    for line in normalize_lines(lines):
        queue.extend(filter_tokens(split_line(line)))
    return queue


def pull_number(queue: deque[str], kind: type = float, field: str = "number"):
    """
    Pop tokens from the front of ``queue`` until one holds a number.

    Tokens without a numeric match are discarded. The first match is parsed
    as ``kind`` (``float`` or ``int``).

    Raises:
        MissingValueError: the queue ran out before a number was found
        MalformedNumberError: the match cannot be parsed as ``kind``
    """
    while queue:
        token = queue.popleft()
        match = _NUMBER_PATTERN.search(token)
        if match is None:
            continue
        try:
            return kind(match.group())
        except ValueError:
            raise MalformedNumberError(field, match.group(), kind.__name__) from None
    raise MissingValueError(field)
