"""TextGrid import/export for annotation tiers.

Reading goes through the token queue built by ``tokens.tokenize``, so the
long (verbose) and short (compact) layouts are decoded by the same code. Tier
boundaries are found by looking ahead for a tier class token
("IntervalTier" / "TextTier") rather than by trusting the declared sizes,
which are often wrong in hand-edited files.
"""

from __future__ import annotations

import enum
import io
import logging
import os
from collections import deque
from pathlib import Path
from typing import Sequence, Union

import numpy as np

from ..config import config
from .diagnostics import Sink, Warn, emit, resolve_sink
from .errors import (
    MalformedHeaderError,
    MissingValueError,
    TextGridWriteError,
    UnknownTierTypeError,
)
from .tier import (
    INTERVAL_TIER,
    TIER_CLASSES,
    Interval,
    IntervalTier,
    Point,
    PointTier,
    TextGrid,
    Tier,
)
from .tokens import _escape_praat_string, pull_number, tokenize

logger = logging.getLogger(__name__)

FILE_TYPE = "ooTextFile"
OBJECT_CLASS = "TextGrid"

Source = Union[str, Path, Sequence[str], bytes, io.IOBase]


class TextFormat(enum.Enum):
    """The two TextGrid text layouts."""
    VERBOSE = "verbose"  # Praat "long" text file
    COMPACT = "compact"  # Praat "short" text file


_FORMAT_ALIASES = {
    'verbose': TextFormat.VERBOSE,
    'long': TextFormat.VERBOSE,
    'compact': TextFormat.COMPACT,
    'short': TextFormat.COMPACT,
}


def _resolve_format(fmt: TextFormat | str | None) -> TextFormat:
    if fmt is None:
        fmt = config['output']['format']
    if isinstance(fmt, TextFormat):
        return fmt
    try:
        return _FORMAT_ALIASES[str(fmt).lower()]
    except KeyError:
        raise ValueError(f"Unknown TextGrid format: {fmt!r}") from None


# =============================================================================
# INPUT
# =============================================================================

def _split_lines(content: str) -> list[str]:
    """Split on line feeds only, since other Unicode line breaks may sit inside labels."""
    return [line[:-1] if line.endswith('\r') else line for line in content.split('\n')]


def read_lines(source: Source) -> tuple[list[str], str]:
    """
    Read raw lines and a display name from any supported source.

    Args:
        source: One of
            - a path (``pathlib.Path``) to a TextGrid file
            - a string holding a whole TextGrid, or the path of an existing file
            - a list of lines
            - bytes, or a binary or text stream

    Returns:
        (lines, name) where name is the file stem for paths and the
        configured default name otherwise.
    """
    encoding = config['io']['encoding']
    default_name = config['io']['default_name']

    if isinstance(source, Path):
        with open(source, 'r', encoding=encoding, newline='') as f:
            content = f.read()
        return _split_lines(content), source.stem

    if isinstance(source, str):
        if '\n' not in source and os.path.isfile(source):
            return read_lines(Path(source))
        return _split_lines(source), default_name

    if isinstance(source, (bytes, bytearray)):
        return _split_lines(bytes(source).decode(encoding)), default_name

    if isinstance(source, (list, tuple)):
        return [str(line) for line in source], default_name

    if hasattr(source, 'read'):
        content = source.read()
        if isinstance(content, bytes):
            content = content.decode(encoding)
        return _split_lines(content), default_name

    raise TypeError(f"Cannot read a TextGrid from {type(source).__name__}")


def read_textgrid(file_path: str | Path, warnings: bool | None = None,
                  sink: Sink | None = None) -> TextGrid:
    """Read a Praat TextGrid file.

    Supports both short and long TextGrid formats.
    """
    return parse_textgrid(Path(file_path), warnings=warnings, sink=sink)


def parse_textgrid(source: Source, warnings: bool | None = None,
                   sink: Sink | None = None) -> TextGrid:
    """
    Parse a TextGrid from a path, string, list of lines or stream.

    Args:
        source: See ``read_lines``.
        warnings: Report advisory conditions (declared sizes that disagree
            with the data, children outside their tier's range, renamed
            duplicate tiers). Defaults to ``config['parsing']['warnings']``.
            Never changes whether parsing succeeds.
        sink: Callable receiving each warning message. Defaults to the
            ``praatgrid`` logger.

    Raises:
        MalformedHeaderError: wrong ``File type`` or ``Object class``
        UnknownTierTypeError: a tier class other than IntervalTier/TextTier
        MissingValueError: input ended while a field was expected
        MalformedNumberError: a numeric field could not be parsed
    """
    if warnings is None:
        warnings = config['parsing']['warnings']
    warn: Warn = (sink or resolve_sink(True)) if warnings else None

    lines, name = read_lines(source)
    queue = tokenize(lines)
    logger.debug("Decoding %s: %d tokens", name, len(queue))

    _read_header(queue)
    xmin = pull_number(queue, float, "xmin")
    xmax = pull_number(queue, float, "xmax")
    declared_tiers = pull_number(queue, int, "size")

    textgrid = TextGrid(xmin, xmax, name=name)
    while queue:
        textgrid.push_tier(_read_tier(queue, warn), warn)

    if declared_tiers != textgrid.num_tiers:
        emit(warn, f"TextGrid has a size of {declared_tiers} "
                   f"but {textgrid.num_tiers} tiers were found")

    return textgrid


def _read_header(queue: deque[str]):
    """Check the two identifiers every TextGrid starts with."""
    for field, expected in (("File type", FILE_TYPE), ("Object class", OBJECT_CLASS)):
        found = queue.popleft() if queue else None
        if found != expected:
            raise MalformedHeaderError(field, expected, found)


def _read_tier(queue: deque[str], warn: Warn) -> Tier:
    """Decode one tier record and all children up to the next tier class token."""
    tier_class = queue.popleft()
    if tier_class not in TIER_CLASSES:
        raise UnknownTierTypeError(tier_class)
    if not queue:
        raise MissingValueError("name")
    name = queue.popleft()
    xmin = pull_number(queue, float, "xmin")
    xmax = pull_number(queue, float, "xmax")
    declared_size = pull_number(queue, int, "size")

    if tier_class == INTERVAL_TIER:
        tier: Tier = IntervalTier(name, xmin, xmax)
        while queue and queue[0] not in TIER_CLASSES:
            tier.push_interval(_read_interval(queue), warn)
        kind = "intervals"
    else:
        tier = PointTier(name, xmin, xmax)
        while queue and queue[0] not in TIER_CLASSES:
            tier.push_point(_read_point(queue), warn)
        kind = "points"

    if declared_size != len(tier):
        emit(warn, f"Tier `{name}` has a size of {declared_size} "
                   f"but {len(tier)} {kind} were found")
    logger.debug("Decoded %s `%s` with %d %s", tier_class, name, len(tier), kind)
    return tier


def _read_interval(queue: deque[str]) -> Interval:
    xmin = pull_number(queue, float, "xmin")
    xmax = pull_number(queue, float, "xmax")
    text = queue.popleft() if queue else ""
    return Interval(xmin, xmax, text)


def _read_point(queue: deque[str]) -> Point:
    number = pull_number(queue, float, "number")
    mark = queue.popleft() if queue else ""
    return Point(number, mark)


# =============================================================================
# OUTPUT
# =============================================================================

def _format_number(value: float) -> str:
    """Format a time positionally: no exponent, no trailing zeros."""
    return np.format_float_positional(float(value), trim='-')


def render_textgrid(textgrid: TextGrid, fmt: TextFormat | str | None = None) -> str:
    """Render a TextGrid as text in the verbose or compact layout.

    Sizes are counted from the current tiers and children, never stored.
    """
    if _resolve_format(fmt) is TextFormat.VERBOSE:
        lines = _render_long(textgrid)
    else:
        lines = _render_short(textgrid)
    return '\n'.join(lines)


def _render_long(textgrid: TextGrid) -> list[str]:
    """Render long-format TextGrid lines."""
    lines = [
        f'File type = "{FILE_TYPE}"',
        f'Object class = "{OBJECT_CLASS}"',
        '',
        f'xmin = {_format_number(textgrid.xmin)}',
        f'xmax = {_format_number(textgrid.xmax)}',
        'tiers? <exists>',
        f'size = {textgrid.num_tiers}',
    ]
    if textgrid.num_tiers:
        lines.append('item []:')

    for i, tier in enumerate(textgrid.get_tiers()):
        lines.append(f'    item [{i + 1}]:')
        lines.append(f'        class = "{tier.tier_class}"')
        lines.append(f'        name = {_escape_praat_string(tier.name)}')
        lines.append(f'        xmin = {_format_number(tier.xmin)}')
        lines.append(f'        xmax = {_format_number(tier.xmax)}')

        if isinstance(tier, IntervalTier):
            lines.append(f'        intervals: size = {tier.num_intervals}')
            for j, interval in enumerate(tier.get_intervals()):
                lines.append(f'        intervals [{j + 1}]:')
                lines.append(f'            xmin = {_format_number(interval.xmin)}')
                lines.append(f'            xmax = {_format_number(interval.xmax)}')
                lines.append(f'            text = {_escape_praat_string(interval.text)}')
        else:
            lines.append(f'        points: size = {tier.num_points}')
            for j, point in enumerate(tier.get_points()):
                lines.append(f'        points [{j + 1}]:')
                lines.append(f'            number = {_format_number(point.number)}')
                lines.append(f'            mark = {_escape_praat_string(point.mark)}')

    return lines


def _render_short(textgrid: TextGrid) -> list[str]:
    """Render short-format TextGrid lines."""
    lines = [
        f'"{FILE_TYPE}"',
        f'"{OBJECT_CLASS}"',
        '',
        _format_number(textgrid.xmin),
        _format_number(textgrid.xmax),
        '<exists>',
        str(textgrid.num_tiers),
    ]

    for tier in textgrid.get_tiers():
        lines.append(f'"{tier.tier_class}"')
        lines.append(_escape_praat_string(tier.name))
        lines.append(_format_number(tier.xmin))
        lines.append(_format_number(tier.xmax))
        lines.append(str(len(tier)))

        if isinstance(tier, IntervalTier):
            for interval in tier.get_intervals():
                lines.append(_format_number(interval.xmin))
                lines.append(_format_number(interval.xmax))
                lines.append(_escape_praat_string(interval.text))
        else:
            for point in tier.get_points():
                lines.append(_format_number(point.number))
                lines.append(_escape_praat_string(point.mark))

    return lines


def resolve_destination(textgrid: TextGrid, destination: str | Path) -> Path:
    """
    Work out the file a TextGrid should be written to.

    A destination without a file extension, or an existing directory, is
    treated as a directory and the file is named after the TextGrid.
    """
    destination = Path(destination)
    if destination.is_dir() or not destination.suffix:
        return destination / f"{textgrid.name}.{config['io']['extension']}"
    return destination


def write_textgrid(textgrid: TextGrid, destination: str | Path,
                   fmt: TextFormat | str | None = None) -> Path:
    """Write a TextGrid to a file.

    Args:
        textgrid: The document to write
        destination: Output file path, or a directory to write into
        fmt: ``TextFormat`` or one of "verbose"/"long"/"compact"/"short";
            defaults to ``config['output']['format']``

    Returns:
        The path of the written file.

    Raises:
        TextGridWriteError: if the file or its directories cannot be created
    """
    text = render_textgrid(textgrid, fmt)
    file_path = resolve_destination(textgrid, destination)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', encoding=config['io']['encoding']) as f:
            f.write(text)
            f.write('\n')
    except OSError as e:
        raise TextGridWriteError(f"Could not write TextGrid to {file_path}: {e}") from e

    logger.info("Wrote %s to %s", textgrid.name, file_path)
    return file_path
