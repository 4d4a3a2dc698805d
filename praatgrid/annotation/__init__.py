"""Annotation module for tiers, intervals, points and TextGrid I/O."""

from .tier import Interval, Point, IntervalTier, PointTier, Tier, TextGrid
from .errors import (
    TextGridError,
    MalformedHeaderError,
    UnknownTierTypeError,
    MissingValueError,
    MalformedNumberError,
    TextGridWriteError,
)
from .textgrid import (
    TextFormat,
    read_lines,
    read_textgrid,
    parse_textgrid,
    render_textgrid,
    write_textgrid,
)

__all__ = [
    'Interval',
    'Point',
    'IntervalTier',
    'PointTier',
    'Tier',
    'TextGrid',
    'TextGridError',
    'MalformedHeaderError',
    'UnknownTierTypeError',
    'MissingValueError',
    'MalformedNumberError',
    'TextGridWriteError',
    'TextFormat',
    'read_lines',
    'read_textgrid',
    'parse_textgrid',
    'render_textgrid',
    'write_textgrid',
]
