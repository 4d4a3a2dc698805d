"""
TextGrid data model.

A TextGrid holds a global time range and an ordered list of named tiers.
There are exactly two kinds of tier:

    IntervalTier: labeled contiguous spans (Interval)
    PointTier:    labeled time positions (Point), "TextTier" in Praat files

``Tier`` is the union of the two. Code that handles tiers generically checks
the kind with ``isinstance`` and covers both branches.

Ranges are advisory: a child outside its tier's range, or a tier outside the
document's range, produces a warning through the ``warn`` argument of the
mutating methods (see ``diagnostics``) but is never rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ..config import config
from .diagnostics import Warn, emit

INTERVAL_TIER = "IntervalTier"
POINT_TIER = "TextTier"
TIER_CLASSES = (INTERVAL_TIER, POINT_TIER)


@dataclass
class Interval:
    """An interval in an annotation tier."""
    xmin: float  # Start time in seconds
    xmax: float  # End time in seconds
    text: str = ""  # Label/annotation text

    @property
    def duration(self) -> float:
        return self.xmax - self.xmin

    @property
    def midpoint(self) -> float:
        return (self.xmin + self.xmax) / 2.0

    def contains(self, time: float) -> bool:
        """Check if time falls within this interval."""
        return self.xmin <= time < self.xmax

    def overlaps(self, other: 'Interval') -> bool:
        """Check if this interval overlaps with another."""
        return self.xmin < other.xmax and other.xmin < self.xmax


@dataclass
class Point:
    """A labeled time position in a point tier."""
    number: float  # Time in seconds
    mark: str = ""


class IntervalTier:
    """An annotation tier of labeled intervals."""

    tier_class = INTERVAL_TIER

    def __init__(self, name: str = "", xmin: float = 0.0, xmax: float = 0.0,
                 intervals: Iterable[Interval] = ()):
        self.name = name
        self._xmin = xmin
        self._xmax = xmax
        self._intervals: list[Interval] = list(intervals)

    def __repr__(self):
        return (f"IntervalTier(name={self.name!r}, xmin={self._xmin}, "
                f"xmax={self._xmax}, intervals={self._intervals!r})")

    def __eq__(self, other):
        if not isinstance(other, IntervalTier):
            return NotImplemented
        return (self.name == other.name and self._xmin == other._xmin
                and self._xmax == other._xmax and self._intervals == other._intervals)

    def __len__(self):
        return len(self._intervals)

    def __iter__(self):
        return iter(self._intervals)

    @property
    def xmin(self) -> float:
        return self._xmin

    @property
    def xmax(self) -> float:
        return self._xmax

    @property
    def num_intervals(self) -> int:
        """Number of intervals in this tier."""
        return len(self._intervals)

    def set_xmin(self, xmin: float, warn: Warn = False):
        """Set the tier start, warning if an interval begins before it."""
        if self._intervals:
            first = min(interval.xmin for interval in self._intervals)
            if first < xmin:
                emit(warn, f"Tier `{self.name}` has an interval starting at {first} "
                           f"but the tier xmin is set to {xmin}")
        self._xmin = xmin

    def set_xmax(self, xmax: float, warn: Warn = False):
        """Set the tier end, warning if an interval ends after it."""
        if self._intervals:
            last = max(interval.xmax for interval in self._intervals)
            if last > xmax:
                emit(warn, f"Tier `{self.name}` has an interval ending at {last} "
                           f"but the tier xmax is set to {xmax}")
        self._xmax = xmax

    def _check_bounds(self, interval: Interval, warn: Warn):
        if interval.xmin < self._xmin:
            emit(warn, f"Tier `{self.name}` has an interval starting at {interval.xmin} "
                       f"but the tier xmin is {self._xmin}")
        if interval.xmax > self._xmax:
            emit(warn, f"Tier `{self.name}` has an interval ending at {interval.xmax} "
                       f"but the tier xmax is {self._xmax}")
        if interval.xmin >= interval.xmax:
            emit(warn, f"Tier `{self.name}` has an interval with xmin {interval.xmin} "
                       f"not before xmax {interval.xmax}")

    def get_interval(self, index: int) -> Interval:
        """Get interval by index."""
        if index < 0 or index >= len(self._intervals):
            raise IndexError(f"Interval index {index} out of range (0-{len(self._intervals)-1})")
        return self._intervals[index]

    def get_intervals(self) -> list[Interval]:
        """Get all intervals."""
        return self._intervals.copy()

    def get_interval_at_time(self, time: float) -> Optional[tuple[int, Interval]]:
        """Get the interval containing the given time.

        Returns (index, interval) tuple, or None if no interval contains it.
        """
        for i, interval in enumerate(self._intervals):
            if interval.contains(time):
                return i, interval
        return None

    def push_interval(self, interval: Interval, warn: Warn = False):
        """Append an interval as-is, without reordering."""
        self._check_bounds(interval, warn)
        self._intervals.append(interval)

    def insert_interval(self, interval: Interval, warn: Warn = False) -> int:
        """Insert an interval, keeping the tier sorted.

        Returns the index the interval ended up at.
        """
        self.push_interval(interval, warn)
        self.reorder()
        return next(i for i, item in enumerate(self._intervals) if item is interval)

    def remove_interval(self, index: int) -> Interval:
        """Remove interval by index."""
        if index < 0 or index >= len(self._intervals):
            raise IndexError(f"Interval index {index} out of range")
        return self._intervals.pop(index)

    def set_intervals(self, intervals: Iterable[Interval], warn: Warn = False):
        """Replace all intervals."""
        intervals = list(intervals)
        for interval in intervals:
            self._check_bounds(interval, warn)
        self._intervals = intervals

    def set_interval_text(self, index: int, text: str):
        """Set the text for an interval."""
        self.get_interval(index).text = text

    def reorder(self):
        """Stable-sort intervals by start time."""
        self._intervals.sort(key=lambda interval: interval.xmin)

    def check_overlaps(self) -> Optional[list[tuple[int, int]]]:
        """Find adjacent intervals whose boundaries do not meet exactly.

        Reorders first. Returns the index pairs of every gap or overlap, or
        None if the intervals tile cleanly.
        """
        self.reorder()
        defects = [
            (i, i + 1)
            for i, (interval, following) in enumerate(zip(self._intervals, self._intervals[1:]))
            if interval.xmax != following.xmin
        ]
        return defects or None

    def fix_boundaries(self, prefer_first: bool | None = None):
        """Close gaps and overlaps between adjacent intervals.

        With ``prefer_first`` every interval's start is moved to the end of
        the interval before it; otherwise every interval's end is moved to
        the start of the one after it. The first start and the last end are
        never changed, so a gap against the tier's own range remains (see
        ``fill_gaps``). Defaults to ``config['repair']['prefer_first']``.
        """
        if prefer_first is None:
            prefer_first = config['repair']['prefer_first']
        self.reorder()
        if prefer_first:
            for i in range(1, len(self._intervals)):
                self._intervals[i].xmin = self._intervals[i - 1].xmax
        else:
            for i in range(len(self._intervals) - 1):
                self._intervals[i].xmax = self._intervals[i + 1].xmin

    def fill_gaps(self, text: str | None = None):
        """Insert intervals labeled ``text`` into every gap.

        Covers the gap between the tier start and the first interval, between
        the last interval and the tier end, and between adjacent intervals.
        Overlaps are left alone. ``text`` defaults to
        ``config['repair']['gap_text']``.
        """
        if text is None:
            text = config['repair']['gap_text']
        self.reorder()
        if not self._intervals:
            if self._xmin < self._xmax:
                self._intervals.append(Interval(self._xmin, self._xmax, text))
            return

        filled: list[Interval] = []
        if self._xmin < self._intervals[0].xmin:
            filled.append(Interval(self._xmin, self._intervals[0].xmin, text))

        for interval, following in zip(self._intervals, self._intervals[1:]):
            filled.append(interval)
            if interval.xmax < following.xmin:
                filled.append(Interval(interval.xmax, following.xmin, text))
        filled.append(self._intervals[-1])

        if self._intervals[-1].xmax < self._xmax:
            filled.append(Interval(self._intervals[-1].xmax, self._xmax, text))

        self._intervals = filled


class PointTier:
    """An annotation tier of labeled time points."""

    tier_class = POINT_TIER

    def __init__(self, name: str = "", xmin: float = 0.0, xmax: float = 0.0,
                 points: Iterable[Point] = ()):
        self.name = name
        self._xmin = xmin
        self._xmax = xmax
        self._points: list[Point] = list(points)

    def __repr__(self):
        return (f"PointTier(name={self.name!r}, xmin={self._xmin}, "
                f"xmax={self._xmax}, points={self._points!r})")

    def __eq__(self, other):
        if not isinstance(other, PointTier):
            return NotImplemented
        return (self.name == other.name and self._xmin == other._xmin
                and self._xmax == other._xmax and self._points == other._points)

    def __len__(self):
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    @property
    def xmin(self) -> float:
        return self._xmin

    @property
    def xmax(self) -> float:
        return self._xmax

    @property
    def num_points(self) -> int:
        return len(self._points)

    def set_xmin(self, xmin: float, warn: Warn = False):
        if self._points:
            first = min(point.number for point in self._points)
            if first < xmin:
                emit(warn, f"Tier `{self.name}` has a point at {first} "
                           f"but the tier xmin is set to {xmin}")
        self._xmin = xmin

    def set_xmax(self, xmax: float, warn: Warn = False):
        if self._points:
            last = max(point.number for point in self._points)
            if last > xmax:
                emit(warn, f"Tier `{self.name}` has a point at {last} "
                           f"but the tier xmax is set to {xmax}")
        self._xmax = xmax

    def _check_bounds(self, point: Point, warn: Warn):
        if point.number < self._xmin:
            emit(warn, f"Tier `{self.name}` has a point at {point.number} "
                       f"but the tier xmin is {self._xmin}")
        if point.number > self._xmax:
            emit(warn, f"Tier `{self.name}` has a point at {point.number} "
                       f"but the tier xmax is {self._xmax}")

    def get_point(self, index: int) -> Point:
        if index < 0 or index >= len(self._points):
            raise IndexError(f"Point index {index} out of range (0-{len(self._points)-1})")
        return self._points[index]

    def get_points(self) -> list[Point]:
        return self._points.copy()

    def push_point(self, point: Point, warn: Warn = False):
        """Append a point as-is, without reordering."""
        self._check_bounds(point, warn)
        self._points.append(point)

    def insert_point(self, point: Point, warn: Warn = False) -> int:
        """Insert a point, keeping the tier sorted. Returns its index."""
        self.push_point(point, warn)
        self.reorder()
        return next(i for i, item in enumerate(self._points) if item is point)

    def remove_point(self, index: int) -> Point:
        if index < 0 or index >= len(self._points):
            raise IndexError(f"Point index {index} out of range")
        return self._points.pop(index)

    def set_points(self, points: Iterable[Point], warn: Warn = False):
        points = list(points)
        for point in points:
            self._check_bounds(point, warn)
        self._points = points

    def reorder(self):
        """Stable-sort points by time."""
        self._points.sort(key=lambda point: point.number)

    def check_overlaps(self) -> Optional[list[tuple[int, int]]]:
        """Find points sharing the same time.

        Every ordered pair is compared, so one duplicate pair is reported as
        both (i, j) and (j, i). Returns None if all times are distinct.
        """
        duplicates = [
            (i, j)
            for i, point in enumerate(self._points)
            for j, other in enumerate(self._points)
            if i != j and point.number == other.number
        ]
        return duplicates or None


Tier = Union[IntervalTier, PointTier]


class TextGrid:
    """A TextGrid document: a time range and an ordered list of named tiers."""

    def __init__(self, xmin: float = 0.0, xmax: float = 0.0,
                 tiers: Iterable[Tier] = (), name: str | None = None,
                 warn: Warn = False):
        self._xmin = xmin
        self._xmax = xmax
        self._tiers: list[Tier] = []
        self.name = name if name is not None else config['io']['default_name']
        for tier in tiers:
            self.push_tier(tier, warn)

    def __repr__(self):
        return (f"TextGrid(name={self.name!r}, xmin={self._xmin}, "
                f"xmax={self._xmax}, tiers={self._tiers!r})")

    def __eq__(self, other):
        # The display name comes from where the document was read, not its content
        if not isinstance(other, TextGrid):
            return NotImplemented
        return (self._xmin == other._xmin and self._xmax == other._xmax
                and self._tiers == other._tiers)

    def __len__(self):
        return len(self._tiers)

    def __iter__(self):
        return iter(self._tiers)

    @classmethod
    def from_source(cls, source, warnings: bool | None = None, sink=None) -> 'TextGrid':
        """Parse a TextGrid from a path, string, list of lines or stream."""
        from .textgrid import parse_textgrid
        return parse_textgrid(source, warnings=warnings, sink=sink)

    @property
    def xmin(self) -> float:
        return self._xmin

    @property
    def xmax(self) -> float:
        return self._xmax

    @property
    def num_tiers(self) -> int:
        return len(self._tiers)

    def set_xmin(self, xmin: float, warn: Warn = False):
        """Set the document start, warning about tiers that begin earlier."""
        for tier in self._tiers:
            if tier.xmin < xmin:
                emit(warn, f"Tier `{tier.name}` has an xmin of {tier.xmin} "
                           f"but the TextGrid xmin is set to {xmin}")
        self._xmin = xmin

    def set_xmax(self, xmax: float, warn: Warn = False):
        """Set the document end, warning about tiers that end later."""
        for tier in self._tiers:
            if tier.xmax > xmax:
                emit(warn, f"Tier `{tier.name}` has an xmax of {tier.xmax} "
                           f"but the TextGrid xmax is set to {xmax}")
        self._xmax = xmax

    def tier_names(self) -> list[str]:
        return [tier.name for tier in self._tiers]

    def _unique_name(self, name: str, warn: Warn, exclude: Tier | None = None) -> str:
        taken = {tier.name for tier in self._tiers if tier is not exclude}
        if name not in taken:
            return name
        suffix = config['tiers']['duplicate_suffix']
        n = 1
        while name + suffix.format(n=n) in taken:
            n += 1
        unique = name + suffix.format(n=n)
        emit(warn, f"Tier name `{name}` already exists; renamed to `{unique}`")
        return unique

    def _check_bounds(self, tier: Tier, warn: Warn):
        if tier.xmin < self._xmin:
            emit(warn, f"Tier `{tier.name}` has an xmin of {tier.xmin} "
                       f"but the TextGrid xmin is {self._xmin}")
        if tier.xmax > self._xmax:
            emit(warn, f"Tier `{tier.name}` has an xmax of {tier.xmax} "
                       f"but the TextGrid xmax is {self._xmax}")

    def push_tier(self, tier: Tier, warn: Warn = False):
        """Append a tier, renaming it if its name is already taken."""
        self.insert_tier(len(self._tiers), tier, warn)

    def insert_tier(self, index: int, tier: Tier, warn: Warn = False):
        """Insert a tier at ``index``, renaming it if its name is already taken."""
        if not isinstance(tier, (IntervalTier, PointTier)):
            raise TypeError(f"Expected IntervalTier or PointTier, got {type(tier).__name__}")
        if index < 0 or index > len(self._tiers):
            raise IndexError(f"Tier index {index} out of range")
        self._check_bounds(tier, warn)
        tier.name = self._unique_name(tier.name, warn)
        self._tiers.insert(index, tier)

    def remove_tier(self, index: int) -> Tier:
        """Remove a tier by index."""
        if index < 0 or index >= len(self._tiers):
            raise IndexError(f"Tier index {index} out of range")
        return self._tiers.pop(index)

    def remove_tier_by_name(self, name: str) -> Tier:
        return self._tiers.pop(self._index_of(name))

    def get_tier(self, index: int) -> Tier:
        """Get tier by index."""
        if index < 0 or index >= len(self._tiers):
            raise IndexError(f"Tier index {index} out of range")
        return self._tiers[index]

    def get_tier_by_name(self, name: str) -> Tier:
        return self._tiers[self._index_of(name)]

    def get_tiers(self) -> list[Tier]:
        """Get all tiers."""
        return self._tiers.copy()

    def _index_of(self, name: str) -> int:
        for i, tier in enumerate(self._tiers):
            if tier.name == name:
                return i
        raise KeyError(f"No tier named `{name}`")

    def rename_tier(self, index: int, name: str, warn: Warn = False):
        """Rename a tier, keeping names unique."""
        tier = self.get_tier(index)
        tier.name = self._unique_name(name, warn, exclude=tier)

    def move_tier(self, from_index: int, to_index: int):
        """Move a tier from one position to another."""
        if from_index < 0 or from_index >= len(self._tiers):
            raise IndexError(f"Source tier index {from_index} out of range")
        if to_index < 0 or to_index >= len(self._tiers):
            raise IndexError(f"Target tier index {to_index} out of range")

        tier = self._tiers.pop(from_index)
        self._tiers.insert(to_index, tier)

    def to_string(self, fmt=None) -> str:
        """Render this document in the verbose or compact layout."""
        from .textgrid import render_textgrid
        return render_textgrid(self, fmt)

    def write(self, destination, fmt=None):
        """Write this document to a file or directory. Returns the path written."""
        from .textgrid import write_textgrid
        return write_textgrid(self, destination, fmt)
