# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Core data types for DBI profile data.

A profile is a list of records. Each record pairs a path (one text segment
per nesting level, e.g. statement then method name) with the seven
aggregated timing statistics collected for that path.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Optional

# Field names in the order they appear on a "=" line of a dump file
STAT_FIELDS = (
    "count",
    "total",
    "first",
    "shortest",
    "longest",
    "first_at",
    "last_at",
)

NUMERIC_FIELD_PATTERN = re.compile(r"^[-+0-9eE.]+$")


class ProfileDataError(Exception):
    """Base class for all profile data errors."""

    pass


class UsageError(ProfileDataError, ValueError):
    """Raised when a query or report is requested with missing or invalid arguments."""

    pass


@dataclass
class Statistics:
    """
    Aggregated timing statistics for one path.

    Durations are in seconds, timestamps are epoch seconds. Durations can be
    slightly negative on machines with unstable high-resolution clocks, so
    no sign checks are made.
    """

    count: int
    total: float
    first: float
    shortest: float
    longest: float
    first_at: float
    last_at: float

    @classmethod
    def from_fields(cls, values: list[str]) -> "Statistics":
        """
        Build statistics from the seven numeric strings of a data line.

        Raises:
            ValueError: If there are not exactly seven values or one of them
                is not a number.
        """
        if len(values) != len(STAT_FIELDS):
            raise ValueError(
                f"Expected {len(STAT_FIELDS)} fields, got {len(values)}"
            )
        for value in values:
            if not NUMERIC_FIELD_PATTERN.match(value):
                raise ValueError(f"Invalid numeric field: '{value}'")
        numbers = [float(v) for v in values]
        return cls(int(numbers[0]), *numbers[1:])

    def as_list(self) -> list:
        """Return the statistics in dump-file order."""
        return [getattr(self, name) for name in STAT_FIELDS]

    def copy(self) -> "Statistics":
        return replace(self)

    def merge(self, incoming: "Statistics") -> "Statistics":
        """
        Merge statistics for the same path into this object.

        The first duration is kept from this (earlier loaded) object.

        Returns:
            self, for chaining
        """
        self.count += incoming.count
        self.total += incoming.total
        self.shortest = min(self.shortest, incoming.shortest)
        self.longest = max(self.longest, incoming.longest)
        self.first_at = min(self.first_at, incoming.first_at)
        self.last_at = max(self.last_at, incoming.last_at)
        return self


def merge_statistics(existing: Statistics, incoming: Statistics) -> Statistics:
    """
    Combine two statistics that share an identical path.

    Neither argument is modified.

    Example:
        >>> a = Statistics(1, 0.01, 0.01, 0.01, 0.01, 100.0, 100.01)
        >>> b = Statistics(2, 0.04, 0.015, 0.015, 0.025, 200.0, 200.05)
        >>> merge_statistics(a, b).count
        3
    """
    return existing.copy().merge(incoming)


@dataclass
class Record:
    """One unique path and its statistics."""

    stats: Statistics
    path: list[str] = field(default_factory=list)

    def key(self, n: int) -> Optional[str]:
        """Return the 1-based n-th path segment, or None if the path is shorter."""
        if n < 1 or n > len(self.path):
            return None
        return self.path[n - 1]

    def copy(self) -> "Record":
        return Record(self.stats.copy(), list(self.path))


@dataclass
class Header:
    """Profiler identifier and the key/value pairs from the dump header."""

    profiler: str = ""
    values: dict[str, str] = field(default_factory=dict)

    def copy(self) -> "Header":
        return Header(self.profiler, dict(self.values))
