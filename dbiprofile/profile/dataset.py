# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
In-memory profile data set.

A DataSet owns the loaded records and supports sorting and filtering them
in place. Filtering is permanent; call clone() first to keep the original.
"""

import re
from typing import Optional, Union

from dbiprofile.profile.model import Header, Record, UsageError
from dbiprofile.profile.tree import Branch, to_tree
from dbiprofile.report.formatters import format_record, format_report

NUMERIC_SORT_FIELDS = ("longest", "total", "count", "shortest")

KEY_FIELD_PATTERN = re.compile(r"^key(\d+)$")

KeyValue = Union[str, re.Pattern]


def parse_key_field(name: str) -> Optional[int]:
    """
    Return N for a "keyN" field name, or None if name is not one.

    Example:
        >>> parse_key_field("key2")
        2
        >>> parse_key_field("total") is None
        True
    """
    match = KEY_FIELD_PATTERN.match(name)
    if not match or int(match.group(1)) < 1:
        return None
    return int(match.group(1))


def _key_criterion(criteria: dict[str, KeyValue]) -> tuple[int, KeyValue]:
    for name, value in criteria.items():
        n = parse_key_field(name)
        if n is not None:
            return n, value
    raise UsageError("Missing required keyN option.")


def _matcher(value: KeyValue, case_sensitive: bool):
    if isinstance(value, re.Pattern):
        return lambda segment: value.search(segment) is not None
    value = str(value)
    if case_sensitive:
        return lambda segment: segment == value
    lowered = value.lower()
    return lambda segment: segment.lower() == lowered


class DataSet:
    """
    A loaded profile: header, records and the current sort order.

    Example:
        >>> data = load_profile("dbi.prof")
        >>> data.sort("longest")
        >>> data.exclude(key2="disconnect")
        >>> print(data.report(10))
    """

    def __init__(
        self,
        header: Optional[Header] = None,
        records: Optional[list[Record]] = None,
        sort_label: str = "none",
    ) -> None:
        self.header = header if header is not None else Header()
        self.records = records if records is not None else []
        self.sort_label = sort_label

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def count(self) -> int:
        """Return the number of records in the data set."""
        return len(self.records)

    def sort(self, field: Optional[str] = None, reverse: bool = False) -> "DataSet":
        """
        Sort records in place, largest first.

        Args:
            field: "longest", "total", "count", "shortest" (numeric) or
                "keyN" for any N >= 1. Key fields compare as text; records
                without an N-th segment sort as an empty string.
            reverse: Sort smallest first instead

        Returns:
            self

        Raises:
            UsageError: If field is missing or not recognized
        """
        if not field:
            raise UsageError("Missing required field option.")

        if field in NUMERIC_SORT_FIELDS:
            sort_key = lambda record: getattr(record.stats, field)
        else:
            n = parse_key_field(field)
            if n is None:
                raise UsageError(f"Unrecognized sort field '{field}'.")
            sort_key = lambda record: record.key(n) or ""

        self.records.sort(key=sort_key, reverse=not reverse)
        self.sort_label = field
        return self

    def exclude(self, case_sensitive: bool = False, **criteria: KeyValue) -> int:
        """
        Remove records whose N-th path segment matches a value.

        Called as exclude(key2="disconnect") or
        exclude(key1=re.compile("^UPDATE", re.I)).
        Strings compare for equality, ignoring case unless case_sensitive
        is set; patterns are searched. Records with fewer than N segments
        are kept.

        Returns:
            Number of records left

        Raises:
            UsageError: If no keyN argument is given
        """
        n, value = _key_criterion(criteria)
        matches = _matcher(value, case_sensitive)
        self.records[:] = [
            r for r in self.records if len(r.path) < n or not matches(r.path[n - 1])
        ]
        return self.count()

    def match(self, case_sensitive: bool = False, **criteria: KeyValue) -> int:
        """
        Keep only records whose N-th path segment matches a value.

        The inverse of exclude(): records with fewer than N segments are
        removed.

        Returns:
            Number of records left

        Raises:
            UsageError: If no keyN argument is given
        """
        n, value = _key_criterion(criteria)
        matches = _matcher(value, case_sensitive)
        self.records[:] = [
            r for r in self.records if len(r.path) >= n and matches(r.path[n - 1])
        ]
        return self.count()

    def clone(self) -> "DataSet":
        """Return an independent deep copy of this data set."""
        return DataSet(
            header=self.header.copy(),
            records=[r.copy() for r in self.records],
            sort_label=self.sort_label,
        )

    def format(self, record: Record) -> str:
        """Format a single record the same way report() does."""
        return format_record(record)

    def report(self, number: Optional[int] = None) -> str:
        """Return a text report of the first number records."""
        return format_report(self, number)

    def to_tree(self) -> Branch:
        """Return the records as a nested tree keyed by path segment."""
        return to_tree(self.records)
