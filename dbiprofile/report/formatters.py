# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Report formatting for profile data.

format_record() and format_report() produce the classic human-readable
report. format_records_table() and format_records_json() are compact
alternatives for the command line. All functions are pure and return
strings.
"""

import json
import re
from typing import TYPE_CHECKING, Optional

from dbiprofile.profile.model import STAT_FIELDS, Record, UsageError
from tabulate import tabulate

if TYPE_CHECKING:
    from dbiprofile.profile.dataset import DataSet

# Keys longer than this, or spanning lines, are printed as a separate block
MAX_INLINE_KEY_LENGTH = 72

# Maximum key width in table output
MAX_TABLE_KEY_LENGTH = 60

RECORD_DELIMITER = "#" * 5 + "[ {} ]" + "#" * 59 + "\n"

MULTI_CALL_FORMAT = (
    "  Count         : {count:d}\n"
    "  Total Time    : {total:3.6f} seconds\n"
    "  Longest Time  : {longest:3.6f} seconds\n"
    "  Shortest Time : {shortest:3.6f} seconds\n"
    "  Average Time  : {average:3.6f} seconds\n"
)

SINGLE_CALL_FORMAT = (
    "  Count         : {count:d}\n"
    "  Time          : {total:3.6f} seconds\n"
)


def format_keys(path: list[str]) -> str:
    """Format the path segments of a record, one "Key N" entry each."""
    lines = []
    for n, key in enumerate(path, start=1):
        key = key.strip()
        if len(key) > MAX_INLINE_KEY_LENGTH or "\n" in key:
            lines.append(f"  Key {n}         :\n\n{key}\n\n")
        else:
            lines.append(f"  Key {n}         : {key}\n")
    return "".join(lines)


def format_record(record: Record) -> str:
    """
    Format a single record as a human-readable block of text.

    Records called more than once get total, longest, shortest and average
    times; records called once get a single time.

    Example:
          Count         : 3
          Total Time    : 0.050000 seconds
          Longest Time  : 0.025000 seconds
          Shortest Time : 0.010000 seconds
          Average Time  : 0.016667 seconds
          Key 1         : SELECT 1
    """
    stats = record.stats
    if stats.count > 1:
        text = MULTI_CALL_FORMAT.format(
            count=stats.count,
            total=stats.total,
            longest=stats.longest,
            shortest=stats.shortest,
            average=stats.total / stats.count,
        )
    else:
        text = SINGLE_CALL_FORMAT.format(count=stats.count, total=stats.total)
    return text + format_keys(record.path)


def format_report_header(data: "DataSet", number: int) -> str:
    """Format the report header: profiler, header values and totals."""
    total_count = sum(r.stats.count for r in data.records)
    total_time = sum(r.stats.total for r in data.records)

    parts = [f"\nDBI Profile Data ({data.header.profiler})\n\n"]
    for key, value in data.header.values.items():
        parts.append(f"  {key:<13} : {value}\n")
    parts.append(
        f"  Total Records : {data.count():d} "
        f"(showing {number:d}, sorted by {data.sort_label})\n"
        f"  Total Count   : {total_count:d}\n"
        f"  Total Runtime : {total_time:3.6f} seconds  \n\n"
    )
    return "".join(parts)


def format_report(data: "DataSet", number: Optional[int] = None) -> str:
    """
    Produce a report of the first number records in their current order.

    Args:
        data: The data set to report on
        number: How many records to show; clamped to the record count

    Returns:
        The report text

    Raises:
        UsageError: If number is not given
    """
    if number is None:
        raise UsageError("Missing required number option")

    number = max(0, min(number, data.count()))

    parts = [format_report_header(data, number)]
    for i, record in enumerate(data.records[:number], start=1):
        parts.append(RECORD_DELIMITER.format(i))
        parts.append(format_record(record))
        parts.append("\n")
    return "".join(parts)


def format_table_key(key: str) -> str:
    """Collapse whitespace in a key and shorten it to fit a table cell."""
    key = re.sub(r"\s+", " ", key).strip()
    if len(key) > MAX_TABLE_KEY_LENGTH:
        return key[: MAX_TABLE_KEY_LENGTH - 3] + "..."
    return key


def format_records_table(records: list[Record], show_header: bool = True) -> str:
    """
    Format records as a plain text table, one row per record.

    Args:
        records: Records to display, in order
        show_header: Whether to show the table header

    Returns:
        Formatted table string
    """
    if not records:
        return "No records found."

    depth = max(len(r.path) for r in records)
    rows = []
    for i, record in enumerate(records, start=1):
        stats = record.stats
        row = [
            i,
            stats.count,
            f"{stats.total:.6f}",
            f"{stats.total / stats.count:.6f}" if stats.count else "",
            f"{stats.longest:.6f}",
            f"{stats.shortest:.6f}",
        ]
        row.extend(format_table_key(k) for k in record.path)
        row.extend([""] * (depth - len(record.path)))
        rows.append(row)

    headers = []
    if show_header:
        headers = ["#", "COUNT", "TOTAL", "AVERAGE", "LONGEST", "SHORTEST"]
        headers.extend(f"KEY{n}" for n in range(1, depth + 1))
    return tabulate(rows, headers=headers, tablefmt="plain", disable_numparse=True)


def record_to_dict(record: Record) -> dict:
    """Convert a record to a JSON-serializable dict."""
    result = dict(zip(STAT_FIELDS, record.stats.as_list()))
    result["path"] = list(record.path)
    return result


def format_records_json(records: list[Record]) -> str:
    """
    Format records as JSON.

    Returns:
        JSON formatted string (pretty-printed array)
    """
    return json.dumps([record_to_dict(r) for r in records], indent=2)
