# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Reporting for profile data: text report, table and JSON views.
"""

from .formatters import (
    format_record,
    format_records_json,
    format_records_table,
    format_report,
)

__all__ = [
    "format_record",
    "format_report",
    "format_records_json",
    "format_records_table",
]
