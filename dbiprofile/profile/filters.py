# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Parsing of command-line match/exclude expressions.

An expression names a path segment and a value, e.g. "key2=execute".
A value written as /regex/ or /regex/i is compiled into a pattern.
"""

import re

from dbiprofile.profile.dataset import KeyValue, parse_key_field

REGEX_VALUE_PATTERN = re.compile(r"^/(.*)/(i?)$", re.DOTALL)


def parse_key_filter(expr: str) -> tuple[str, KeyValue]:
    """
    Parse a 'keyN=value' expression.

    Args:
        expr: Filter expression (e.g., "key1=SELECT 1", "key1=/^select/i")

    Returns:
        (field, value) where field is "keyN" and value is a string or a
        compiled pattern, ready to pass as DataSet.match(**{field: value})

    Raises:
        ValueError: If the expression is invalid

    Examples:
        >>> parse_key_filter("key2=execute")
        ('key2', 'execute')
        >>> parse_key_filter("key1=/^select/i")[1].flags & re.IGNORECASE != 0
        True
    """
    if "=" not in expr:
        raise ValueError(
            f"Invalid filter expression: '{expr}'. Expected format: 'keyN=value'"
        )

    field, value = expr.split("=", 1)
    field = field.strip()

    if parse_key_field(field) is None:
        raise ValueError(
            f"Invalid filter field: '{field}'. Expected key1, key2, ..."
        )

    match = REGEX_VALUE_PATTERN.match(value)
    if match:
        flags = re.IGNORECASE if match.group(2) else 0
        try:
            return field, re.compile(match.group(1), flags)
        except re.error as e:
            raise ValueError(f"Invalid regular expression '{value}': {e}") from e

    return field, value
