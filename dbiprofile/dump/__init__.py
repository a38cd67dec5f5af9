# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Dump file handling.

- load_profile / DumpLoader: read and merge dump files
- escape_key / unescape_key: path key escaping
- format_dump / write_dump: write a data set as a dump file
"""

from .loader import DumpLoader, DumpParseError, DumpReadError, load_profile
from .pathcodec import escape_key, unescape_key
from .writer import format_dump, write_dump

__all__ = [
    "DumpLoader",
    "DumpParseError",
    "DumpReadError",
    "load_profile",
    "escape_key",
    "unescape_key",
    "format_dump",
    "write_dump",
]
