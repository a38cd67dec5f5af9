# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
dbiprofile: load, merge, query and report DBI profile dump files.

Example:
    >>> from dbiprofile import load_profile
    >>> data = load_profile(files=["dbi.prof.1", "dbi.prof.2"])
    >>> data.sort("longest")
    >>> data.exclude(key2="disconnect")
    >>> print(data.report(number=10))
"""

from dbiprofile.dump import (
    DumpLoader,
    DumpParseError,
    DumpReadError,
    escape_key,
    format_dump,
    load_profile,
    unescape_key,
    write_dump,
)
from dbiprofile.profile import (
    Branch,
    DataSet,
    Header,
    Leaf,
    merge_statistics,
    ProfileDataError,
    Record,
    Statistics,
    to_tree,
    tree_to_dict,
    TreeConflictError,
    UsageError,
)

__all__ = [
    # Loading
    "load_profile",
    "DumpLoader",
    "DumpParseError",
    "DumpReadError",
    # Dump format
    "escape_key",
    "unescape_key",
    "format_dump",
    "write_dump",
    # Data model
    "DataSet",
    "Header",
    "Record",
    "Statistics",
    "merge_statistics",
    "ProfileDataError",
    "UsageError",
    # Tree export
    "Branch",
    "Leaf",
    "to_tree",
    "tree_to_dict",
    "TreeConflictError",
]
