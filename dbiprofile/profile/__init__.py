# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
In-memory profile data: records, statistics, queries and tree export.
"""

from .dataset import DataSet
from .model import (
    Header,
    merge_statistics,
    ProfileDataError,
    Record,
    Statistics,
    UsageError,
)
from .tree import Branch, Leaf, to_tree, tree_to_dict, TreeConflictError

__all__ = [
    "DataSet",
    "Header",
    "merge_statistics",
    "ProfileDataError",
    "Record",
    "Statistics",
    "UsageError",
    "Branch",
    "Leaf",
    "to_tree",
    "tree_to_dict",
    "TreeConflictError",
]
