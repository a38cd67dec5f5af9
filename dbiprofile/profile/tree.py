# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Hierarchical view of profile records.

The profiler keeps its data as nested mappings, one level per path
segment, with the statistics stored under the last segment. to_tree()
rebuilds that shape from the flat record list for consumers that expect
it. The result is not sorted.
"""

from dataclasses import dataclass, field
from typing import Iterable, Union

from dbiprofile.profile.model import ProfileDataError, Record, Statistics


class TreeConflictError(ProfileDataError):
    """Raised when a path is used both as a leaf and as a branch."""

    pass


@dataclass
class Leaf:
    """Statistics stored under the last segment of a path."""

    stats: Statistics


@dataclass
class Branch:
    """One nesting level, mapping path segments to deeper nodes."""

    children: dict[str, Union["Branch", Leaf]] = field(default_factory=dict)


Node = Union[Branch, Leaf]


def to_tree(records: Iterable[Record]) -> Branch:
    """
    Build a tree from records, keyed by path segment.

    Args:
        records: Records to place in the tree

    Returns:
        The root Branch

    Raises:
        TreeConflictError: If one record's path is a prefix of another's,
            since a node cannot hold both statistics and children
    """
    root = Branch()

    for record in records:
        if not record.path:
            continue
        node = root
        for depth, segment in enumerate(record.path[:-1], start=1):
            child = node.children.setdefault(segment, Branch())
            if isinstance(child, Leaf):
                raise TreeConflictError(
                    f"Path {record.path[:depth]!r} is both a leaf and a branch"
                )
            node = child

        last = record.path[-1]
        if isinstance(node.children.get(last), Branch):
            raise TreeConflictError(
                f"Path {record.path!r} is both a leaf and a branch"
            )
        node.children[last] = Leaf(record.stats.copy())

    return root


def tree_to_dict(node: Node) -> Union[dict, list]:
    """
    Convert a tree into plain nested dicts for serialization.

    Leaves become seven-element lists in dump-file order.
    """
    if isinstance(node, Leaf):
        return node.stats.as_list()

    result: dict = {}
    # (source branch, destination dict) pairs still to copy
    pending = [(node, result)]
    while pending:
        branch, target = pending.pop()
        for segment, child in branch.children.items():
            if isinstance(child, Leaf):
                target[segment] = child.stats.as_list()
            else:
                target[segment] = {}
                pending.append((child, target[segment]))
    return result
