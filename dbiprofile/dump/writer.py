# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Write a DataSet back out in the dump-file format.

Used to merge several dumps into one file. Only path segments that differ
from the previous record's path are written, as the profiler does.
"""

from pathlib import Path
from typing import Union

import zstandard as zstd
from dbiprofile.dump.pathcodec import escape_key
from dbiprofile.profile.dataset import DataSet
from dbiprofile.profile.model import Statistics


def format_stats_line(stats: Statistics) -> str:
    """Format the "=" line for a set of statistics."""
    values = [str(stats.count)] + [repr(float(v)) for v in stats.as_list()[1:]]
    return "= " + " ".join(values)


def format_dump(data: DataSet) -> str:
    """
    Serialize a data set in dump-file format.

    Returns:
        The dump text; loading it reproduces the records of data
    """
    lines = [data.header.profiler]
    lines.extend(f"{key} = {value}" for key, value in data.header.values.items())
    lines.append("")

    previous: list[str] = []
    for record in data.records:
        # find the first depth where this path departs from the previous one
        common = 0
        for old, new in zip(previous, record.path):
            if old != new:
                break
            common += 1
        if record.path and common == len(record.path):
            # prefix of (or equal to) the previous path; restate the last segment
            common -= 1
        for depth in range(common + 1, len(record.path) + 1):
            lines.append(f"+ {depth} {escape_key(record.path[depth - 1])}")
        lines.append(format_stats_line(record.stats))
        previous = record.path

    return "\n".join(lines) + "\n"


def write_dump(
    data: DataSet, path: Union[str, Path], compress: bool = False
) -> Path:
    """
    Write data to path in dump-file format.

    Args:
        data: The data set to write
        path: Output file path
        compress: Compress the output with Zstd

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = format_dump(data).encode("utf-8", errors="surrogateescape")
    if compress:
        cctx = zstd.ZstdCompressor()
        content = cctx.compress(content)
    path.write_bytes(content)
    return path
