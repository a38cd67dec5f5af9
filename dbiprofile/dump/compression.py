# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Opening dump files for reading.

Dump files are plain text, but archived dumps are often Zstd-compressed.
Compression is detected by magic number and handled transparently. Every
file is read under a shared lock so that a reader waits for a profiler
that is still writing the file.

Keys are raw SQL text in whatever encoding the application used. Bytes
that are not valid UTF-8 are decoded as surrogate escapes so they survive
a load and write back out unchanged.
"""

import fcntl
import io
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO, Union

import zstandard as zstd

# Zstd magic number (little-endian): 0xFD2FB528
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


@contextmanager
def open_dump_file(filepath: Union[str, Path]) -> Iterator[Optional[TextIO]]:
    """
    Open a dump file under a shared lock, handling compression.

    Yields None for an empty file. The lock is held until the context
    exits.

    Args:
        filepath: Path to the dump file

    Yields:
        Text stream for reading the file contents, or None if it is empty

    Raises:
        OSError: If the file cannot be opened or locked

    Example:
        >>> with open_dump_file("dbi.prof") as f:
        ...     for line in f:
        ...         process(line)
    """
    with open(filepath, "rb") as binary_file:
        # blocks until a writer holding LOCK_EX is done
        fcntl.flock(binary_file.fileno(), fcntl.LOCK_SH)
        try:
            if os.fstat(binary_file.fileno()).st_size == 0:
                yield None
                return

            magic = binary_file.read(4)
            binary_file.seek(0)

            if magic == ZSTD_MAGIC:
                # Use zstandard's stream_reader which handles multiple frames
                dctx = zstd.ZstdDecompressor()
                with dctx.stream_reader(
                    binary_file, read_across_frames=True, closefd=False
                ) as reader:
                    with io.TextIOWrapper(
                        reader,
                        encoding="utf-8",
                        errors="surrogateescape",
                        newline="\n",
                    ) as text_stream:
                        yield text_stream
            else:
                text_stream = io.TextIOWrapper(
                    binary_file,
                    encoding="utf-8",
                    errors="surrogateescape",
                    newline="\n",
                )
                try:
                    yield text_stream
                finally:
                    # leave the underlying file open so the lock can be released
                    text_stream.detach()
        finally:
            fcntl.flock(binary_file.fileno(), fcntl.LOCK_UN)
