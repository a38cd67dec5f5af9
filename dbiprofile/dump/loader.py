# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Loader for DBI profile dump files.

A dump file has a header and a body:

    DBI::ProfileDumper 2.015325 (DBI::Profile 2.015325)
    Path = [ '!Statement', '!MethodName' ]
    Program = myapp.pl

    + 1 SELECT name FROM users WHERE id = ?
    + 2 execute
    = 4 0.0123 0.0050 0.0010 0.0050 1023115819.83 1023115819.87
    + 2 fetchrow_array
    = 4 0.0004 0.0001 0.0001 0.0001 1023115819.84 1023115819.88

"+ <depth> <key>" lines maintain a stack of path segments and "=" lines
carry the seven statistics for the current path. Records with the same
path, in one file or across files, are merged.
"""

import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

import zstandard as zstd
from dbiprofile.dump.compression import open_dump_file
from dbiprofile.dump.pathcodec import unescape_key
from dbiprofile.profile.dataset import DataSet
from dbiprofile.profile.model import Header, ProfileDataError, Record, Statistics

logger = logging.getLogger(__name__)

DEFAULT_DUMP_FILE = "dbi.prof"

# Suffix given to files renamed before reading when delete_files is set
DELETE_SUFFIX = ".deleteme"

HEADER_LINE_PATTERN = re.compile(r"^(\S+)\s*=\s*(.*)$")
KEY_LINE_PATTERN = re.compile(r"^\+\s+(\d+)\s?(.*)$", re.DOTALL)
DATA_LINE_PATTERN = re.compile(r"^=\s+(.*)$", re.DOTALL)

# Path segments never contain NUL, so joining on it gives a unique lookup key
PATH_SEPARATOR = "\0"

FilterFunc = Callable[[list[str], Statistics], None]
PathLike = Union[str, Path]


class DumpReadError(ProfileDataError):
    """Raised when a dump file cannot be renamed, opened or locked."""

    pass


class DumpParseError(ProfileDataError):
    """Raised for a malformed line in a dump file."""

    def __init__(self, message: str, filename: PathLike, line_number: int, line: str):
        self.filename = str(filename)
        self.line_number = line_number
        self.line = line
        super().__init__(f"{message} in {filename} line {line_number}: {line}")


def _chomp(line: str) -> str:
    return line[:-1] if line.endswith("\n") else line


class DumpLoader:
    """
    Reads one or more dump files into a single DataSet.

    The header is taken from the first non-empty file; headers of later
    files are parsed (so syntax errors are still reported) and discarded.

    Example:
        >>> loader = DumpLoader(["dbi.prof.1", "dbi.prof.2"])
        >>> data = loader.load()
        >>> data.count()
        42
    """

    def __init__(
        self,
        files: list[PathLike],
        delete_files: bool = False,
        filter: Optional[FilterFunc] = None,
    ) -> None:
        """
        Args:
            files: Dump files to read, in order
            delete_files: Rename each file before reading and delete it after
            filter: Called with (path, stats) for every data line before the
                record is merged. It may modify either argument in place.
        """
        self.files = list(files)
        self.delete_files = delete_files
        self.filter = filter

    def load(self) -> DataSet:
        """
        Read all files and return the merged data set.

        Raises:
            DumpReadError: If a file cannot be renamed, opened or locked
            DumpParseError: If a file contains a malformed line
        """
        self._header: Optional[Header] = None
        self._records: list[Record] = []
        self._lookup: dict[str, int] = {}

        try:
            for filename in self.files:
                self._read_file(filename)
            header = self._header or Header()
            return DataSet(header=header, records=self._records)
        finally:
            # the lookup table is only needed while merging
            del self._lookup

    def _read_file(self, filename: PathLike) -> None:
        if self.delete_files:
            new_filename = f"{filename}{DELETE_SUFFIX}"
            try:
                os.rename(filename, new_filename)
            except OSError as e:
                raise DumpReadError(
                    f"Can't rename({filename}, {new_filename}): {e}"
                ) from e
            filename = new_filename

        before = len(self._records)
        try:
            with open_dump_file(filename) as stream:
                if stream is not None:
                    lines = enumerate(stream, start=1)
                    self._read_header(lines, filename, keep=self._header is None)
                    self._read_body(lines, filename)
        except (OSError, UnicodeError, zstd.ZstdError) as e:
            raise DumpReadError(
                f"Unable to read profile file '{filename}': {e}"
            ) from e

        logger.debug(
            "Read %s: %d new records, %d total",
            filename,
            len(self._records) - before,
            len(self._records),
        )

        if self.delete_files:
            try:
                os.unlink(filename)
            except OSError as e:
                logger.warning("Can't delete '%s': %s", filename, e)

    def _read_header(
        self, lines: Iterator[tuple[int, str]], filename: PathLike, keep: bool
    ) -> None:
        """Read the header, storing it only if keep is set."""
        first = next(lines, None)
        if first is None:
            return

        header = Header(profiler=_chomp(first[1]))
        for line_number, raw in lines:
            line = _chomp(raw)
            if not line:
                break
            match = HEADER_LINE_PATTERN.match(line)
            if not match:
                raise DumpParseError(
                    "Syntax error in header", filename, line_number, line
                )
            header.values[match.group(1)] = match.group(2)

        if keep:
            self._header = header
        elif header.profiler != self._header.profiler:
            logger.info(
                "%s was written by '%s', keeping header from '%s'",
                filename,
                header.profiler,
                self._header.profiler,
            )

    def _read_body(self, lines: Iterator[tuple[int, str]], filename: PathLike) -> None:
        path = [""]
        for line_number, raw in lines:
            line = _chomp(raw)

            match = KEY_LINE_PATTERN.match(line)
            if match:
                depth = int(match.group(1))
                if depth < 1:
                    raise DumpParseError(
                        f"Invalid key depth {depth}", filename, line_number, line
                    )
                # the path is a stack indexed by depth; skipped levels are empty
                del path[depth - 1 :]
                path.extend([""] * (depth - 1 - len(path)))
                path.append(unescape_key(match.group(2)))
                continue

            match = DATA_LINE_PATTERN.match(line)
            if match:
                self._add_leaf(path, match.group(1), filename, line_number, line)
                continue

            raise DumpParseError(
                "Invalid line type syntax error", filename, line_number, line
            )

    def _add_leaf(
        self,
        path: list[str],
        data: str,
        filename: PathLike,
        line_number: int,
        line: str,
    ) -> None:
        try:
            # trailing empty fields are dropped
            stats = Statistics.from_fields(data.rstrip(" ").split(" "))
        except ValueError as e:
            raise DumpParseError(
                f"Invalid leaf node ({e})", filename, line_number, line
            ) from e

        leaf_path = list(path)
        if self.filter is not None:
            self.filter(leaf_path, stats)

        path_key = PATH_SEPARATOR.join(leaf_path)
        index = self._lookup.get(path_key)
        if index is not None:
            self._records[index].stats.merge(stats)
        else:
            self._records.append(Record(stats, leaf_path))
            self._lookup[path_key] = len(self._records) - 1


def load_profile(
    file: Optional[PathLike] = None,
    files: Optional[list[PathLike]] = None,
    delete_files: bool = False,
    filter: Optional[FilterFunc] = None,
) -> DataSet:
    """
    Load dump files into a DataSet.

    Args:
        file: A single dump file. Takes precedence over files.
        files: Dump files to read. Defaults to ["dbi.prof"].
        delete_files: Delete each file after it has been read. The file is
            renamed first so a profiler still appending to the original name
            starts a new file instead.
        filter: Optional hook called as filter(path, stats) for every data
            line before merging, e.g. to normalize SQL so that similar
            statements are aggregated together.

    Returns:
        The merged DataSet

    Raises:
        DumpReadError: If a file cannot be renamed, opened or locked
        DumpParseError: If a file contains a malformed line
    """
    if file is not None:
        files = [file]
    elif files is None:
        files = [DEFAULT_DUMP_FILE]

    return DumpLoader(files, delete_files=delete_files, filter=filter).load()
