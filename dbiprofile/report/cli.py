# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
CLI implementation for the report, tree and merge subcommands.
"""

import json
from pathlib import Path
from typing import Optional

import click
from dbiprofile.dump.loader import load_profile
from dbiprofile.dump.writer import write_dump
from dbiprofile.profile.dataset import DataSet
from dbiprofile.profile.filters import parse_key_filter
from dbiprofile.profile.model import ProfileDataError
from dbiprofile.profile.tree import tree_to_dict
from dbiprofile.report.formatters import (
    format_records_json,
    format_records_table,
    format_report,
)

files_argument = click.argument(
    "files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)

delete_option = click.option(
    "--delete",
    "delete_files",
    is_flag=True,
    default=False,
    help="Delete the dump files after reading them.",
)


def _load(files: tuple[Path, ...], delete_files: bool) -> DataSet:
    """Load dump files, defaulting to ./dbi.prof."""
    try:
        return load_profile(files=list(files) or None, delete_files=delete_files)
    except ProfileDataError as e:
        raise click.ClickException(str(e))


def _write_output(output: str, output_file: Optional[Path]) -> None:
    """Write output to file or stdout, passing undecodable key bytes through."""
    if output_file:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(
            output + "\n", encoding="utf-8", errors="surrogateescape"
        )
        click.echo(f"Output written to {output_file}", err=True)
    else:
        click.echo(output.encode("utf-8", errors="surrogateescape"))


def _apply_filters(
    data: DataSet,
    matches: tuple[str, ...],
    excludes: tuple[str, ...],
    case_sensitive: bool,
) -> None:
    try:
        for expr in matches:
            field, value = parse_key_filter(expr)
            data.match(case_sensitive=case_sensitive, **{field: value})
        for expr in excludes:
            field, value = parse_key_filter(expr)
            data.exclude(case_sensitive=case_sensitive, **{field: value})
    except ValueError as e:
        raise click.ClickException(str(e))


@click.command(name="report")
@files_argument
@click.option(
    "--number",
    "-n",
    type=int,
    default=10,
    show_default=True,
    help="Number of records to show.",
)
@click.option(
    "--sort",
    "-s",
    "sort_field",
    type=str,
    default="total",
    show_default=True,
    help="Sort field: total, count, longest, shortest or keyN.",
)
@click.option(
    "--reverse",
    "-r",
    is_flag=True,
    default=False,
    help="Sort smallest first.",
)
@click.option(
    "--match",
    "-m",
    "matches",
    multiple=True,
    help="Keep only records where keyN equals value (e.g., 'key2=execute', 'key1=/^SELECT/i').",
)
@click.option(
    "--exclude",
    "-x",
    "excludes",
    multiple=True,
    help="Remove records where keyN equals value (e.g., 'key2=disconnect').",
)
@click.option(
    "--case-sensitive",
    is_flag=True,
    default=False,
    help="Compare --match and --exclude string values case-sensitively.",
)
@delete_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "table", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output",
    "-o",
    "output_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path (default: stdout).",
)
def report_command(
    files: tuple[Path, ...],
    number: int,
    sort_field: str,
    reverse: bool,
    matches: tuple[str, ...],
    excludes: tuple[str, ...],
    case_sensitive: bool,
    delete_files: bool,
    output_format: str,
    output_file: Optional[Path],
) -> None:
    """
    Report on profile data from FILES (default: dbi.prof).

    Records with the same path in several files are merged.

    \b
    Examples:
      dbiprof report dbi.prof
      dbiprof report dbi.prof.1 dbi.prof.2 --sort longest --number 5
      dbiprof report dbi.prof --sort count --reverse
      dbiprof report dbi.prof --match key2=execute --format table
    """
    data = _load(files, delete_files)
    _apply_filters(data, matches, excludes, case_sensitive)

    try:
        data.sort(sort_field, reverse=reverse)
    except ProfileDataError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        output = format_records_json(data.records[:number])
    elif output_format == "table":
        output = format_records_table(data.records[:number])
    else:
        output = format_report(data, number)

    _write_output(output, output_file)


@click.command(name="tree")
@files_argument
@delete_option
@click.option(
    "--output",
    "-o",
    "output_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path (default: stdout).",
)
def tree_command(
    files: tuple[Path, ...],
    delete_files: bool,
    output_file: Optional[Path],
) -> None:
    """
    Print profile data from FILES as a nested JSON tree.

    Each level is keyed by a path segment; leaves hold the seven
    statistics [count, total, first, shortest, longest, first_at, last_at].
    """
    data = _load(files, delete_files)

    try:
        tree = data.to_tree()
    except ProfileDataError as e:
        raise click.ClickException(str(e))

    _write_output(json.dumps(tree_to_dict(tree), indent=2), output_file)


@click.command(name="merge")
@files_argument
@delete_option
@click.option(
    "--output",
    "-o",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Merged dump file to write.",
)
@click.option(
    "--compress",
    is_flag=True,
    default=False,
    help="Compress output with Zstd.",
)
def merge_command(
    files: tuple[Path, ...],
    delete_files: bool,
    output_file: Path,
    compress: bool,
) -> None:
    """
    Merge dump FILES into a single dump file.

    \b
    Examples:
      dbiprof merge dbi.prof.* -o merged.prof
      dbiprof merge dbi.prof.* -o merged.prof.zst --compress --delete
    """
    data = _load(files, delete_files)
    write_dump(data, output_file, compress=compress)
    click.echo(f"{data.count()} records written to {output_file}", err=True)
