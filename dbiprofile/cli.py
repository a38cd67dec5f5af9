# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
dbiprof CLI entry point.

Provides command-line interface for DBI profile reports.
"""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version

import click
from dbiprofile.report.cli import merge_command, report_command, tree_command


def _get_package_version() -> str:
    """Get package version from metadata."""
    try:
        return version("dbiprofile")
    except PackageNotFoundError:
        return "0+unknown"


EXAMPLES = """
Examples:
  dbiprof report dbi.prof
  dbiprof report dbi.prof.* --sort count --number 20
  dbiprof report dbi.prof --exclude key2=disconnect --match "key1=/^SELECT/i"
  dbiprof tree dbi.prof -o tree.json
"""


@click.group(epilog=EXAMPLES)
@click.version_option(version=_get_package_version(), prog_name="dbiprof")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log progress while loading dump files.",
)
def main(verbose: bool) -> None:
    """dbiprof: DBI profile data analysis tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
main.add_command(report_command)
main.add_command(tree_command)
main.add_command(merge_command)


if __name__ == "__main__":
    sys.exit(main())
