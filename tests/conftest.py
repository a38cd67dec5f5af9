# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Pytest configuration and shared fixtures for dbiprofile tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from dbiprofile.dump.loader import load_profile
from dbiprofile.profile.dataset import DataSet

from tests.test_base import MERGE_DUMP_A, MERGE_DUMP_B, SAMPLE_DUMP


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_dump_file(temp_dir: Path) -> Path:
    """Create a dump file with four records."""
    filepath = temp_dir / "dbi.prof"
    filepath.write_text(SAMPLE_DUMP)
    return filepath


@pytest.fixture
def merge_dump_files(temp_dir: Path) -> list[Path]:
    """Create two dump files that share one path."""
    file_a = temp_dir / "dbi.prof.a"
    file_b = temp_dir / "dbi.prof.b"
    file_a.write_text(MERGE_DUMP_A)
    file_b.write_text(MERGE_DUMP_B)
    return [file_a, file_b]


@pytest.fixture
def sample_data(sample_dump_file: Path) -> DataSet:
    """Load the sample dump file."""
    return load_profile(file=sample_dump_file)
