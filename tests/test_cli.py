# Copyright (c) Meta Platforms, Inc. and affiliates.

"""Tests for the dbiprof CLI."""

import json
import unittest

from click.testing import CliRunner
from dbiprofile.cli import main
from tests.test_base import (
    BaseProfileTest,
    MERGE_DUMP_A,
    MERGE_DUMP_B,
    SAMPLE_DUMP,
    SELECT_SQL,
    UPDATE_SQL,
)


class TestMainCommand(unittest.TestCase):
    """Tests for the command group."""

    def setUp(self):
        self.runner = CliRunner()

    def test_help(self):
        result = self.runner.invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("report", result.output)
        self.assertIn("tree", result.output)
        self.assertIn("merge", result.output)

    def test_version(self):
        result = self.runner.invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("dbiprof", result.output)


class TestReportCommand(BaseProfileTest):
    """Tests for the report subcommand."""

    def setUp(self):
        super().setUp()
        self.runner = CliRunner()
        self.dump_file = self.create_temp_file("dbi.prof", SAMPLE_DUMP)

    def invoke(self, *args):
        return self.runner.invoke(main, ["report", str(self.dump_file), *args])

    def test_report_default(self):
        result = self.invoke()
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DBI Profile Data (DBI::ProfileDumper", result.output)
        self.assertIn("Total Records : 4 (showing 4, sorted by total)", result.output)
        # largest total first
        self.assertLess(
            result.output.index(UPDATE_SQL), result.output.index(SELECT_SQL)
        )

    def test_report_number_and_sort(self):
        result = self.invoke("--number", "1", "--sort", "count")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("(showing 1, sorted by count)", result.output)
        self.assertIn(SELECT_SQL, result.output)
        self.assertNotIn(UPDATE_SQL, result.output)

    def test_report_reverse(self):
        result = self.invoke("-n", "1", "--reverse")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("fetchrow_array", result.output)

    def test_report_exclude(self):
        result = self.invoke("--exclude", "key2=execute")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Total Records : 2", result.output)
        self.assertNotIn("Key 2         : execute", result.output)

    def test_report_match_regex(self):
        result = self.invoke("--match", "key1=/^select/i")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Total Records : 2", result.output)
        self.assertNotIn(UPDATE_SQL, result.output)

    def test_report_match_case_sensitive(self):
        result = self.invoke("--match", "key2=EXECUTE", "--case-sensitive")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Total Records : 0", result.output)

    def test_report_table(self):
        result = self.invoke("--format", "table")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("SHORTEST", result.output)
        self.assertIn("disconnect", result.output)

    def test_report_json(self):
        result = self.invoke("--format", "json", "-n", "2")
        self.assertEqual(result.exit_code, 0, result.output)
        records = json.loads(result.output)
        self.assertEqual(len(records), 2)
        self.assertEqual(records[0]["path"], [UPDATE_SQL, "execute"])

    def test_report_output_file(self):
        output_file = self.temp_dir / "report.txt"
        result = self.invoke("-o", str(output_file))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DBI Profile Data", output_file.read_text())

    def test_report_bad_sort_field(self):
        result = self.invoke("--sort", "average")
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Unrecognized sort field", result.output)

    def test_report_bad_filter(self):
        result = self.invoke("--exclude", "execute")
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Invalid filter expression", result.output)

    def test_report_parse_error(self):
        bad_file = self.create_temp_file("bad.prof", "Profiler\n\nbogus line\n")
        result = self.runner.invoke(main, ["report", str(bad_file)])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("line 3", result.output)

    def test_report_latin1_key(self):
        dump_file = self.temp_dir / "latin1.prof"
        dump_file.write_bytes(
            b"Profiler\n\n+ 1 SELECT \xe9\n= 1 0.1 0.1 0.1 0.1 1.0 2.0\n"
        )
        result = self.runner.invoke(main, ["report", str(dump_file)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Key 1         : SELECT ", result.output)
        self.assertIn(b"SELECT \xe9", result.stdout_bytes)

    def test_report_corrupt_zstd(self):
        dump_file = self.temp_dir / "dbi.prof.zst"
        dump_file.write_bytes(b"\x28\xb5\x2f\xfd" + b"\xff" * 32)
        result = self.runner.invoke(main, ["report", str(dump_file)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unable to read profile file", result.output)

    def test_report_nonexistent_file(self):
        result = self.runner.invoke(main, ["report", "/nonexistent/dbi.prof"])
        self.assertNotEqual(result.exit_code, 0)

    def test_report_merges_files(self):
        file_a = self.create_temp_file("a.prof", MERGE_DUMP_A)
        file_b = self.create_temp_file("b.prof", MERGE_DUMP_B)
        result = self.runner.invoke(main, ["report", str(file_a), str(file_b)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Total Records : 1", result.output)
        self.assertIn("Count         : 3", result.output)

    def test_report_delete(self):
        result = self.invoke("--delete")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertFalse(self.dump_file.exists())


class TestTreeCommand(BaseProfileTest):
    """Tests for the tree subcommand."""

    def test_tree_json(self):
        dump_file = self.create_temp_file("dbi.prof", SAMPLE_DUMP)
        result = CliRunner().invoke(main, ["tree", str(dump_file)])
        self.assertEqual(result.exit_code, 0, result.output)
        tree = json.loads(result.output)
        self.assertEqual(set(tree), {SELECT_SQL, UPDATE_SQL, ""})
        self.assertEqual(tree[SELECT_SQL]["execute"][0], 4)
        self.assertEqual(len(tree[""]["disconnect"]), 7)

    def test_tree_conflict(self):
        dump_file = self.create_temp_file(
            "dbi.prof", "P\n\n+ 1 a\n= 1 1 1 1 1 1 1\n+ 2 b\n= 1 1 1 1 1 1 1\n"
        )
        result = CliRunner().invoke(main, ["tree", str(dump_file)])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("both a leaf and a branch", result.output)


class TestMergeCommand(BaseProfileTest):
    """Tests for the merge subcommand."""

    def test_merge_files(self):
        file_a = self.create_temp_file("a.prof", MERGE_DUMP_A)
        file_b = self.create_temp_file("b.prof", MERGE_DUMP_B)
        output_file = self.temp_dir / "merged.prof"
        result = CliRunner().invoke(
            main, ["merge", str(file_a), str(file_b), "-o", str(output_file)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        content = output_file.read_text()
        self.assertIn("+ 1 SELECT 1\n", content)
        self.assertIn("\n= 3 ", content)

    def test_merge_requires_output(self):
        file_a = self.create_temp_file("a.prof", MERGE_DUMP_A)
        result = CliRunner().invoke(main, ["merge", str(file_a)])
        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
