"""Tests for the CLI command functions."""

# Standard imports
import contextlib
import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

# Project imports
import pbbcbp.tools as bpt
from pbbcbp.test_boarding_pass import BASIC_BCBP, MULTI_LEG_WITH_SECURITY_BCBP
from pbbcbp.test_pkpass import write_pkpass


def run(func, *args) -> str:
    """Runs a command function and returns what it printed."""
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        func(*args)
    return out.getvalue()


class TestDecodeBcbp(unittest.TestCase):
    def test_valid_pass(self):
        output = run(bpt.decode_bcbp, BASIC_BCBP, 2026)
        self.assertIn("Luc Desmarais: YUL->FRA | AC834 | Seat 1A", output)
        self.assertIn("2026-08-14", output)
        self.assertIn("ABC123", output)

    def test_multi_leg_pass(self):
        output = run(bpt.decode_bcbp, MULTI_LEG_WITH_SECURITY_BCBP, 2026)
        self.assertIn("LH3664", output)
        self.assertIn("Bag tags: 0014123456003", output)
        self.assertIn("Security data: type 1, 100 characters", output)

    def test_invalid_pass_exits(self):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            with self.assertRaises(SystemExit) as cm:
                bpt.decode_bcbp("M1short")
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("not valid", out.getvalue())

    @mock.patch.dict(os.environ, {'BCBP_REFERENCE_YEAR': "2030"})
    def test_reference_year_from_environment(self):
        output = run(bpt.decode_bcbp, BASIC_BCBP)
        self.assertIn("2030-08-14", output)


class TestEnvironment(unittest.TestCase):
    @mock.patch.dict(os.environ, {'BCBP_REFERENCE_YEAR': "2031"})
    def test_reference_year(self):
        self.assertEqual(bpt.env_reference_year(), 2031)

    @mock.patch.dict(os.environ, {'BCBP_REFERENCE_YEAR': ""})
    def test_blank_reference_year(self):
        self.assertIsNone(bpt.env_reference_year())

    @mock.patch.dict(os.environ, {'BCBP_REFERENCE_YEAR': "next year"})
    def test_bad_reference_year(self):
        with self.assertRaises(ValueError):
            bpt.env_reference_year()


class TestPKPasses(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.folder = Path(self._tmp.name)
        write_pkpass(self.folder, "a.pkpass", {
            'relevantDate': "2026-08-14T14:00:00Z",
            'barcode': {
                'format': "PKBarcodeFormatAztec",
                'message': BASIC_BCBP,
            },
        })
        write_pkpass(self.folder, "b.pkpass", {
            'barcode': {
                'format': "PKBarcodeFormatCode128",
                'message': "1234567890",
            },
        })

    def tearDown(self):
        self._tmp.cleanup()

    def test_decode_pkpasses(self):
        output = run(bpt.decode_pkpasses, [self.folder / "a.pkpass"])
        self.assertIn("Luc Desmarais", output)
        self.assertIn("20260814T1400Z_AC_834_YUL-FRA.pkpass", output)

    def test_import_pkpasses(self):
        with mock.patch.dict(os.environ, {'BCBP_IMPORT_PATH': str(self.folder)}):
            output = run(bpt.import_pkpasses)
        self.assertIn("20260814T1400Z_AC_834_YUL-FRA.pkpass", output)
        self.assertIn("Skipping this pass", output)

    def test_import_pkpasses_empty_folder(self):
        empty = self.folder / "empty"
        empty.mkdir()
        with mock.patch.dict(os.environ, {'BCBP_IMPORT_PATH': str(empty)}):
            output = run(bpt.import_pkpasses)
        self.assertIn("No .pkpass files found", output)

    def test_import_path_missing(self):
        with mock.patch.dict(os.environ, clear=True):
            with self.assertRaises(KeyError):
                bpt.import_pkpasses()

    def test_import_path_not_a_directory(self):
        path = str(self.folder / "a.pkpass")
        with mock.patch.dict(os.environ, {'BCBP_IMPORT_PATH': path}):
            with self.assertRaises(KeyError):
                bpt.import_pkpasses()


if __name__ == "__main__":
    unittest.main()
