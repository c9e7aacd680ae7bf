from pathlib import Path
import tempfile
import unittest

from ladder_RunAuditor.core.classify import classify_directory
from ladder_RunAuditor.core.config import AuditCfg
from ladder_RunAuditor.core.model import Area, Category
from ladder_RunAuditor.core.normalize import parse_hw_index, parse_timestamp

from run_tree import channel_files, root_bytes, write


class NameParsingTests(unittest.TestCase):
    def test_hw_index_inside_range(self):
        self.assertEqual(parse_hw_index("r_HW_7_SET_0_elect.txt").value, 7)

    def test_hw_index_out_of_range_is_rejected(self):
        parsed = parse_hw_index("r_HW_8_SET_0_elect.txt")
        self.assertIsNone(parsed.value)
        self.assertIn("outside", parsed.error)

    def test_hw_index_non_numeric_is_rejected(self):
        self.assertIsNotNone(parse_hw_index("r_HW_x_SET_0_elect.txt").error)

    def test_hw_index_unicode_digit_is_rejected(self):
        for name in ("r_HW_²_SET_0_elect.txt", "r_HW_٣_SET_0_elect.txt"):
            parsed = parse_hw_index(name)
            self.assertIsNone(parsed.value, name)
            self.assertIn("non-numeric", parsed.error)

    def test_name_without_hw_marker_has_no_index(self):
        parsed = parse_hw_index("r_elect.txt")
        self.assertFalse(parsed.present)

    def test_timestamp_is_canonical_with_seconds(self):
        self.assertEqual(parse_timestamp("_240115_0930").text, "240115_093000")
        self.assertEqual(parse_timestamp("_240115_093015").text, "240115_093015")

    def test_impossible_time_is_an_error(self):
        parsed = parse_timestamp("_240115_2530")
        self.assertIsNone(parsed.when)
        self.assertIsNotNone(parsed.error)

    def test_no_timestamp_token(self):
        parsed = parse_timestamp("feb_list.txt")
        self.assertIsNone(parsed.when)
        self.assertIsNone(parsed.error)


class ClassificationTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.cfg = AuditCfg()

    def tearDown(self):
        self._tmp.cleanup()

    def test_every_pscan_entry_gets_exactly_one_category(self):
        d = self.tmp / "pscan_files"
        names = {
            "module_test_run1.root": Category.MODULE_CONTAINER,
            "module_test_run1.txt": Category.MODULE_TEXT,
            "module_test_run1.pdf": Category.MODULE_PDF,
            "module_test_SETUP.txt": Category.AUXILIARY,
            "run1_HW_0_SET_0_elect.txt": Category.PSCAN_ELECTRON_TEXT,
            "run1_HW_0_SET_0_holes.txt": Category.PSCAN_HOLE_TEXT,
            "run1_HW_0_SET_0_elect.root": Category.PSCAN_ELECTRON_CONTAINER,
            "run1_HW_0_SET_0_holes.root": Category.PSCAN_HOLE_CONTAINER,
            "notes.md": Category.UNEXPECTED,
            "module_test_other.root": Category.UNEXPECTED,
        }
        for n in names:
            write(d / n, root_bytes() if n.endswith(".root") else "x\n")
        (d / "subdir").mkdir()

        listing = classify_directory(d, "run1", Area.PSCAN, self.cfg)

        self.assertIsNone(listing.dir_error)
        self.assertEqual(len(listing.records), len(names))
        for rec in listing.records:
            self.assertIs(rec.category, names[rec.name], rec.name)

    def test_log_area_categories(self):
        d = self.tmp / "run1"
        for n in ["run1_log.log", "run1_240115_0930_data.dat", "run1_data.dat",
                  "tester_febs_240115_0930.txt", "other_data.dat"]:
            write(d / n)

        listing = classify_directory(d, "run1", Area.LOG, self.cfg)
        by_name = {r.name: r for r in listing.records}

        self.assertIs(by_name["run1_log.log"].category, Category.LOG)
        self.assertIs(by_name["run1_240115_0930_data.dat"].category, Category.DATA)
        self.assertIsNotNone(by_name["run1_240115_0930_data.dat"].timestamp)
        self.assertTrue(by_name["run1_data.dat"].legacy)
        self.assertIs(by_name["tester_febs_240115_0930.txt"].category, Category.FEB_TESTER)
        self.assertIs(by_name["other_data.dat"].category, Category.UNEXPECTED)

    def test_data_file_with_garbage_timestamp_is_invalid_name(self):
        d = self.tmp / "run1"
        write(d / "run1_garbage_data.dat")
        rec = classify_directory(d, "run1", Area.LOG, self.cfg).records[0]
        self.assertIs(rec.category, Category.DATA)
        self.assertIsNotNone(rec.name_error)

    def test_duplicate_hw_index_does_not_count(self):
        d = self.tmp / "trim_files"
        channel_files(d, "run1", "elect", indices=range(7))
        write(d / "run1_HW_3_SET_1_elect.txt", "1\n")

        listing = classify_directory(d, "run1", Area.TRIM, self.cfg)
        electrons = listing.of(Category.TRIM_ELECTRON)

        self.assertEqual(len(electrons), 8)
        rejected = [r for r in electrons if r.name_error]
        self.assertEqual(len(rejected), 1)
        self.assertIn("duplicate", rejected[0].name_error)

    def test_out_of_range_hw_index_keeps_category(self):
        d = self.tmp / "conn_check_files"
        write(d / "run1_HW_9_SET_0_holes.txt", "1\n")
        rec = classify_directory(d, "run1", Area.CONN, self.cfg).records[0]
        self.assertIs(rec.category, Category.CONN_HOLE)
        self.assertIsNone(rec.hw_index)
        self.assertFalse(rec.counts_as_valid_name)

    def test_unreadable_directory_reports_error(self):
        listing = classify_directory(self.tmp / "nope", "run1", Area.TRIM, self.cfg)
        self.assertIsNotNone(listing.dir_error)
        self.assertEqual(listing.records, ())


if __name__ == "__main__":
    unittest.main()
