from pathlib import Path
import tempfile
import unittest

from ladder_RunAuditor.core.config import AuditCfg
from ladder_RunAuditor.core.content import summarize_content
from ladder_RunAuditor.core.model import (
    Area, Category, ConnFlag, ContentState, FileRecord, LogFlag, PscanFlag, Reason, RunVerdict,
    TrimFlag, ValidationOutcome, decode_flags,
)
from ladder_RunAuditor.core.pipeline import validate_run
from ladder_RunAuditor.core.verdict import classify_verdict
from ladder_RunAuditor.loaders.container_loader import verify_root

from run_tree import INVALID_DATA, VALID_DATA, make_run, write


class VerdictTests(unittest.TestCase):
    def test_no_flags_passes(self):
        outcomes = [ValidationOutcome(Area.LOG, LogFlag(0)), ValidationOutcome(Area.TRIM, TrimFlag(0))]
        self.assertIs(classify_verdict(outcomes), RunVerdict.PASSED)

    def test_cosmetic_only_passes_with_issues(self):
        outcomes = [ValidationOutcome(Area.LOG, LogFlag.DATA_EMPTY | LogFlag.UNEXPECTED_FILES),
                    ValidationOutcome(Area.PSCAN, PscanFlag.EMPTY_CONTENT)]
        self.assertIs(classify_verdict(outcomes), RunVerdict.PASSED_WITH_ISSUES)

    def test_any_critical_flag_fails(self):
        outcomes = [ValidationOutcome(Area.LOG, LogFlag.UNEXPECTED_FILES),
                    ValidationOutcome(Area.CONN, ConnFlag.HOLE_COUNT)]
        self.assertIs(classify_verdict(outcomes), RunVerdict.FAILED)

    def test_adding_flags_never_improves_the_verdict(self):
        order = [RunVerdict.PASSED, RunVerdict.PASSED_WITH_ISSUES, RunVerdict.FAILED]
        flags = LogFlag(0)
        last = classify_verdict([ValidationOutcome(Area.LOG, flags)])
        for member in LogFlag:
            flags |= member
            current = classify_verdict([ValidationOutcome(Area.LOG, flags)])
            self.assertGreaterEqual(order.index(current), order.index(last))
            last = current

    def test_aborted_run_fails(self):
        self.assertIs(classify_verdict([], aborted="disk gone"), RunVerdict.FAILED)

    def test_decode_flags(self):
        self.assertEqual(decode_flags(TrimFlag(0)), "OK")
        self.assertEqual(decode_flags(TrimFlag.ELECTRON_COUNT | TrimFlag.FILE_OPEN),
                         "ELECTRON_COUNT | FILE_OPEN")


class ContentSummaryTests(unittest.TestCase):
    def test_unreadable_file_keeps_category_from_counting_as_empty(self):
        records = [
            FileRecord(Path("run1_240115_0930_data.dat"), Category.DATA, accessible=False),
            FileRecord(Path("run1_240115_1000_data.dat"), Category.DATA, empty=True,
                       content=ContentState.INVALID),
        ]
        summary = summarize_content(records)

        self.assertEqual((summary.present, summary.readable, summary.empty), (2, 1, 1))
        self.assertFalse(summary.all_empty)

    def test_every_present_file_empty(self):
        records = [FileRecord(Path(f"run1_HW_{i}_SET_0_elect.txt"), Category.TRIM_ELECTRON, empty=True)
                   for i in range(3)]
        self.assertTrue(summarize_content(records).all_empty)
        self.assertFalse(summarize_content([]).all_empty)


class RunValidationTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.ladder = Path(self._tmp.name)
        self.cfg = AuditCfg()

    def tearDown(self):
        self._tmp.cleanup()

    def _validate(self, run):
        return validate_run(run, self.cfg, verify_root)

    def test_complete_run_has_no_flags(self):
        report = self._validate(make_run(self.ladder, "run1"))
        for area in Area:
            self.assertFalse(report.outcomes[area].flags, area)
        self.assertIs(report.verdict, RunVerdict.PASSED)
        self.assertEqual(report.outcomes[Area.TRIM].counts[Category.TRIM_ELECTRON], 8)

    def test_seven_electron_trim_files_fail(self):
        run = make_run(self.ladder, "run1")
        (run.root / "trim_files" / "run1_HW_7_SET_0_elect.txt").unlink()

        report = self._validate(run)

        self.assertEqual(report.outcomes[Area.TRIM].flags, TrimFlag.ELECTRON_COUNT)
        self.assertIs(report.verdict, RunVerdict.FAILED)

    def test_duplicate_index_in_conn_counts_seven(self):
        run = make_run(self.ladder, "run1")
        conn = run.root / "conn_check_files"
        (conn / "run1_HW_7_SET_0_holes.txt").unlink()
        write(conn / "run1_HW_2_SET_9_holes.txt", "1\n")

        flags = self._validate(run).outcomes[Area.CONN].flags

        self.assertIn(ConnFlag.HOLE_COUNT, flags)
        self.assertIn(ConnFlag.INVALID_FILENAME, flags)

    def test_data_without_marker_is_invalid(self):
        run = make_run(self.ladder, "run1", data={"_240115_0930": INVALID_DATA})
        outcome = self._validate(run).outcomes[Area.LOG]

        self.assertIn(LogFlag.DATA_INVALID, outcome.flags)
        self.assertEqual(outcome.files_for(Reason.INVALID_CONTENT),
                         [run.root / "run1_240115_0930_data.dat"])

    def test_marker_needs_two_non_blank_lines_after_it(self):
        run = make_run(self.ladder, "run1",
                       data={"_240115_0930": "LV_AFT_CONFIG_P\nonly one\n\n   \n"})
        self.assertIn(LogFlag.DATA_INVALID, self._validate(run).outcomes[Area.LOG].flags)

    def test_one_valid_data_file_is_enough(self):
        run = make_run(self.ladder, "run1",
                       data={"_240115_0930": VALID_DATA, "_240115_1000": INVALID_DATA},
                       testers=("tester_febs_240115_0930.txt", "tester_febs_240115_1000.txt"))
        outcome = self._validate(run).outcomes[Area.LOG]

        self.assertNotIn(LogFlag.DATA_INVALID, outcome.flags)
        self.assertEqual(len(outcome.files_for(Reason.INVALID_CONTENT)), 1)

    def test_empty_data_only_passes_with_issues(self):
        run = make_run(self.ladder, "run1", data={"_240115_0930": ""})
        report = self._validate(run)

        self.assertEqual(report.outcomes[Area.LOG].flags, LogFlag.DATA_EMPTY)
        self.assertIs(report.verdict, RunVerdict.PASSED_WITH_ISSUES)

    def test_unexpected_file_is_cosmetic(self):
        run = make_run(self.ladder, "run1")
        write(run.root / "trim_files" / "scratch.csv", "a,b\n")
        report = self._validate(run)

        self.assertEqual(report.outcomes[Area.TRIM].flags, TrimFlag.UNEXPECTED_FILES)
        self.assertIs(report.verdict, RunVerdict.PASSED_WITH_ISSUES)

    def test_missing_log_and_testers(self):
        run = make_run(self.ladder, "run1", log=False, testers=())
        outcome = self._validate(run).outcomes[Area.LOG]

        for flag in (LogFlag.LOG_MISSING, LogFlag.NO_FEB_FILE, LogFlag.NO_MATCHING_TESTER):
            self.assertIn(flag, outcome.flags)
        self.assertEqual(len(outcome.files_for(Reason.NO_MATCHING_TESTER)), 1)

    def test_data_far_from_any_tester_is_flagged_with_gap_limit(self):
        cfg = AuditCfg(max_gap_minutes=30)
        run = make_run(self.ladder, "run1", cfg, testers=("tester_febs_240115_1200.txt",))
        outcome = validate_run(run, cfg, verify_root).outcomes[Area.LOG]
        self.assertIn(LogFlag.NO_MATCHING_TESTER, outcome.flags)

    def test_missing_trim_folder(self):
        run = make_run(self.ladder, "run1", trim=False)
        report = self._validate(run)
        self.assertEqual(report.outcomes[Area.TRIM].flags, TrimFlag.FOLDER_MISSING)
        self.assertIs(report.verdict, RunVerdict.FAILED)

    def test_missing_module_pdf(self):
        run = make_run(self.ladder, "run1")
        (run.root / "pscan_files" / "module_test_run1.pdf").unlink()
        outcome = self._validate(run).outcomes[Area.PSCAN]

        self.assertEqual(outcome.flags, PscanFlag.MODULE_PDF)
        self.assertEqual(outcome.files_for(Reason.MISSING),
                         [run.root / "pscan_files" / "module_test_run1.pdf"])

    def test_truncated_container_is_an_open_error(self):
        run = make_run(self.ladder, "run1")
        target = run.root / "pscan_files" / "run1_HW_4_SET_0_holes.root"
        target.write_bytes(target.read_bytes()[:40])

        outcome = self._validate(run).outcomes[Area.PSCAN]

        self.assertIn(PscanFlag.FILE_OPEN, outcome.flags)
        self.assertEqual(outcome.files_for(Reason.OPEN_ERROR), [target])

    def test_all_empty_pscan_text_role(self):
        run = make_run(self.ladder, "run1")
        for p in (run.root / "pscan_files").glob("*_elect.txt"):
            p.write_text("")
        outcome = self._validate(run).outcomes[Area.PSCAN]

        self.assertEqual(outcome.flags, PscanFlag.EMPTY_CONTENT)
        self.assertEqual(len(outcome.files_for(Reason.EMPTY)), 8)

    def test_setup_helpers_are_accepted(self):
        run = make_run(self.ladder, "run1")
        write(run.root / "pscan_files" / "module_test_SETUP.pdf", b"%PDF")
        self.assertIs(self._validate(run).verdict, RunVerdict.PASSED)


if __name__ == "__main__":
    unittest.main()
