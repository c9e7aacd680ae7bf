# ladder_RunAuditor/core/validate.py
from __future__ import annotations
from collections import Counter
from pathlib import Path
from typing import Iterable, Sequence
import logging

from ..loaders.container_loader import ContainerVerifier
from .classify import classify_directory
from .config import AuditCfg
from .content import inspect_records, summarize_content
from .model import (
    Area, Category, ConnFlag, ContentState, FileIssue, FileRecord, LogFlag,
    PairingResult, PscanFlag, Reason, TestRun, TrimFlag, ValidationOutcome,
)
from .pairing import pair_data_with_testers
from .paths import log_file_name, module_file_name

_LOG = logging.getLogger(__name__)

# categories whose emptiness/content is aggregated per area
CONTENT_CHECKED: dict[Area, tuple[Category, ...]] = {
    Area.LOG: (Category.DATA,),
    Area.TRIM: (Category.TRIM_ELECTRON, Category.TRIM_HOLE),
    Area.CONN: (Category.CONN_ELECTRON, Category.CONN_HOLE),
    Area.PSCAN: (Category.PSCAN_ELECTRON_TEXT, Category.PSCAN_HOLE_TEXT, Category.MODULE_TEXT),
}


def _record_issues(records: Iterable[FileRecord], content_checked: Sequence[Category]) -> list[FileIssue]:
    issues: list[FileIssue] = []
    for r in records:
        if r.category is Category.UNEXPECTED:
            issues.append(FileIssue(r.path, r.category, Reason.UNEXPECTED))
            continue
        if r.name_error:
            issues.append(FileIssue(r.path, r.category, Reason.INVALID_NAME, r.name_error))
        if not r.accessible:
            issues.append(FileIssue(r.path, r.category, Reason.OPEN_ERROR))
        elif r.category in content_checked and r.empty:
            issues.append(FileIssue(r.path, r.category, Reason.EMPTY))
        elif r.content is ContentState.INVALID:
            issues.append(FileIssue(r.path, r.category, Reason.INVALID_CONTENT))
    return issues


def _valid_name_counts(records: Iterable[FileRecord]) -> dict[Category, int]:
    return dict(Counter(r.category for r in records if r.counts_as_valid_name))


def _of(records: Sequence[FileRecord], category: Category) -> list[FileRecord]:
    return [r for r in records if r.category is category]


def _structural(area: Area, flags, path: Path, detail: str) -> ValidationOutcome:
    return ValidationOutcome(area=area, flags=flags,
                             issues=(FileIssue(path, None, Reason.MISSING, detail),))


# ---------- acquisition log / data ----------
def validate_log_area(run: TestRun, cfg: AuditCfg,
                      verifier: ContainerVerifier) -> tuple[ValidationOutcome, PairingResult]:
    """
    Run root: <run>_log.log, <run>[_<ts>]_data.dat and tester_febs_* files.
    Also pairs data files with tester files and raises NO_MATCHING_TESTER.
    """
    if not run.exists:
        _LOG.error("run directory missing: %s", run.root)
        return _structural(Area.LOG, LogFlag.DIR_MISSING, run.root, "run directory missing"), PairingResult()

    listing = classify_directory(run.root, run.name, Area.LOG, cfg)
    if listing.dir_error is not None:
        return ValidationOutcome(
            area=Area.LOG, flags=LogFlag.DIR_ACCESS,
            issues=(FileIssue(run.root, None, Reason.OPEN_ERROR, listing.dir_error),),
        ), PairingResult()

    records = inspect_records(listing.records, cfg, verifier)
    logs = _of(records, Category.LOG)
    data = _of(records, Category.DATA)
    testers = _of(records, Category.FEB_TESTER)

    flags = LogFlag(0)
    issues = _record_issues(records, CONTENT_CHECKED[Area.LOG])

    if not logs:
        flags |= LogFlag.LOG_MISSING
        issues.append(FileIssue(run.root / log_file_name(run.name), Category.LOG, Reason.MISSING))
    if not data:
        flags |= LogFlag.DATA_MISSING
    if not testers:
        flags |= LogFlag.NO_FEB_FILE
    if any(not r.accessible for r in records):
        flags |= LogFlag.FILE_OPEN
    summary = summarize_content(data)
    if summary.all_empty:
        flags |= LogFlag.DATA_EMPTY
    if summary.invalid_without_valid:
        flags |= LogFlag.DATA_INVALID
    if any(r.name_error for r in records):
        flags |= LogFlag.INVALID_FILENAME
    if _of(records, Category.UNEXPECTED):
        flags |= LogFlag.UNEXPECTED_FILES

    pairing = pair_data_with_testers(data, testers, cfg.max_gap_seconds)
    if pairing.run_level_miss:
        flags |= LogFlag.NO_MATCHING_TESTER
        issues.append(FileIssue(run.root, None, Reason.NO_MATCHING_TESTER, "no tester files"))
    else:
        for d in pairing.unmatched_data:
            flags |= LogFlag.NO_MATCHING_TESTER
            issues.append(FileIssue(d, Category.DATA, Reason.NO_MATCHING_TESTER))
    if pairing.unmatched_testers:
        _LOG.info("%s: %d tester file(s) without data file", run.name, len(pairing.unmatched_testers))

    return ValidationOutcome(
        area=Area.LOG, flags=flags, issues=tuple(issues),
        counts=_valid_name_counts(records), records=records,
    ), pairing


# ---------- per-channel areas ----------
def _channel_area(area: Area, run: TestRun, directory: Path, present: bool, flag_type,
                  roles: Sequence[tuple[Category, object]], cfg: AuditCfg,
                  verifier: ContainerVerifier):
    """
    Shared part of trim/conn/pscan: folder presence, listing, per-file checks and
    the per-role count (exactly ``cfg.channels`` correctly named files).
    Returns (flags, issues, records, counts) or a finished outcome on structural failure.
    """
    if not present:
        _LOG.error("%s: folder missing: %s", run.name, directory)
        return _structural(area, flag_type.FOLDER_MISSING, directory, "folder missing")

    listing = classify_directory(directory, run.name, area, cfg)
    if listing.dir_error is not None:
        return ValidationOutcome(
            area=area, flags=flag_type.DIR_ACCESS,
            issues=(FileIssue(directory, None, Reason.OPEN_ERROR, listing.dir_error),),
        )

    records = inspect_records(listing.records, cfg, verifier)
    counts = _valid_name_counts(records)
    flags = flag_type(0)
    issues = _record_issues(records, CONTENT_CHECKED[area])

    for category, count_flag in roles:
        n = counts.get(category, 0)
        if n != cfg.channels:
            _LOG.warning("%s: %s count %d/%d", run.name, category.value, n, cfg.channels)
            flags |= count_flag

    role_categories = {c for c, _ in roles}
    if any(not r.accessible for r in records if r.category in role_categories):
        flags |= flag_type.FILE_OPEN
    for category in CONTENT_CHECKED[area]:
        if summarize_content(_of(records, category)).all_empty:
            flags |= flag_type.EMPTY_CONTENT
    if any(r.name_error for r in records):
        flags |= flag_type.INVALID_FILENAME
    if _of(records, Category.UNEXPECTED):
        flags |= flag_type.UNEXPECTED_FILES

    return flags, issues, records, counts


def _finish(area: Area, partial) -> ValidationOutcome:
    if isinstance(partial, ValidationOutcome):
        return partial
    flags, issues, records, counts = partial
    return ValidationOutcome(area=area, flags=flags, issues=tuple(issues),
                             counts=counts, records=records)


def validate_trim_area(run: TestRun, trim_dir: Path, cfg: AuditCfg,
                       verifier: ContainerVerifier) -> ValidationOutcome:
    roles = [(Category.TRIM_ELECTRON, TrimFlag.ELECTRON_COUNT),
             (Category.TRIM_HOLE, TrimFlag.HOLE_COUNT)]
    return _finish(Area.TRIM, _channel_area(Area.TRIM, run, trim_dir, run.has_trim,
                                            TrimFlag, roles, cfg, verifier))


def validate_conn_area(run: TestRun, conn_dir: Path, cfg: AuditCfg,
                       verifier: ContainerVerifier) -> ValidationOutcome:
    roles = [(Category.CONN_ELECTRON, ConnFlag.ELECTRON_COUNT),
             (Category.CONN_HOLE, ConnFlag.HOLE_COUNT)]
    return _finish(Area.CONN, _channel_area(Area.CONN, run, conn_dir, run.has_conn,
                                            ConnFlag, roles, cfg, verifier))


def validate_pscan_area(run: TestRun, pscan_dir: Path, cfg: AuditCfg,
                        verifier: ContainerVerifier) -> ValidationOutcome:
    """Per-channel text and container files plus the module_test_<run> triple."""
    roles = [(Category.PSCAN_ELECTRON_TEXT, PscanFlag.ELECTRON_TXT_COUNT),
             (Category.PSCAN_HOLE_TEXT, PscanFlag.HOLE_TXT_COUNT),
             (Category.PSCAN_ELECTRON_CONTAINER, PscanFlag.ELECTRON_CONTAINER_COUNT),
             (Category.PSCAN_HOLE_CONTAINER, PscanFlag.HOLE_CONTAINER_COUNT)]
    partial = _channel_area(Area.PSCAN, run, pscan_dir, run.has_pscan,
                            PscanFlag, roles, cfg, verifier)
    if isinstance(partial, ValidationOutcome):
        return partial
    flags, issues, records, counts = partial

    module_checks = [
        (Category.MODULE_CONTAINER, PscanFlag.MODULE_CONTAINER, cfg.container_ext),
        (Category.MODULE_TEXT, PscanFlag.MODULE_TEXT, "txt"),
        (Category.MODULE_PDF, PscanFlag.MODULE_PDF, "pdf"),
    ]
    for category, flag, ext in module_checks:
        found = _of(records, category)
        if not found:
            _LOG.error("%s: module test file missing: %s", run.name, module_file_name(run.name, ext))
            flags |= flag
            issues.append(FileIssue(pscan_dir / module_file_name(run.name, ext), category, Reason.MISSING))
        elif not all(r.accessible for r in found):
            flags |= flag

    return ValidationOutcome(area=Area.PSCAN, flags=flags, issues=tuple(issues),
                             counts=counts, records=records)
