# ladder_RunAuditor/core/grouping.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from .content import summarize_content
from .model import Area, Category, PassSnapshot, Reason, RunReport, ValidationOutcome

# reasons that make a file a deletion candidate
DELETABLE: frozenset[Reason] = frozenset({
    Reason.OPEN_ERROR,
    Reason.EMPTY,
    Reason.INVALID_CONTENT,
    Reason.INVALID_NAME,
    Reason.UNEXPECTED,
})
# never planned for deletion, whatever the reason (see also _is_run_log)
PROTECTED: frozenset[Category] = frozenset({Category.LOG})


@dataclass(frozen=True)
class CleanupGroup:
    run: str
    category: Category
    reason: Reason
    files: tuple[Path, ...]
    paired: bool = False          # invalid data file together with its tester file

    @property
    def title(self) -> str:
        suffix = " + paired tester" if self.paired else ""
        return f"{self.run}: {self.category.value} / {self.reason.value}{suffix}"


def _is_run_log(path: Path, run_name: str) -> bool:
    """Any "<run>...log" file, including rotated copies such as run1_log.log.bak."""
    return path.name.startswith(run_name) and ".log" in path.suffixes


def _flag_backed(outcome: ValidationOutcome, category: Category, reason: Reason) -> bool:
    """
    EMPTY and INVALID_CONTENT issues only count once the category-level flag
    fired: one empty channel file among valid ones, or one invalid data file
    next to a valid one, leaves the run unflagged and is not offered.
    """
    if reason not in (Reason.EMPTY, Reason.INVALID_CONTENT):
        return True
    summary = summarize_content(r for r in outcome.records if r.category is category)
    if reason is Reason.EMPTY:
        return summary.all_empty
    return summary.invalid_without_valid


def _pair_groups(report: RunReport) -> list[CleanupGroup]:
    """An invalid data file and its paired tester file are one deletion unit."""
    log = report.outcomes.get(Area.LOG)
    if log is None:
        return []
    if not _flag_backed(log, Category.DATA, Reason.INVALID_CONTENT):
        return []
    groups: list[CleanupGroup] = []
    for issue in log.issues:
        if issue.category is not Category.DATA or issue.reason is not Reason.INVALID_CONTENT:
            continue
        tester = report.pairing.tester_for(issue.path)
        files = (issue.path,) if tester is None else (issue.path, tester)
        groups.append(CleanupGroup(run=report.run.name, category=Category.DATA,
                                   reason=Reason.INVALID_CONTENT, files=files,
                                   paired=tester is not None))
    return groups


def plan_run_cleanup(report: RunReport) -> list[CleanupGroup]:
    groups = _pair_groups(report)
    claimed: set[Path] = {p for g in groups for p in g.files}

    buckets: dict[tuple[Category, Reason], list[Path]] = {}
    for area in Area:
        outcome = report.outcomes.get(area)
        if outcome is None:
            continue
        for issue in outcome.issues:
            if issue.reason not in DELETABLE or issue.category is None:
                continue
            if issue.category in PROTECTED or issue.path in claimed:
                continue
            if _is_run_log(issue.path, report.run.name):
                continue
            if not _flag_backed(outcome, issue.category, issue.reason):
                continue
            buckets.setdefault((issue.category, issue.reason), []).append(issue.path)
            claimed.add(issue.path)

    for (category, reason), files in buckets.items():
        groups.append(CleanupGroup(run=report.run.name, category=category,
                                   reason=reason, files=tuple(files)))
    return groups


def plan_cleanup(snapshot: PassSnapshot) -> list[CleanupGroup]:
    """
    Group the offending files of a finished pass by (run, category, reason).
    Pure: reads the snapshot only, never the filesystem.
    """
    groups: list[CleanupGroup] = []
    for report in snapshot.reports:
        groups.extend(plan_run_cleanup(report))
    return groups
