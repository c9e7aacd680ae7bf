# ladder_RunAuditor/core/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from pathlib import Path
from typing import Mapping, Optional, Union
import pandas as pd


@dataclass(frozen=True)
class TestRun:
    name: str                 # run directory name, also the expected filename prefix
    root: Path                # <ladder>/<run>
    exists: bool
    has_trim: bool
    has_pscan: bool
    has_conn: bool

    # keep pytest from collecting this as a test class
    __test__ = False


class Category(Enum):
    LOG = "log"
    DATA = "data"
    FEB_TESTER = "feb_tester"
    TRIM_ELECTRON = "trim_electron"
    TRIM_HOLE = "trim_hole"
    CONN_ELECTRON = "conn_electron"
    CONN_HOLE = "conn_hole"
    PSCAN_ELECTRON_TEXT = "pscan_electron_text"
    PSCAN_HOLE_TEXT = "pscan_hole_text"
    PSCAN_ELECTRON_CONTAINER = "pscan_electron_container"
    PSCAN_HOLE_CONTAINER = "pscan_hole_container"
    MODULE_CONTAINER = "module_container"
    MODULE_TEXT = "module_text"
    MODULE_PDF = "module_pdf"
    AUXILIARY = "auxiliary"
    UNEXPECTED = "unexpected"


class ContentState(Enum):
    VALID = "valid"
    INVALID = "invalid"
    NOT_APPLICABLE = "n/a"


class Area(Enum):
    LOG = "log"
    TRIM = "trim"
    PSCAN = "pscan"
    CONN = "conn"


class Severity(Enum):
    CRITICAL = "critical"
    COSMETIC = "cosmetic"


class LogFlag(Flag):
    DIR_MISSING = auto()
    DIR_ACCESS = auto()
    LOG_MISSING = auto()
    DATA_MISSING = auto()
    NO_FEB_FILE = auto()
    FILE_OPEN = auto()
    DATA_EMPTY = auto()
    DATA_INVALID = auto()
    INVALID_FILENAME = auto()
    NO_MATCHING_TESTER = auto()
    UNEXPECTED_FILES = auto()


class TrimFlag(Flag):
    FOLDER_MISSING = auto()
    DIR_ACCESS = auto()
    ELECTRON_COUNT = auto()
    HOLE_COUNT = auto()
    FILE_OPEN = auto()
    EMPTY_CONTENT = auto()
    INVALID_FILENAME = auto()
    UNEXPECTED_FILES = auto()


class ConnFlag(Flag):
    FOLDER_MISSING = auto()
    DIR_ACCESS = auto()
    ELECTRON_COUNT = auto()
    HOLE_COUNT = auto()
    FILE_OPEN = auto()
    EMPTY_CONTENT = auto()
    INVALID_FILENAME = auto()
    UNEXPECTED_FILES = auto()


class PscanFlag(Flag):
    FOLDER_MISSING = auto()
    DIR_ACCESS = auto()
    ELECTRON_TXT_COUNT = auto()
    HOLE_TXT_COUNT = auto()
    ELECTRON_CONTAINER_COUNT = auto()
    HOLE_CONTAINER_COUNT = auto()
    FILE_OPEN = auto()
    MODULE_CONTAINER = auto()
    MODULE_TEXT = auto()
    MODULE_PDF = auto()
    EMPTY_CONTENT = auto()
    INVALID_FILENAME = auto()
    UNEXPECTED_FILES = auto()


AreaFlag = Union[LogFlag, TrimFlag, ConnFlag, PscanFlag]

# anything not listed here is critical
COSMETIC_FLAGS: frozenset = frozenset({
    LogFlag.DATA_EMPTY,
    LogFlag.UNEXPECTED_FILES,
    TrimFlag.EMPTY_CONTENT,
    TrimFlag.UNEXPECTED_FILES,
    ConnFlag.EMPTY_CONTENT,
    ConnFlag.UNEXPECTED_FILES,
    PscanFlag.EMPTY_CONTENT,
    PscanFlag.UNEXPECTED_FILES,
})


def flag_members(flags: AreaFlag) -> list[AreaFlag]:
    """Single-bit members set in ``flags``, in declaration order."""
    return [m for m in type(flags) if m and m in flags]


def severity_of(member: AreaFlag) -> Severity:
    return Severity.COSMETIC if member in COSMETIC_FLAGS else Severity.CRITICAL


def decode_flags(flags: AreaFlag) -> str:
    members = flag_members(flags)
    if not members:
        return "OK"
    return " | ".join(m.name for m in members)


class Reason(Enum):
    MISSING = "missing"
    OPEN_ERROR = "open_error"
    EMPTY = "empty"
    INVALID_CONTENT = "invalid_content"
    INVALID_NAME = "invalid_name"
    UNEXPECTED = "unexpected"
    NO_MATCHING_TESTER = "no_matching_tester"


@dataclass(frozen=True)
class FileRecord:
    path: Path
    category: Category
    hw_index: Optional[int] = None
    timestamp: Optional[pd.Timestamp] = None
    legacy: bool = False                  # bare "<run>_data.dat" without a timestamp
    name_error: Optional[str] = None      # rejected embedded index/timestamp
    accessible: bool = True
    empty: bool = False
    content: ContentState = ContentState.NOT_APPLICABLE

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def counts_as_valid_name(self) -> bool:
        return self.name_error is None


@dataclass(frozen=True)
class FileIssue:
    path: Path
    category: Optional[Category]          # None for run-level issues
    reason: Reason
    detail: str = ""


@dataclass(frozen=True)
class ValidationOutcome:
    area: Area
    flags: AreaFlag
    issues: tuple[FileIssue, ...] = ()
    counts: Mapping[Category, int] = field(default_factory=dict)
    records: tuple[FileRecord, ...] = ()

    def files_for(self, reason: Reason) -> list[Path]:
        return [i.path for i in self.issues if i.reason is reason]


@dataclass(frozen=True)
class PairingResult:
    pairs: tuple[tuple[Path, Optional[Path]], ...] = ()
    unmatched_testers: tuple[Path, ...] = ()
    run_level_miss: bool = False          # data present but no tester files at all

    @property
    def unmatched_data(self) -> list[Path]:
        return [d for d, t in self.pairs if t is None]

    def tester_for(self, data_path: Path) -> Optional[Path]:
        for d, t in self.pairs:
            if d == data_path:
                return t
        return None


class RunVerdict(Enum):
    PASSED = "PASSED"
    PASSED_WITH_ISSUES = "PASSED WITH ISSUES"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RunReport:
    run: TestRun
    outcomes: Mapping[Area, ValidationOutcome] = field(default_factory=dict)
    pairing: PairingResult = PairingResult()
    aborted: Optional[str] = None

    @property
    def verdict(self) -> RunVerdict:
        from .verdict import classify_verdict
        return classify_verdict(self.outcomes.values(), aborted=self.aborted)


@dataclass(frozen=True)
class PassSnapshot:
    label: str                            # "before" | "after"
    reports: tuple[RunReport, ...] = ()

    def report_for(self, run_name: str) -> Optional[RunReport]:
        for r in self.reports:
            if r.run.name == run_name:
                return r
        return None
