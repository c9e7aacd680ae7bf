# ladder_RunAuditor/core/classify.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
import logging
import os

from .config import AuditCfg
from .model import Area, Category, FileRecord
from .normalize import parse_hw_index, parse_timestamp
from .paths import log_file_name, module_file_name

_LOG = logging.getLogger(__name__)

DATA_SUFFIX = "_data.dat"
TESTER_PREFIX = "tester_febs_"

# categories whose files carry one hardware channel each
PER_CHANNEL: frozenset[Category] = frozenset({
    Category.TRIM_ELECTRON, Category.TRIM_HOLE,
    Category.CONN_ELECTRON, Category.CONN_HOLE,
    Category.PSCAN_ELECTRON_TEXT, Category.PSCAN_HOLE_TEXT,
    Category.PSCAN_ELECTRON_CONTAINER, Category.PSCAN_HOLE_CONTAINER,
})

Rule = tuple[Callable[[str], bool], Category]


@dataclass(frozen=True)
class Listing:
    directory: Path
    records: tuple[FileRecord, ...] = ()
    dir_error: str | None = None

    def of(self, category: Category) -> list[FileRecord]:
        return [r for r in self.records if r.category is category]


def _rules(area: Area, run_name: str, cfg: AuditCfg) -> list[Rule]:
    """Ordered matching rules for one area, most specific first."""
    ext = cfg.container_ext
    if area is Area.LOG:
        log_name = log_file_name(run_name)
        return [
            (lambda n: n == log_name, Category.LOG),
            (lambda n: n.startswith(run_name) and n.endswith(DATA_SUFFIX), Category.DATA),
            (lambda n: n.startswith(TESTER_PREFIX), Category.FEB_TESTER),
        ]
    if area is Area.TRIM:
        return [
            (lambda n: n.endswith("_elect.txt"), Category.TRIM_ELECTRON),
            (lambda n: n.endswith("_holes.txt"), Category.TRIM_HOLE),
        ]
    if area is Area.CONN:
        return [
            (lambda n: n.endswith("_elect.txt"), Category.CONN_ELECTRON),
            (lambda n: n.endswith("_holes.txt"), Category.CONN_HOLE),
        ]
    module_container = module_file_name(run_name, ext)
    module_text = module_file_name(run_name, "txt")
    module_pdf = module_file_name(run_name, "pdf")
    aux = set(cfg.aux_names)
    return [
        (lambda n: n == module_container, Category.MODULE_CONTAINER),
        (lambda n: n == module_text, Category.MODULE_TEXT),
        (lambda n: n == module_pdf, Category.MODULE_PDF),
        (lambda n: n in aux, Category.AUXILIARY),
        (lambda n: n.endswith("_elect.txt"), Category.PSCAN_ELECTRON_TEXT),
        (lambda n: n.endswith("_holes.txt"), Category.PSCAN_HOLE_TEXT),
        (lambda n: n.endswith(f"_elect.{ext}"), Category.PSCAN_ELECTRON_CONTAINER),
        (lambda n: n.endswith(f"_holes.{ext}"), Category.PSCAN_HOLE_CONTAINER),
    ]


def classify_name(name: str, rules: list[Rule]) -> Category:
    for matches, category in rules:
        if matches(name):
            return category
    return Category.UNEXPECTED


def _data_record(path: Path, run_name: str) -> FileRecord:
    middle = path.name[len(run_name):-len(DATA_SUFFIX)]
    if not middle:
        return FileRecord(path=path, category=Category.DATA, legacy=True)
    ts = parse_timestamp(middle)
    if ts.when is None:
        error = ts.error or f"no timestamp in '{middle.strip('_')}'"
        return FileRecord(path=path, category=Category.DATA, name_error=error)
    return FileRecord(path=path, category=Category.DATA, timestamp=ts.when)


def _tester_record(path: Path) -> FileRecord:
    ts = parse_timestamp(path.name[len(TESTER_PREFIX):])
    return FileRecord(path=path, category=Category.FEB_TESTER,
                      timestamp=ts.when, name_error=ts.error)


def _list_files(directory: Path) -> list[Path]:
    with os.scandir(directory) as it:
        entries = [Path(e.path) for e in it if not e.is_dir()]
    # deterministic discovery order
    entries.sort(key=lambda p: p.name)
    return entries


def classify_directory(directory: Path, run_name: str, area: Area, cfg: AuditCfg) -> Listing:
    """
    Scan one directory level and give every non-directory entry exactly one category.
    Embedded hardware indices are checked for range and uniqueness per category;
    rejected files keep their category with ``name_error`` set.
    An unreadable directory returns no records and ``dir_error``.
    """
    try:
        files = _list_files(directory)
    except OSError as e:
        _LOG.error("cannot read directory %s: %s", directory, e)
        return Listing(directory=directory, dir_error=str(e))

    rules = _rules(area, run_name, cfg)
    seen: dict[Category, set[int]] = {}
    records: list[FileRecord] = []

    for path in files:
        category = classify_name(path.name, rules)
        if category is Category.DATA:
            rec = _data_record(path, run_name)
        elif category is Category.FEB_TESTER:
            rec = _tester_record(path)
        elif category in PER_CHANNEL:
            idx = parse_hw_index(path.name, cfg.channels)
            if idx.error is not None:
                rec = FileRecord(path=path, category=category, name_error=idx.error)
            elif idx.value is not None and idx.value in seen.setdefault(category, set()):
                rec = FileRecord(path=path, category=category, hw_index=idx.value,
                                 name_error=f"duplicate hardware index {idx.value}")
            else:
                if idx.value is not None:
                    seen[category].add(idx.value)
                rec = FileRecord(path=path, category=category, hw_index=idx.value)
        else:
            rec = FileRecord(path=path, category=category)

        if rec.name_error:
            _LOG.warning("invalid filename %s: %s", path.name, rec.name_error)
        _LOG.debug("%s -> %s", path.name, category.value)
        records.append(rec)

    return Listing(directory=directory, records=tuple(records))
