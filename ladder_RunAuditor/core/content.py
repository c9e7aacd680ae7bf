# ladder_RunAuditor/core/content.py
from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable
import logging
import os

from ..loaders.container_loader import ContainerError, ContainerVerifier
from .config import AuditCfg
from .model import Category, ContentState, FileRecord

_LOG = logging.getLogger(__name__)

CONTAINER_CATEGORIES: frozenset[Category] = frozenset({
    Category.PSCAN_ELECTRON_CONTAINER,
    Category.PSCAN_HOLE_CONTAINER,
    Category.MODULE_CONTAINER,
})
# checked for presence alone
PRESENCE_ONLY: frozenset[Category] = frozenset({
    Category.MODULE_PDF,
    Category.AUXILIARY,
    Category.UNEXPECTED,
})
SEMANTIC_CATEGORIES: frozenset[Category] = frozenset({Category.DATA})


def data_content_valid(path: Path, marker: str, min_lines: int = 2) -> bool:
    """
    True when ``marker`` appears on some line and is followed by at least
    ``min_lines`` non-blank lines. Whitespace-only lines are not counted.
    """
    with path.open("r", encoding="utf-8", errors="replace") as f:
        for line in f:
            if marker in line:
                found = 0
                for rest in f:
                    if not rest.strip():
                        continue
                    found += 1
                    if found >= min_lines:
                        return True
                return found >= min_lines
    return False


def _inspect_text(rec: FileRecord, cfg: AuditCfg) -> FileRecord:
    try:
        with rec.path.open("rb") as f:
            size = os.fstat(f.fileno()).st_size
    except OSError as e:
        _LOG.warning("cannot open %s: %s", rec.path, e)
        return replace(rec, accessible=False)

    if size == 0:
        _LOG.warning("empty file: %s", rec.path)
        return replace(rec, empty=True)

    if rec.category in SEMANTIC_CATEGORIES:
        try:
            ok = data_content_valid(rec.path, cfg.data_marker, cfg.min_lines_after_marker)
        except OSError as e:
            _LOG.warning("cannot read %s: %s", rec.path, e)
            return replace(rec, accessible=False)
        if not ok:
            _LOG.warning("invalid content in data file: %s", rec.path)
        return replace(rec, content=ContentState.VALID if ok else ContentState.INVALID)
    return rec


def _inspect_container(rec: FileRecord, verifier: ContainerVerifier) -> FileRecord:
    try:
        verifier(rec.path)
    except ContainerError as e:
        _LOG.warning("cannot open container %s: %s", rec.path, e)
        return replace(rec, accessible=False)
    return replace(rec, content=ContentState.VALID)


def inspect_record(rec: FileRecord, cfg: AuditCfg, verifier: ContainerVerifier) -> FileRecord:
    """Return a copy of ``rec`` with accessible/empty/content filled in."""
    if rec.category in PRESENCE_ONLY:
        return rec
    if rec.category in CONTAINER_CATEGORIES:
        return _inspect_container(rec, verifier)
    return _inspect_text(rec, cfg)


def inspect_records(records: Iterable[FileRecord], cfg: AuditCfg,
                    verifier: ContainerVerifier) -> tuple[FileRecord, ...]:
    return tuple(inspect_record(r, cfg, verifier) for r in records)


@dataclass(frozen=True)
class ContentSummary:
    present: int = 0
    readable: int = 0
    empty: int = 0
    valid: int = 0
    invalid: int = 0

    @property
    def all_empty(self) -> bool:
        return self.present > 0 and self.empty == self.present

    @property
    def invalid_without_valid(self) -> bool:
        return self.invalid > 0 and self.valid == 0

    @property
    def category_valid(self) -> bool:
        return self.valid > 0


def summarize_content(records: Iterable[FileRecord]) -> ContentSummary:
    present = readable = empty = valid = invalid = 0
    for r in records:
        present += 1
        if not r.accessible:
            continue
        readable += 1
        if r.empty:
            empty += 1
        elif r.content is ContentState.INVALID:
            invalid += 1
        else:
            valid += 1
    return ContentSummary(present, readable, empty, valid, invalid)
