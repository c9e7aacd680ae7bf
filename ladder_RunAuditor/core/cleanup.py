# ladder_RunAuditor/core/cleanup.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence
import logging

from ..loaders.container_loader import ContainerVerifier
from ..utils.detect import refresh_run
from .config import AuditCfg, prepare_audit
from .grouping import CleanupGroup, plan_cleanup
from .model import PassSnapshot, TestRun
from .pipeline import run_pipeline

_LOG = logging.getLogger(__name__)

Confirm = Callable[[CleanupGroup], bool]
Delete = Callable[[Path], None]


@dataclass(frozen=True)
class DeletionRecord:
    run: str
    path: Path
    deleted: bool
    error: str | None = None


@dataclass(frozen=True)
class CleanupSession:
    before: PassSnapshot
    after: PassSnapshot
    groups: tuple[CleanupGroup, ...] = ()
    accepted: tuple[CleanupGroup, ...] = ()
    deletions: tuple[DeletionRecord, ...] = ()

    @property
    def failed_deletions(self) -> list[DeletionRecord]:
        return [d for d in self.deletions if not d.deleted]


def prompt_confirm(group: CleanupGroup, input_fn: Callable[[str], str] = input) -> bool:
    """Show the group and ask one yes/no question on stdin (default: no)."""
    print(f"\n[cleanup] {group.title}")
    for p in group.files:
        print(f"  - {p}")
    try:
        answer = input_fn(f"Delete these {len(group.files)} file(s)? [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def always_yes(group: CleanupGroup) -> bool:
    return True


def _unlink(path: Path) -> None:
    path.unlink()


def delete_group(group: CleanupGroup, delete: Delete = _unlink) -> list[DeletionRecord]:
    """Delete every file of an accepted group; a failure does not stop or undo the others."""
    records: list[DeletionRecord] = []
    for path in group.files:
        try:
            delete(path)
        except OSError as e:
            _LOG.warning("could not delete %s: %s", path, e)
            records.append(DeletionRecord(group.run, path, False, str(e)))
            continue
        _LOG.info("deleted %s", path)
        records.append(DeletionRecord(group.run, path, True))
    return records


def apply_cleanup(groups: Sequence[CleanupGroup], confirm: Confirm = prompt_confirm,
                  delete: Delete = _unlink) -> tuple[list[CleanupGroup], list[DeletionRecord]]:
    accepted: list[CleanupGroup] = []
    deletions: list[DeletionRecord] = []
    for group in groups:
        if not confirm(group):
            _LOG.info("skipped: %s", group.title)
            continue
        accepted.append(group)
        deletions.extend(delete_group(group, delete))
    return accepted, deletions


def run_cleanup_session(runs: Sequence[TestRun], cfg: dict | AuditCfg | None = None,
                        before: PassSnapshot | None = None,
                        confirm: Confirm = prompt_confirm,
                        delete: Delete = _unlink,
                        verifier: ContainerVerifier | None = None) -> CleanupSession:
    """
    Validate (unless ``before`` is given), offer every offending-file group for
    deletion, then re-read the runs and validate the whole set a second time.
    """
    audit = cfg if isinstance(cfg, AuditCfg) else prepare_audit(cfg)
    if before is None:
        before = run_pipeline(runs, audit, label="before", verifier=verifier)

    groups = plan_cleanup(before)
    _LOG.info("cleanup: %d candidate group(s)", len(groups))
    accepted, deletions = apply_cleanup(groups, confirm, delete)

    refreshed = [refresh_run(r, audit) for r in runs]
    after = run_pipeline(refreshed, audit, label="after", verifier=verifier)

    return CleanupSession(before=before, after=after, groups=tuple(groups),
                          accepted=tuple(accepted), deletions=tuple(deletions))
