# ladder_RunAuditor/utils/detect.py
from __future__ import annotations
from dataclasses import replace
from pathlib import Path

from ..core.config import AuditCfg
from ..core.model import TestRun
from ..core.paths import run_paths


def detect_run(ladder_root: Path, name: str, cfg: AuditCfg) -> TestRun:
    """Read which of the required sub-areas exist for one run directory."""
    p = run_paths(ladder_root, name, cfg)
    return TestRun(
        name=name,
        root=p.root,
        exists=p.root.is_dir(),
        has_trim=p.trim.is_dir(),
        has_pscan=p.pscan.is_dir(),
        has_conn=p.conn.is_dir(),
    )


def refresh_run(run: TestRun, cfg: AuditCfg) -> TestRun:
    """Re-read presence flags after the tree was modified (e.g. by cleanup)."""
    fresh = detect_run(run.root.parent, run.name, cfg)
    return replace(run, exists=fresh.exists, has_trim=fresh.has_trim,
                   has_pscan=fresh.has_pscan, has_conn=fresh.has_conn)


def discover_runs(ladder_root: Path, cfg: AuditCfg) -> list[TestRun]:
    """
    Every non-hidden sub-directory of ``ladder_root`` is one test run.
    If ``ladder_root`` is not a directory -> empty list.
    """
    if not ladder_root.is_dir():
        return []
    names = [p.name for p in ladder_root.iterdir()
             if p.is_dir() and not p.name.startswith(".")]
    # deterministic ordering
    names.sort()
    return [detect_run(ladder_root, n, cfg) for n in names]
