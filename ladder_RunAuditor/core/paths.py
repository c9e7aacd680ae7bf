# ladder_RunAuditor/core/paths.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from .config import AuditCfg


@dataclass(frozen=True)
class RunPaths:
    root: Path
    trim: Path
    pscan: Path
    conn: Path


def run_paths(ladder_root: Path, run_name: str, cfg: AuditCfg) -> RunPaths:
    root = ladder_root / run_name
    return RunPaths(
        root=root,
        trim=root / cfg.trim_dir,
        pscan=root / cfg.pscan_dir,
        conn=root / cfg.conn_dir,
    )


def log_file_name(run_name: str) -> str:
    return f"{run_name}_log.log"


def module_file_name(run_name: str, ext: str) -> str:
    return f"module_test_{run_name}.{ext}"
