# ladder_RunAuditor/core/pipeline.py
from __future__ import annotations
from typing import Sequence
import logging

from ..loaders.container_loader import ContainerVerifier, verifier_for
from .config import AuditCfg, prepare_audit
from .model import Area, PairingResult, PassSnapshot, RunReport, TestRun
from .paths import run_paths
from .validate import (
    validate_conn_area, validate_log_area, validate_pscan_area, validate_trim_area,
)

_LOG = logging.getLogger(__name__)


def validate_run(run: TestRun, cfg: AuditCfg, verifier: ContainerVerifier) -> RunReport:
    """All four area checks for one run. A missing run directory skips the sub-areas."""
    log_outcome, pairing = validate_log_area(run, cfg, verifier)
    if not run.exists:
        return RunReport(run=run, outcomes={Area.LOG: log_outcome}, pairing=pairing)

    p = run_paths(run.root.parent, run.name, cfg)
    outcomes = {
        Area.LOG: log_outcome,
        Area.TRIM: validate_trim_area(run, p.trim, cfg, verifier),
        Area.PSCAN: validate_pscan_area(run, p.pscan, cfg, verifier),
        Area.CONN: validate_conn_area(run, p.conn, cfg, verifier),
    }
    return RunReport(run=run, outcomes=outcomes, pairing=pairing)


def run_pipeline(runs: Sequence[TestRun], cfg: dict | AuditCfg | None = None,
                 label: str = "before",
                 verifier: ContainerVerifier | None = None) -> PassSnapshot:
    """
    One full validation pass over ``runs``, one run at a time.
    An I/O or decoding failure inside a run aborts only that run; the batch always continues.
    """
    audit = cfg if isinstance(cfg, AuditCfg) else prepare_audit(cfg)
    verify = verifier or verifier_for(audit.container_ext)

    reports: list[RunReport] = []
    for run in runs:
        _LOG.info("[%s] validating run %s", label, run.name)
        try:
            report = validate_run(run, audit, verify)
        except (OSError, ValueError) as e:
            _LOG.error("run %s aborted: %s", run.name, e)
            report = RunReport(run=run, pairing=PairingResult(), aborted=str(e))
        _LOG.info("[%s] %s: %s", label, run.name, report.verdict.value)
        reports.append(report)

    return PassSnapshot(label=label, reports=tuple(reports))
