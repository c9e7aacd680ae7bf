# ladder_RunAuditor/core/metrics.py
from __future__ import annotations
from collections import Counter

from .model import PassSnapshot, RunVerdict


def summarize(snapshot: PassSnapshot) -> dict:
    """Fold per-run verdicts into the batch statistics used by the reports."""
    counts = Counter(r.verdict for r in snapshot.reports)
    total = len(snapshot.reports)
    passed = counts.get(RunVerdict.PASSED, 0)
    with_issues = counts.get(RunVerdict.PASSED_WITH_ISSUES, 0)
    failed = counts.get(RunVerdict.FAILED, 0)
    return {
        "label": snapshot.label,
        "total": total,
        "passed": passed,
        "passed_with_issues": with_issues,
        "failed": failed,
        "success_rate_pct": round(100.0 * (passed + with_issues) / total, 1) if total else 0.0,
    }
