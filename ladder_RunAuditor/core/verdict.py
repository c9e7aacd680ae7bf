# ladder_RunAuditor/core/verdict.py
from __future__ import annotations
from typing import Iterable

from .model import RunVerdict, Severity, ValidationOutcome, flag_members, severity_of


def classify_verdict(outcomes: Iterable[ValidationOutcome], aborted: str | None = None) -> RunVerdict:
    """
    Reduce a run's area outcomes to one verdict.
      - any critical flag (or an aborted run) -> FAILED
      - otherwise any cosmetic flag           -> PASSED_WITH_ISSUES
      - no flags at all                       -> PASSED
    Pure: the same outcomes always give the same verdict.
    """
    if aborted:
        return RunVerdict.FAILED
    cosmetic = False
    for outcome in outcomes:
        for member in flag_members(outcome.flags):
            if severity_of(member) is Severity.CRITICAL:
                return RunVerdict.FAILED
            cosmetic = True
    return RunVerdict.PASSED_WITH_ISSUES if cosmetic else RunVerdict.PASSED
