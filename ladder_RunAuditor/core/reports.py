# ladder_RunAuditor/core/reports.py
from __future__ import annotations
from pathlib import Path
from typing import Literal
import numpy as np
import pandas as pd
from scipy.io import savemat

from .cleanup import CleanupSession
from .metrics import summarize
from .model import (
    Area, Category, ContentState, PassSnapshot, Reason, RunReport, decode_flags,
)

ReportFormat = Literal["csv", "mat", "both"]

SUMMARY_COLUMNS = [
    "run", "verdict", "log_flags", "trim_flags", "pscan_flags", "conn_flags",
    "n_issues", "aborted",
]
COMPARISON_COLUMNS = ["run", "verdict_before", "verdict_after", "changed"]

_RULE = "=" * 52

# (header, categories shown with their count) per area
_SECTIONS: dict[Area, tuple[str, tuple[tuple[str, Category], ...]]] = {
    Area.LOG: ("LOG FILES", ()),
    Area.TRIM: ("TRIM FILES", (
        ("Electron files", Category.TRIM_ELECTRON),
        ("Hole files", Category.TRIM_HOLE),
    )),
    Area.PSCAN: ("PSCAN FILES", (
        ("Electron text", Category.PSCAN_ELECTRON_TEXT),
        ("Hole text", Category.PSCAN_HOLE_TEXT),
        ("Electron container", Category.PSCAN_ELECTRON_CONTAINER),
        ("Hole container", Category.PSCAN_HOLE_CONTAINER),
    )),
    Area.CONN: ("CONNECTION FILES", (
        ("Electron files", Category.CONN_ELECTRON),
        ("Hole files", Category.CONN_HOLE),
    )),
}

_REASON_TITLES = {
    Reason.MISSING: "Missing files",
    Reason.OPEN_ERROR: "Unreadable files",
    Reason.EMPTY: "Empty files",
    Reason.INVALID_CONTENT: "Invalid content",
    Reason.INVALID_NAME: "Invalid file names",
    Reason.UNEXPECTED: "Unexpected files",
    Reason.NO_MATCHING_TESTER: "Data files without a matching tester file",
}


def _flags_of(report: RunReport, area: Area) -> str:
    outcome = report.outcomes.get(area)
    return "" if outcome is None else decode_flags(outcome.flags)


def build_summary_frame(snapshot: PassSnapshot) -> pd.DataFrame:
    """One row per run plus a TOTAL row carrying the aggregate counts."""
    rows = []
    for r in snapshot.reports:
        rows.append({
            "run": r.run.name,
            "verdict": r.verdict.value,
            "log_flags": _flags_of(r, Area.LOG),
            "trim_flags": _flags_of(r, Area.TRIM),
            "pscan_flags": _flags_of(r, Area.PSCAN),
            "conn_flags": _flags_of(r, Area.CONN),
            "n_issues": sum(len(o.issues) for o in r.outcomes.values()),
            "aborted": r.aborted or "",
        })
    stats = summarize(snapshot)
    rows.append({
        "run": "TOTAL",
        "verdict": f"{stats['passed'] + stats['passed_with_issues']}/{stats['total']} ok",
        "log_flags": "", "trim_flags": "", "pscan_flags": "", "conn_flags": "",
        "n_issues": sum(row["n_issues"] for row in rows),
        "aborted": "",
    })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def build_comparison_frame(session: CleanupSession) -> pd.DataFrame:
    rows = []
    for before in session.before.reports:
        after = session.after.report_for(before.run.name)
        v_before = before.verdict.value
        v_after = after.verdict.value if after is not None else ""
        rows.append({
            "run": before.run.name,
            "verdict_before": v_before,
            "verdict_after": v_after,
            "changed": v_before != v_after,
        })
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_csv}")


def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    seq2 = [("" if s is None else str(s)) for s in seq]
    arr = np.empty((len(seq2), 1), dtype=object)
    arr[:, 0] = seq2
    return arr


def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str, title: str) -> None:
    """
    Save a MATLAB struct with one field per column.
    Strings become cell arrays (Nx1), numerics become double (Nx1).
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)
    mat_struct = {}
    for col in df_out.columns:
        series = df_out[col]
        if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
            mat_struct[col] = series.to_numpy(dtype=float).reshape(-1, 1)
        else:
            mat_struct[col] = _to_mat_cellstr(series.astype(str).tolist())
    savemat(out_mat, {varname: mat_struct})
    print(f"[OK] wrote report: {title} → {out_mat}")


def write_summary(snapshot: PassSnapshot, out_base: Path, title: str,
                  fmt: ReportFormat = "csv", mat_variable: str = "audit") -> pd.DataFrame:
    """
    Write the per-run summary table.
    - out_base is a *base path without extension* (e.g., .../summary)
    - fmt: "csv" | "mat" | "both"
    """
    df_out = build_summary_frame(snapshot)
    if fmt in ("csv", "both"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title)
    if fmt in ("mat", "both"):
        _write_mat(df_out, out_base.with_suffix(".mat"), mat_variable, title)
    return df_out


def write_comparison(session: CleanupSession, out_csv: Path) -> pd.DataFrame:
    df_out = build_comparison_frame(session)
    _write_csv(df_out, out_csv, "before/after comparison")
    return df_out


def _log_lines(report: RunReport) -> list[str]:
    outcome = report.outcomes.get(Area.LOG)
    if outcome is None:
        return []
    data = [rec for rec in outcome.records if rec.category is Category.DATA]
    testers = [rec for rec in outcome.records if rec.category is Category.FEB_TESTER]
    logs = [rec for rec in outcome.records if rec.category is Category.LOG]
    non_empty = sum(1 for rec in data if rec.accessible and not rec.empty)
    valid = sum(1 for rec in data if rec.content is ContentState.VALID)
    return [
        f"Data files: {len(data)} found",
        f"Non-empty files: {non_empty}/{len(data)}",
        f"Valid files: {valid}/{len(data)}",
        f"Tester FEB files: {len(testers)} found",
        f"Pairs: {len(report.pairing.pairs) - len(report.pairing.unmatched_data)}/{len(data)}",
        f"Log file: {'FOUND' if logs else 'MISSING'}",
    ]


def render_run_page(report: RunReport, channels: int = 8) -> str:
    lines = [_RULE, f"VALIDATION REPORT FOR: {report.run.name}", _RULE,
             f"STATUS: {report.verdict.value}"]
    if report.aborted:
        lines.append(f"ABORTED: {report.aborted}")

    for area, (header, counted) in _SECTIONS.items():
        outcome = report.outcomes.get(area)
        if outcome is None:
            continue
        lines.append("")
        lines.append(f"[{header}]")
        lines.append(f"Flags: {decode_flags(outcome.flags)}")
        if area is Area.LOG:
            lines.extend(_log_lines(report))
        for label, category in counted:
            lines.append(f"{label}: {outcome.counts.get(category, 0)}/{channels}")

        by_reason: dict[Reason, list[str]] = {}
        for issue in outcome.issues:
            entry = issue.path.name if not issue.detail else f"{issue.path.name} ({issue.detail})"
            by_reason.setdefault(issue.reason, []).append(entry)
        for reason, entries in by_reason.items():
            lines.append(f"{_REASON_TITLES[reason]}:")
            lines.extend(f" - {e}" for e in entries)

    lines.append(_RULE)
    return "\n".join(lines)


def render_summary(snapshot: PassSnapshot, ladder: str) -> str:
    stats = summarize(snapshot)
    return "\n".join([
        _RULE,
        f"LADDER {ladder} VALIDATION SUMMARY ({snapshot.label})",
        _RULE,
        f"Scanned directories: {stats['total']}",
        f"Passed:             {stats['passed']}",
        f"Passed with issues: {stats['passed_with_issues']}",
        f"Failed:             {stats['failed']}",
        f"Success rate:       {stats['success_rate_pct']:.1f}%",
        _RULE,
    ])


def write_text_report(snapshot: PassSnapshot, out_dir: Path, ladder: str,
                      channels: int = 8) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"AuditReport_{ladder}.txt"
    pages = [render_run_page(r, channels) for r in snapshot.reports]
    body = "VALIDATION REPORT\n" + _RULE + "\n\n" + "\n\n".join(pages)
    body += "\n\n" + render_summary(snapshot, ladder) + "\n"
    out_path.write_text(body, encoding="utf-8")
    print(f"[OK] wrote report: text ({snapshot.label}) → {out_path}")
    return out_path
