# ladder_RunAuditor/main.py
from __future__ import annotations
from pathlib import Path
import argparse
import logging
import sys

from .core.cleanup import always_yes, prompt_confirm, run_cleanup_session
from .core.config import load_config, prepare_audit
from .core.metrics import summarize
from .core.model import PassSnapshot
from .core.pipeline import run_pipeline
from .core.plotting import save_verdict_pie
from .core.reports import write_comparison, write_summary, write_text_report
from .utils.detect import discover_runs


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    here = Path(__file__).resolve().parent
    parser = argparse.ArgumentParser(prog="ladder-audit",
                                     description="Audit the test-run directories of one ladder.")
    parser.add_argument("ladder", nargs="?", type=Path,
                        help="ladder directory (overrides input.path)")
    parser.add_argument("--config", type=Path, default=here / "config.yaml",
                        help="YAML config file")
    parser.add_argument("--output", type=Path, help="output root (overrides output.root)")
    parser.add_argument("--no-cleanup", action="store_true",
                        help="validate and report only")
    parser.add_argument("--yes", action="store_true",
                        help="accept every cleanup group without asking")
    return parser.parse_args(argv)


def _write_pass(snapshot: PassSnapshot, out_dir: Path, ladder: str, fmt: str, channels: int) -> None:
    write_text_report(snapshot, out_dir, ladder, channels)
    write_summary(snapshot, out_dir / "summary", f"summary ({snapshot.label})", fmt=fmt)
    save_verdict_pie(snapshot, out_dir, ladder)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # ---------- config ----------
    cfg = load_config(args.config)
    log_cfg = cfg.get("logging", {}) or {}
    logging.basicConfig(level=str(log_cfg.get("level", "WARNING")).upper(),
                        format="%(levelname)s %(name)s: %(message)s")
    verbose = bool(log_cfg.get("verbose", True))

    in_path = (args.ladder or Path((cfg.get("input", {}) or {}).get("path", "."))).resolve()
    out_cfg = cfg.get("output", {}) or {}
    out_root = (args.output or Path(out_cfg.get("root", "audit_out"))).resolve()
    fmt = str(out_cfg.get("format", "csv"))
    cleanup_cfg = cfg.get("cleanup", {}) or {}
    cleanup_enabled = bool(cleanup_cfg.get("enabled", True)) and not args.no_cleanup
    assume_yes = bool(cleanup_cfg.get("assume_yes", False)) or args.yes

    audit = prepare_audit(cfg)
    ladder = in_path.name
    if verbose:
        print(f"[cfg] ladder={in_path}")
        print(f"[cfg] output={out_root} (format={fmt})")
        print(f"[cfg] container=.{audit.container_ext} cleanup={'on' if cleanup_enabled else 'off'}")

    # ---------- discover ----------
    runs = discover_runs(in_path, audit)
    if not runs:
        print(f"[INFO] No test-run directories found under: {in_path}")
        return 0
    if verbose:
        print(f"[detector] found {len(runs)} run(s): {', '.join(r.name for r in runs)}")

    # ---------- first pass ----------
    before = run_pipeline(runs, audit, label="before")
    _write_pass(before, out_root / "before", ladder, fmt, audit.channels)
    stats = summarize(before)
    print(f"[summary] before: {stats['passed']} passed, {stats['passed_with_issues']} with issues, "
          f"{stats['failed']} failed ({stats['success_rate_pct']:.1f}%)")

    if not cleanup_enabled:
        return 0 if stats["failed"] == 0 else 1

    # ---------- cleanup + second pass ----------
    confirm = always_yes if assume_yes else prompt_confirm
    session = run_cleanup_session(runs, audit, before=before, confirm=confirm)
    if not session.groups:
        print("[INFO] Nothing to clean up.")
    for rec in session.failed_deletions:
        print(f"[WARN] could not delete {rec.path}: {rec.error}")

    _write_pass(session.after, out_root / "after", ladder, fmt, audit.channels)
    write_comparison(session, out_root / "comparison.csv")
    stats = summarize(session.after)
    print(f"[summary] after: {stats['passed']} passed, {stats['passed_with_issues']} with issues, "
          f"{stats['failed']} failed ({stats['success_rate_pct']:.1f}%)")
    return 0 if stats["failed"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
