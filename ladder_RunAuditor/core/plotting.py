# ladder_RunAuditor/core/plotting.py
from __future__ import annotations
from pathlib import Path
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .metrics import summarize
from .model import PassSnapshot

_SLICES = (
    ("passed", "Passed", "#4caf50"),
    ("passed_with_issues", "Passed with issues", "#ffb300"),
    ("failed", "Failed", "#e53935"),
)


def save_verdict_pie(snapshot: PassSnapshot, out_dir: Path, ladder: str,
                     file_name: str = "verdicts.png") -> Path | None:
    """Pie chart of the run verdicts of one pass; skipped when there are no runs."""
    stats = summarize(snapshot)
    if not stats["total"]:
        print(f"[INFO] {ladder} [{snapshot.label}]: no runs; skipping verdict plot.")
        return None
    out_dir.mkdir(parents=True, exist_ok=True)

    prepared = [(stats[key], label, color) for key, label, color in _SLICES if stats[key]]
    sizes = [n for n, _, _ in prepared]
    labels = [f"{label} ({n})" for n, label, _ in prepared]
    colors = [c for _, _, c in prepared]

    plt.figure(figsize=(6, 6))
    plt.pie(sizes, labels=labels, colors=colors, autopct="%1.1f%%", startangle=90)
    plt.axis("equal")
    plt.title(f"Ladder: {ladder} ({snapshot.label}), "
              f"success rate {stats['success_rate_pct']:.1f}%")
    plt.tight_layout()
    out_path = out_dir / file_name
    plt.savefig(out_path, dpi=160)
    plt.close()
    print(f"[OK] {ladder} [{snapshot.label}]: {stats['total']} run(s) → {out_path}")
    return out_path
