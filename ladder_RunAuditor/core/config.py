# ladder_RunAuditor/core/config.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
import yaml

DEFAULT_AUX_NAMES: tuple[str, ...] = (
    "module_test_SETUP.root",
    "module_test_SETUP.txt",
    "module_test_SETUP.pdf",
)


def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class AuditCfg:
    trim_dir: str = "trim_files"
    pscan_dir: str = "pscan_files"
    conn_dir: str = "conn_check_files"
    channels: int = 8                         # per-role file count, hw index range [0, channels)
    container_ext: str = "root"
    aux_names: tuple[str, ...] = DEFAULT_AUX_NAMES
    data_marker: str = "LV_AFT_CONFIG_P"
    min_lines_after_marker: int = 2
    max_gap_minutes: float | None = None      # None = nearest-time pass is unbounded

    @property
    def max_gap_seconds(self) -> float | None:
        return None if self.max_gap_minutes is None else self.max_gap_minutes * 60.0


def _to_float(val):
    if val is None:
        return None
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def _to_int(val, default: int) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def _names(value, default: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    return default


def prepare_audit(global_cfg: dict | None) -> AuditCfg:
    """
    Read the layout/content/pairing sections of config.yaml into an AuditCfg.
    Unknown or malformed values fall back to the defaults.
    """
    cfg = global_cfg or {}
    layout = cfg.get("layout", {}) or {}
    content = cfg.get("content", {}) or {}
    pairing = cfg.get("pairing", {}) or {}

    ext = str(layout.get("container_ext", "root")).strip().lstrip(".").lower() or "root"
    channels = _to_int(layout.get("channels", 8), 8)
    if channels <= 0:
        channels = 8

    return AuditCfg(
        trim_dir=str(layout.get("trim_dir", "trim_files")),
        pscan_dir=str(layout.get("pscan_dir", "pscan_files")),
        conn_dir=str(layout.get("conn_dir", "conn_check_files")),
        channels=channels,
        container_ext=ext,
        aux_names=_names(layout.get("aux_names"), DEFAULT_AUX_NAMES),
        data_marker=str(content.get("data_marker", "LV_AFT_CONFIG_P")),
        min_lines_after_marker=max(_to_int(content.get("min_lines_after_marker", 2), 2), 0),
        max_gap_minutes=_to_float(pairing.get("max_gap_minutes")),
    )
