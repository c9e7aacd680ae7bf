# ladder_RunAuditor/core/normalize.py
from __future__ import annotations
from dataclasses import dataclass
import re
import pandas as pd

HW_MARKER = "_HW_"
SET_MARKER = "_SET_"

# YYMMDD_HHMM with optional seconds, not glued to other digits
_TS_RE = re.compile(r"(?<!\d)(\d{6})_(\d{4})(\d{2})?(?!\d)")
_TS_FMTS = {False: "%y%m%d_%H%M", True: "%y%m%d_%H%M%S"}
CANONICAL_TS_FMT = "%y%m%d_%H%M%S"


@dataclass(frozen=True)
class ParsedIndex:
    value: int | None = None
    error: str | None = None

    @property
    def present(self) -> bool:
        return self.value is not None or self.error is not None


@dataclass(frozen=True)
class ParsedTimestamp:
    text: str | None = None            # canonical YYMMDD_HHMMSS
    when: pd.Timestamp | None = None
    error: str | None = None


def parse_hw_index(file_name: str, channels: int = 8) -> ParsedIndex:
    """
    Extract ``n`` from ``..._HW_<n>_SET_...``.
    No ``_HW_`` marker -> empty result (the naming convention is optional).
    A marker with a missing ``_SET_``, a non-numeric or an out-of-range value -> error.
    """
    start = file_name.find(HW_MARKER)
    if start < 0:
        return ParsedIndex()
    start += len(HW_MARKER)
    end = file_name.find(SET_MARKER, start)
    if end < 0:
        return ParsedIndex(error=f"'{HW_MARKER}' without '{SET_MARKER}'")
    raw = file_name[start:end]
    if not (raw.isascii() and raw.isdigit()):
        return ParsedIndex(error=f"non-numeric hardware index '{raw}'")
    value = int(raw)
    if not 0 <= value < channels:
        return ParsedIndex(error=f"hardware index {value} outside [0,{channels - 1}]")
    return ParsedIndex(value=value)


def to_timestamp(date_part: str, time_part: str) -> pd.Timestamp | None:
    has_seconds = len(time_part) == 6
    z = pd.to_datetime(f"{date_part}_{time_part}", format=_TS_FMTS[has_seconds], errors="coerce")
    if pd.isna(z):
        return None
    return pd.Timestamp(z)


def parse_timestamp(fragment: str) -> ParsedTimestamp:
    """
    Find the last YYMMDD_HHMM[SS] token in ``fragment``.
    No token -> empty result; a token that is not a real date/time -> error.
    """
    matches = list(_TS_RE.finditer(fragment))
    if not matches:
        return ParsedTimestamp()
    m = matches[-1]
    when = to_timestamp(m.group(1), m.group(2) + (m.group(3) or ""))
    if when is None:
        return ParsedTimestamp(error=f"invalid timestamp '{m.group(0)}'")
    return ParsedTimestamp(text=when.strftime(CANONICAL_TS_FMT), when=when)


def to_clock(ts: pd.Timestamp) -> float:
    """Seconds since the epoch, for nearest-time comparisons."""
    return ts.value / 1e9
