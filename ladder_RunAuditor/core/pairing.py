# ladder_RunAuditor/core/pairing.py
from __future__ import annotations
from pathlib import Path
from typing import Sequence
import logging
import numpy as np
import pandas as pd

from .model import FileRecord, PairingResult
from .normalize import CANONICAL_TS_FMT, to_clock

_LOG = logging.getLogger(__name__)


def _key(ts: pd.Timestamp | None) -> str | None:
    return None if ts is None else ts.strftime(CANONICAL_TS_FMT)


def _chronological(testers: list[FileRecord]) -> list[FileRecord]:
    # stable: equal timestamps keep list order, untimestamped testers go last
    return sorted(testers, key=lambda t: (t.timestamp is None,
                                          t.timestamp if t.timestamp is not None else pd.Timestamp.min))


def pair_data_with_testers(data: Sequence[FileRecord],
                           testers: Sequence[FileRecord],
                           max_gap_seconds: float | None = None) -> PairingResult:
    """
    Match acquisition data files to tester_febs files, one-to-one, in three passes:

      1) exact:   identical timestamps, first unmatched tester wins
      2) legacy:  bare "<run>_data.dat" takes the chronologically earliest remaining tester
      3) nearest: smallest absolute time difference, ties to the earliest tester in list order
                  (optionally bounded by ``max_gap_seconds``)

    Passes never revisit earlier decisions.
    """
    matched: dict[int, FileRecord] = {}
    pool: list[FileRecord] = list(testers)

    # 1) exact
    for i, d in enumerate(data):
        key = _key(d.timestamp)
        if key is None:
            continue
        for t in pool:
            if _key(t.timestamp) == key:
                matched[i] = t
                pool.remove(t)
                _LOG.debug("exact: %s <-> %s", d.name, t.name)
                break

    # 2) legacy
    for i, d in enumerate(data):
        if i in matched or not d.legacy or not pool:
            continue
        t = _chronological(pool)[0]
        matched[i] = t
        pool.remove(t)
        _LOG.debug("legacy: %s <-> %s", d.name, t.name)

    # 3) nearest
    for i, d in enumerate(data):
        if i in matched or d.timestamp is None:
            continue
        candidates = [t for t in pool if t.timestamp is not None]
        if not candidates:
            continue
        clocks = np.array([to_clock(t.timestamp) for t in candidates], dtype=float)
        gaps = np.abs(clocks - to_clock(d.timestamp))
        best = int(np.argmin(gaps))
        if max_gap_seconds is not None and gaps[best] > max_gap_seconds:
            _LOG.info("nearest tester for %s is %.0f s away (limit %.0f s); leaving unmatched",
                      d.name, gaps[best], max_gap_seconds)
            continue
        t = candidates[best]
        matched[i] = t
        pool.remove(t)
        _LOG.debug("nearest (%.0f s): %s <-> %s", gaps[best], d.name, t.name)

    pairs: list[tuple[Path, Path | None]] = []
    for i, d in enumerate(data):
        t = matched.get(i)
        pairs.append((d.path, t.path if t is not None else None))

    return PairingResult(
        pairs=tuple(pairs),
        unmatched_testers=tuple(t.path for t in pool),
        run_level_miss=bool(data) and not testers,
    )
