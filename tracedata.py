from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

REQUIRED_COLUMNS = ("op", "slba", "nlb")

_READ_OPS = frozenset({"R", "READ", "RD"})
_WRITE_OPS = frozenset({"W", "WRITE", "WR"})


class TraceDataError(ValueError):
    """Raised when trace records cannot describe a valid address range."""


@dataclass(frozen=True)
class TraceData:
    # id doubles as the record's position in the trace sequence
    id: int
    is_read: bool
    slba: int
    nlb: int

    @property
    def is_write(self) -> bool:
        return not self.is_read

    @property
    def elba(self) -> int:
        # exclusive end block
        return self.slba + self.nlb


def parse_op(op: str) -> bool:
    """Return True for a read op code, False for a write op code."""
    key = str(op).strip().upper()
    if key in _READ_OPS:
        return True
    if key in _WRITE_OPS:
        return False
    raise TraceDataError(f"unknown op code: {op!r}")


def make_trace(rows: Iterable[Tuple[str, int, int]]) -> List[TraceData]:
    trace: List[TraceData] = []
    for idx, (op, slba, nlb) in enumerate(rows):
        trace.append(TraceData(id=idx, is_read=parse_op(op), slba=int(slba), nlb=int(nlb)))
    return trace


def _require_columns(path: str, columns: Sequence[str]) -> None:
    available = set(columns)
    missing = [c for c in REQUIRED_COLUMNS if c not in available]
    if missing:
        raise TraceDataError(f"{path} missing required columns: {', '.join(missing)}")


def load_trace(path: str) -> List[TraceData]:
    """Load a CSV trace with ``op``, ``slba`` and ``nlb`` columns.

    Record ids are assigned from row order; an ``id`` column, when present,
    is ignored so that ids always index the returned list.
    """
    df = pd.read_csv(path, skipinitialspace=True)
    df.columns = [str(c).strip().lower() for c in df.columns]
    _require_columns(path, list(df.columns))
    if df[["slba", "nlb"]].isna().any().any():
        raise TraceDataError(f"{path} has empty slba/nlb cells")
    rows = zip(df["op"].tolist(), df["slba"].astype("int64").tolist(), df["nlb"].astype("int64").tolist())
    return make_trace(rows)


def count_direction(trace: Sequence[TraceData], is_read: bool) -> int:
    return sum(1 for t in trace if t.is_read == is_read)
