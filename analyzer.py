from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Tuple

import numpy as np

from depmap import DependencyMapError
from tracedata import TraceData, TraceDataError


@dataclass
class DependBreakdown:
    indep: int = 0
    dep_short: int = 0
    dep_long: int = 0

    @property
    def total(self) -> int:
        return self.indep + self.dep_short + self.dep_long


@dataclass
class HotWriteHistogram:
    """Number of (write, page) pairs per read-count value."""

    counts: Dict[int, int] = field(default_factory=dict)

    def add(self, page_counts: np.ndarray) -> None:
        vals, freq = np.unique(page_counts, return_counts=True)
        for v, f in zip(vals.tolist(), freq.tolist()):
            self.counts[v] = self.counts.get(v, 0) + f

    def read_counts(self) -> np.ndarray:
        return np.array(sorted(self.counts), dtype=np.int64)

    def frequencies(self) -> np.ndarray:
        return np.array([self.counts[k] for k in sorted(self.counts)], dtype=np.int64)

    def items(self) -> List[Tuple[int, int]]:
        return sorted(self.counts.items())

    @property
    def total_pages(self) -> int:
        return sum(self.counts.values())


@dataclass
class AnalysisReport:
    reads: DependBreakdown
    writes: DependBreakdown
    hot_write: HotWriteHistogram


def analyze_depend_types(
    trace: Sequence[TraceData],
    centric: Mapping[int, Set[int]],
    is_read: bool,
) -> DependBreakdown:
    """Count independent / single-dependent / multi-dependent accesses.

    Only accesses whose direction matches ``is_read`` are counted, and
    ``centric`` must be keyed by ids of that direction: the read-centric map
    for reads, the write-centric map for writes.

    Independent accesses touch addresses never written (for reads) or never
    read afterwards (for writes). Short dependencies have exactly one partner;
    long ones have several, which usually means the range was assembled from
    separate extents rather than that it is a hotspot.
    """
    bd = DependBreakdown()
    for t in trace:
        if t.is_read != is_read:
            continue
        deps = centric.get(t.id)
        if not deps:
            # absent key, or an empty set left behind upstream
            bd.indep += 1
        elif len(deps) > 1:
            bd.dep_long += 1
        else:
            bd.dep_short += 1
    return bd


def page_span(slba: int, nlb: int, page_size: int) -> Tuple[int, int]:
    """Inclusive (page_start, page_end) covered by ``[slba, slba + nlb]``."""
    if page_size <= 0:
        raise ValueError(f"page_size must be a positive integer, got {page_size}")
    start = int(slba) // page_size
    end = (int(slba) + int(nlb)) // page_size
    if start < 0 or end < start:
        raise TraceDataError(f"invalid page span {start}..{end} for slba={slba} nlb={nlb}")
    return start, end


def page_read_counts(
    trace: Sequence[TraceData],
    write_id: int,
    read_ids: Iterable[int],
    page_size: int,
) -> np.ndarray:
    """Per-page number of reads that touched the data written by ``write_id``."""
    w = trace[write_id]
    w_start, w_end = page_span(w.slba, w.nlb, page_size)
    counts = np.zeros(w_end - w_start + 1, dtype=np.int32)
    for rid in read_ids:
        r = trace[rid]
        r_start, r_end = page_span(r.slba, r.nlb, page_size)
        # read may start earlier or end later than the write
        lo = max(w_start, r_start)
        hi = min(w_end, r_end)
        if hi < lo:
            raise DependencyMapError(
                f"read {rid} (pages {r_start}..{r_end}) does not overlap write {write_id} (pages {w_start}..{w_end})"
            )
        counts[lo - w_start : hi - w_start + 1] += 1
    return counts


def analyze_hot_write(
    trace: Sequence[TraceData],
    write_centric: Mapping[int, Set[int]],
    page_size: int,
) -> HotWriteHistogram:
    """Histogram of how many times each written page is read before overwrite.

    Only writes read at least once (keys of ``write_centric``) contribute.
    Every page of such a write adds one to the bucket of its read count,
    including pages no read touched (bucket 0).
    """
    hist = HotWriteHistogram()
    for write_id in sorted(write_centric):
        hist.add(page_read_counts(trace, write_id, write_centric[write_id], page_size))
    return hist


def analyze(
    trace: Sequence[TraceData],
    read_centric: Mapping[int, Set[int]],
    write_centric: Mapping[int, Set[int]],
    page_size: int,
) -> AnalysisReport:
    reads = analyze_depend_types(trace, read_centric, True)
    writes = analyze_depend_types(trace, write_centric, False)
    hot = analyze_hot_write(trace, write_centric, page_size)
    return AnalysisReport(reads=reads, writes=writes, hot_write=hot)


def format_report(report: AnalysisReport) -> List[str]:
    lines: List[str] = []
    for label, bd in (("Read BD", report.reads), ("Write BD", report.writes)):
        lines.append(f"[{label}]\tIndependent\tDep_Short\tDep_Long")
        lines.append(f"{bd.indep}\t{bd.dep_short}\t{bd.dep_long}")
    lines.append("[HotWrite]")
    items = report.hot_write.items()
    lines.append("\t".join(str(k) for k, _ in items))
    lines.append("\t".join(str(v) for _, v in items))
    return lines
