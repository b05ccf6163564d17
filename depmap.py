from __future__ import annotations

from typing import Dict, List, Sequence, Set, Tuple

from tracedata import TraceData

CentricMap = Dict[int, Set[int]]


class DependencyMapError(ValueError):
    """Raised when a dependency map does not fit the trace it describes."""


def build_dependency_maps(trace: Sequence[TraceData]) -> Tuple[CentricMap, CentricMap]:
    """Build (read_centric, write_centric) maps from a trace in issue order.

    A read depends on every distinct write that last wrote one of the blocks
    in ``[slba, slba + nlb)``. Keys only exist for accesses with at least one
    dependency.
    """
    last_writer: Dict[int, int] = {}
    read_centric: CentricMap = {}
    write_centric: CentricMap = {}
    for t in trace:
        if t.is_read:
            writers = {last_writer[lba] for lba in range(t.slba, t.elba) if lba in last_writer}
            if not writers:
                continue
            read_centric[t.id] = writers
            for w in writers:
                write_centric.setdefault(w, set()).add(t.id)
        else:
            for lba in range(t.slba, t.elba):
                last_writer[lba] = t.id
    return read_centric, write_centric


def check_dependency_map(trace: Sequence[TraceData], centric: CentricMap, *, key_is_read: bool) -> None:
    """Validate that keys and members index records of the expected direction.

    ``key_is_read`` is True for a read-centric map. Raises DependencyMapError
    listing the first few offending ids.
    """
    n = len(trace)
    problems: List[str] = []

    def _check(idx: int, want_read: bool, role: str) -> None:
        if not (0 <= idx < n):
            problems.append(f"{role} id {idx} out of range (trace has {n} records)")
        elif trace[idx].is_read != want_read:
            kind = "read" if want_read else "write"
            problems.append(f"{role} id {idx} is not a {kind}")

    for key, members in centric.items():
        _check(int(key), key_is_read, "key")
        for m in members:
            _check(int(m), not key_is_read, f"member of {key}:")
        if len(problems) >= 5:
            break
    if problems:
        label = "read-centric" if key_is_read else "write-centric"
        raise DependencyMapError(f"{label} map invalid: " + "; ".join(problems[:5]))
