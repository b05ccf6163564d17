from __future__ import annotations

import argparse
import csv
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml

from analyzer import AnalysisReport, analyze, format_report
from depmap import build_dependency_maps, check_dependency_map
from tracedata import load_trace

DEFAULT_PAGE_SIZE = 8  # 4 KiB pages of 512 B logical blocks


# ------------------------------
# CSV helpers
# ------------------------------
def _date_stamp() -> str:
    # yymmdd
    return datetime.now().strftime("%y%m%d")


def _ensure_dir(p: str) -> None:
    d = os.path.dirname(p)
    if d:
        os.makedirs(d, exist_ok=True)


def _csv_write(path: str, rows: List[Dict[str, Any]], fieldnames: List[str]) -> None:
    _ensure_dir(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames, quoting=csv.QUOTE_MINIMAL)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def export_depend_breakdown(report: AnalysisReport, *, out_dir: str, tag: str) -> str:
    # fields: kind,independent,dep_short,dep_long,total
    rows = [
        {
            "kind": kind,
            "independent": bd.indep,
            "dep_short": bd.dep_short,
            "dep_long": bd.dep_long,
            "total": bd.total,
        }
        for kind, bd in (("read", report.reads), ("write", report.writes))
    ]
    path = os.path.join(out_dir, f"depend_breakdown_{tag}_{_date_stamp()}.csv")
    _csv_write(path, rows, ["kind", "independent", "dep_short", "dep_long", "total"])
    return path


def export_hot_write_histogram(report: AnalysisReport, *, out_dir: str, tag: str) -> str:
    rows = [{"read_count": k, "pages": v} for k, v in report.hot_write.items()]
    path = os.path.join(out_dir, f"hot_write_{tag}_{_date_stamp()}.csv")
    _csv_write(path, rows, ["read_count", "pages"])
    return path


# ------------------------------
# Config
# ------------------------------
def _load_cfg(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    if not os.path.exists(path):
        print(f"warning: config not found: {path}; using defaults", file=sys.stderr)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _ensure_min_cfg(cfg: Dict[str, Any]) -> Dict[str, Any]:
    c = dict(cfg or {})
    an = dict(c.get("analysis", {}) or {})
    an.setdefault("page_size", DEFAULT_PAGE_SIZE)
    an.setdefault("validate_maps", True)
    c["analysis"] = an

    ex = dict(c.get("export", {}) or {})
    ex.setdefault("out_dir", "out")
    ex.setdefault("csv", True)
    ex.setdefault("plot", False)
    c["export"] = ex
    return c


def _apply_overrides(
    cfg: Dict[str, Any],
    *,
    page_size: Optional[int],
    out_dir: Optional[str],
    plot: Optional[bool],
    validate_maps: Optional[bool],
) -> Dict[str, Any]:
    c = dict(cfg)
    an = dict(c.get("analysis", {}) or {})
    if page_size is not None:
        an["page_size"] = int(page_size)
    if validate_maps is not None:
        an["validate_maps"] = bool(validate_maps)
    c["analysis"] = an
    ex = dict(c.get("export", {}) or {})
    if out_dir is not None:
        ex["out_dir"] = str(out_dir)
    if plot is not None:
        ex["plot"] = bool(plot)
    c["export"] = ex
    return c


# ------------------------------
# Runner
# ------------------------------
def run_analysis(trace_path: str, cfg: Dict[str, Any], *, quiet: bool = False) -> AnalysisReport:
    an = cfg["analysis"]
    page_size = int(an["page_size"])
    if page_size <= 0:
        raise ValueError(f"analysis.page_size must be positive, got {page_size}")
    trace = load_trace(trace_path)
    if not quiet:
        print(f"[load] {trace_path}: {len(trace)} records", file=sys.stderr)
    read_centric, write_centric = build_dependency_maps(trace)
    if bool(an.get("validate_maps", True)):
        check_dependency_map(trace, read_centric, key_is_read=True)
        check_dependency_map(trace, write_centric, key_is_read=False)
    if not quiet:
        print(
            f"[deps] read-centric={len(read_centric)} write-centric={len(write_centric)} page_size={page_size}",
            file=sys.stderr,
        )
    return analyze(trace, read_centric, write_centric, page_size)


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Classify read/write dependencies and page-level hot writes in an I/O trace")
    p.add_argument("trace", help="CSV trace with op,slba,nlb columns")
    p.add_argument("--config", default="config.yaml", help="Path to YAML config")
    p.add_argument("--page-size", type=int, default=None, help="Override analysis.page_size (blocks per page)")
    p.add_argument("--out-dir", default=None, help="Override export.out_dir")
    p.add_argument("--no-csv", dest="csv", action="store_false", help="Skip CSV exports")
    p.set_defaults(csv=None)
    p.add_argument("--plot", dest="plot", action="store_true", default=None, help="Save hot-write histogram plot")
    p.add_argument("--no-validate", dest="validate_maps", action="store_false", default=None,
                   help="Skip dependency map validation")
    p.add_argument("--quiet", "-q", action="store_true", help="Only print the report")
    args = p.parse_args(argv)

    cfg = _ensure_min_cfg(_load_cfg(args.config))
    cfg = _apply_overrides(
        cfg,
        page_size=args.page_size,
        out_dir=args.out_dir,
        plot=args.plot,
        validate_maps=args.validate_maps,
    )
    if args.csv is not None:
        cfg["export"]["csv"] = bool(args.csv)

    try:
        report = run_analysis(args.trace, cfg, quiet=args.quiet)
    except FileNotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    for line in format_report(report):
        print(line)

    ex = cfg["export"]
    out_dir = str(ex["out_dir"])
    tag = os.path.splitext(os.path.basename(args.trace))[0]
    if bool(ex.get("csv", True)):
        paths = [
            export_depend_breakdown(report, out_dir=out_dir, tag=tag),
            export_hot_write_histogram(report, out_dir=out_dir, tag=tag),
        ]
        if not args.quiet:
            for path in paths:
                print(f"[export] {path}", file=sys.stderr)
    if bool(ex.get("plot", False)):
        from viz_tools import plot_hot_write_histogram

        os.makedirs(out_dir, exist_ok=True)
        png = os.path.join(out_dir, f"hot_write_{tag}_{_date_stamp()}.png")
        plot_hot_write_histogram(report.hot_write, title=f"Hot write pages ({tag})", save_path=png)
        if not args.quiet:
            print(f"[export] {png}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
