# viz_tools.py
# Visualization helpers for trace dependency analysis
# - histogram_to_dataframe: hot-write histogram as a DataFrame (read_count, pages, ratio)
# - breakdown_to_dataframe: read/write dependency breakdown table
# - plot_hot_write_histogram: bar chart of pages per read count
#
# Requirements: pandas, matplotlib

from __future__ import annotations
from typing import Optional, Tuple
import pandas as pd
import matplotlib
import matplotlib.pyplot as plt

from analyzer import AnalysisReport, HotWriteHistogram

# -------------------- Colors (can be customized) --------------------
DEFAULT_COLORS = {
    "UNREAD":  "#7f8c8d",  # grey, pages never read before overwrite
    "READ":    "#2ecc71",  # green
    "HOT":     "#e74c3c",  # red, read at least hot_threshold times
}


def histogram_to_dataframe(hist: HotWriteHistogram) -> pd.DataFrame:
    df = pd.DataFrame(hist.items(), columns=["read_count", "pages"])
    if df.empty:
        df["ratio"] = pd.Series(dtype=float)
        return df
    df["ratio"] = df["pages"] / float(df["pages"].sum())
    return df


def breakdown_to_dataframe(report: AnalysisReport) -> pd.DataFrame:
    rows = []
    for kind, bd in (("read", report.reads), ("write", report.writes)):
        rows.append({
            "kind": kind,
            "independent": bd.indep,
            "dep_short": bd.dep_short,
            "dep_long": bd.dep_long,
            "total": bd.total,
        })
    return pd.DataFrame(rows)


def plot_hot_write_histogram(hist: HotWriteHistogram,
                             title: Optional[str] = None,
                             hot_threshold: int = 2,
                             log_y: bool = True,
                             figsize: Tuple[float, float] = (8, 4),
                             save_path: Optional[str] = None,
                             show: bool = False):
    """
    Bar chart of written pages per read count.
    - bucket 0 (never read before overwrite) is grey
    - buckets >= hot_threshold are drawn as hot
    """
    if save_path and not show:
        matplotlib.use("Agg")
    df = histogram_to_dataframe(hist)
    colors = []
    for rc in df["read_count"].tolist():
        if rc == 0:
            colors.append(DEFAULT_COLORS["UNREAD"])
        elif rc >= hot_threshold:
            colors.append(DEFAULT_COLORS["HOT"])
        else:
            colors.append(DEFAULT_COLORS["READ"])

    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(df["read_count"].astype(str), df["pages"], color=colors)
    if log_y and not df.empty:
        ax.set_yscale("log")
    ax.set_xlabel("reads before overwrite")
    ax.set_ylabel("pages")
    ax.set_title(title or "Hot write page histogram")
    ax.grid(axis="y", linestyle="--", alpha=0.35)
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=140)
    if show:
        plt.show()
    else:
        plt.close(fig)
    return fig, ax
