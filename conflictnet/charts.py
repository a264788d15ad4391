"""
Charts
======

Line and bar charts drawn from the summary tables only. matplotlib is
imported lazily so the pipeline itself runs without it.
"""

from __future__ import annotations
from pathlib import Path
from typing import Sequence

from .models import CategorySummary, MonthlyBucket


def _pyplot():
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e
    return plt


def _save(plt, path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(p, dpi=200)
    plt.close()
    return p


def plot_monthly(buckets: Sequence[MonthlyBucket], path, title: str = "Fatalities per month") -> Path:
    if not buckets:
        raise ValueError("No monthly buckets to plot.")
    plt = _pyplot()
    plt.figure(figsize=(10, 4))
    plt.plot([b.month for b in buckets], [b.total_fatalities for b in buckets], linewidth=1.2)
    plt.title(title)
    plt.xlabel("Month")
    plt.ylabel("Fatalities")
    return _save(plt, path)


def plot_summary(rows: Sequence[CategorySummary], path, title: str = "Fatalities by event type",
                 top_n: int = 10) -> Path:
    """Horizontal bars, biggest category on top."""
    if not rows:
        raise ValueError("No summary rows to plot.")
    plt = _pyplot()
    top = list(rows)[:top_n][::-1]
    plt.figure(figsize=(8, 0.5 * len(top) + 1.5))
    plt.barh([r.category for r in top], [r.total_fatalities for r in top])
    plt.title(title)
    plt.xlabel("Fatalities")
    return _save(plt, path)
