"""
Chart rendering for the NeuroGlympse revenue predictor.

Provides:
  - 12-month partner-share stacked bar chart (chart_monthly_projection)
  - Base64-encoded chart images for web embedding (get_web_charts)
  - PNG output for the terminal interface (save_chart)
"""

from __future__ import annotations

import base64
import io
from typing import List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter
import numpy as np

import config as cfg
from projection import Projection

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#0a101f"
CARD = "#131b2e"
TEXT = "#f1f5f9"
SLATE = "#94a3b8"
BORDER = "#1e293b"

RTM_COLOR = "#6366f1"
READS_COLOR = "#8b5cf6"
G0552_COLOR = "#a855f7"
COST_COLOR = "#ef4444"

WEB_W, WEB_H = 10, 6


# ═══════════════════════════════════════════════════════════════════
# Axis formatters
# ═══════════════════════════════════════════════════════════════════

def _usd_k_fmt(x, _):
    return f"${x / 1e3:.0f}k"


USD_K_FMT = FuncFormatter(_usd_k_fmt)


# ═══════════════════════════════════════════════════════════════════
# Style helpers
# ═══════════════════════════════════════════════════════════════════

def _style(fig, *axes):
    """Apply dark theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=8)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, axis="y", alpha=0.15, color=SLATE, linestyle="--")
        ax.set_axisbelow(True)


def _legend(ax, loc="upper left"):
    ax.legend(loc=loc, fontsize=8, facecolor=CARD, edgecolor=BORDER, labelcolor=TEXT)


# ═══════════════════════════════════════════════════════════════════
# 12-Month Partner Share Projection (stacked bar)
# ═══════════════════════════════════════════════════════════════════

def chart_monthly_projection(projection: Projection,
                             figsize=(WEB_W, WEB_H)) -> plt.Figure:
    """Stacked bars per month: revenue stacks upward, G0552 cost downward."""
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    labels = [m.month for m in projection.months]
    rtm = np.array([m.rtm for m in projection.months])
    reads = np.array([m.reads for m in projection.months])
    g0552 = np.array([m.g0552 for m in projection.months])
    cost = np.array([m.cost for m in projection.months])

    x = np.arange(len(labels))
    w = 0.6
    ax.bar(x, rtm, w, color=RTM_COLOR, label="RTM (Net)")
    ax.bar(x, reads, w, bottom=rtm, color=READS_COLOR, label="Neuro Reads (Net)")
    ax.bar(x, g0552, w, bottom=rtm + reads, color=G0552_COLOR, label="G0552 (Net)")
    ax.bar(x, cost, w, color=COST_COLOR, label="G0552 Cost (-)")
    ax.axhline(0, color=SLATE, linewidth=0.8)

    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.yaxis.set_major_formatter(USD_K_FMT)
    ax.set_title("12-Month Partner Share Projection", fontsize=13, pad=12)
    _legend(ax)

    return fig


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def figure_to_base64(fig: plt.Figure) -> str:
    """Convert a matplotlib figure to a base64-encoded PNG string."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor(),
                dpi=120, bbox_inches="tight")
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode()
    buf.close()
    return b64


def get_web_charts(projection: Projection) -> List[str]:
    """Return base64-encoded PNG chart images for web embedding.

    Currently a single chart:
      [0] 12-Month Partner Share Projection  (stacked bar)
    """
    chart_figs = [chart_monthly_projection(projection)]

    images = [figure_to_base64(f) for f in chart_figs]
    for f in chart_figs:
        plt.close(f)
    return images


def save_chart(projection: Projection, path: str = cfg.CHART_PATH) -> str:
    """Save the monthly chart as PNG. Returns the file path."""
    fig = chart_monthly_projection(projection)
    fig.savefig(path, format="png", facecolor=fig.get_facecolor(),
                dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path
