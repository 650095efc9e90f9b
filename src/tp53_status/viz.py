# tp53-status/src/tp53_status/viz.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .classify import STATUS_COL
from .labels import LABELS

_LABEL_COLORS = {
    "activated": "#d62728",
    "loss": "#1f77b4",
    "other": "#7f7f7f",
}


def apply_pub_style(fontsize: int = 12) -> None:
    """Apply publication-style matplotlib rcParams (mutates global state)."""
    plt.rcParams.update(
        {
            "font.size": fontsize,
            "axes.titlesize": fontsize + 1,
            "axes.labelsize": fontsize + 1,
            "xtick.labelsize": fontsize,
            "ytick.labelsize": fontsize,
            "axes.linewidth": 1.1,
        }
    )


@dataclass(frozen=True)
class ScorePlotConfig:
    score_col: str = "tp53_score"
    status_col: str = STATUS_COL
    threshold: float | None = 0.5
    dpi: int = 200
    seed: int = 0
    title: str = "TP53 classifier score by alteration status"


def plot_score_by_status(
    df: pd.DataFrame, out_png: str, *, config: ScorePlotConfig | None = None
) -> Path:
    """
    Box + jittered strip of classifier scores per status label.

    Samples with a null score are left out; labels with no scored sample get an
    empty slot so the x axis is stable across runs.

    Raises
    ------
    ValueError
        If the score or status column is missing, or no sample has a score.
    """
    cfg = config or ScorePlotConfig()
    for c in (cfg.score_col, cfg.status_col):
        if c not in df.columns:
            raise ValueError(f"plot_score_by_status: missing column {c!r}")

    scores = pd.to_numeric(df[cfg.score_col], errors="coerce")
    d = pd.DataFrame({"score": scores, "status": df[cfg.status_col].astype(str)}).dropna()
    if d.empty:
        raise ValueError("plot_score_by_status: no sample has a classifier score")

    apply_pub_style()
    rng = np.random.default_rng(cfg.seed)
    fig, ax = plt.subplots(figsize=(6, 4.5))

    labels = list(LABELS)
    data = [d.loc[d["status"] == lab, "score"].to_numpy(dtype=float) for lab in labels]
    positions = np.arange(1, len(labels) + 1)

    nonempty = [i for i, x in enumerate(data) if x.size > 0]
    if nonempty:
        ax.boxplot(
            [data[i] for i in nonempty],
            positions=[positions[i] for i in nonempty],
            widths=0.5,
            showfliers=False,
        )
    for pos, lab, vals in zip(positions, labels, data, strict=False):
        if vals.size == 0:
            continue
        jitter = rng.uniform(-0.12, 0.12, size=vals.size)
        ax.scatter(
            np.full(vals.size, pos) + jitter,
            vals,
            s=14,
            alpha=0.7,
            color=_LABEL_COLORS.get(lab, "#333333"),
            zorder=3,
        )

    if cfg.threshold is not None:
        ax.axhline(cfg.threshold, linestyle="--", linewidth=1.0, color="#444444")

    ax.set_xticks(positions)
    ax.set_xticklabels([f"{lab}\n(n={len(v)})" for lab, v in zip(labels, data, strict=False)])
    ax.set_ylim(-0.02, 1.02)
    ax.set_ylabel("Classifier score")
    ax.set_title(cfg.title)
    fig.tight_layout()

    out = Path(out_png)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=int(cfg.dpi))
    plt.close(fig)
    return out
