"""
Diagnostic figures for the MDC analysis.

- Per-station trend: log10 concentration against date with the fitted line.
- Per-station bootstrap slope histogram with the standard-error reference.
- Across-station comparison of standard error and bootstrap spread.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .schema import OBS
from .transform import EPOCH, add_time_ordinal, log10_transform


@dataclass(frozen=True)
class StyleConfig:
    LABEL_FONTSIZE: float = 12.0
    TICK_FONTSIZE: float = 10.0
    LINEWIDTH: float = 1.8
    MARKERSIZE: float = 30.0
    ALPHA: float = 0.8
    GRID_ALPHA: float = 0.25
    FIGSIZE_SINGLE: tuple[float, float] = (7.0, 4.2)
    FIGURE_DPI: int = 150


STYLE = StyleConfig()


def _safe_name(station_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", str(station_id)).strip("_") or "station"


def _finish_axis(ax, xlabel: str, ylabel: str) -> None:
    ax.set_xlabel(xlabel, fontsize=STYLE.LABEL_FONTSIZE)
    ax.set_ylabel(ylabel, fontsize=STYLE.LABEL_FONTSIZE)
    ax.tick_params(axis="both", labelsize=STYLE.TICK_FONTSIZE)
    ax.grid(True, alpha=STYLE.GRID_ALPHA, linestyle=":")


def _save(fig, path: str) -> str:
    fig.tight_layout()
    fig.savefig(path, dpi=STYLE.FIGURE_DPI)
    plt.close(fig)
    return path


def plot_station_trends(
    analysis, observations: pd.DataFrame, output_dir: str = "output"
) -> List[str]:
    """Plot each fitted station's log10 series with its trend line.

    Args:
        analysis (MDCAnalysis): Output of ``run_mdc_analysis``.
        observations (pandas.DataFrame): The observation frame the analysis
            was run on.
        output_dir (str): Figures go to ``<output_dir>/trends``.

    Returns:
        list[str]: Paths of the written PNG files, one per station that
        reached the regression stage.
    """
    out_dir = os.path.join(output_dir, "trends")
    os.makedirs(out_dir, exist_ok=True)
    df = add_time_ordinal(observations)
    df[OBS.station] = df[OBS.station].astype(str)

    paths = []
    for outcome in analysis.outcomes:
        reg = outcome.regression
        if reg is None:
            continue
        group = log10_transform(df[df[OBS.station] == outcome.station_id])
        x = group[OBS.time].to_numpy(dtype=float)
        y = group[OBS.log_concentration].to_numpy(dtype=float)
        x_line = np.linspace(x.min(), x.max(), 50)
        dates_line = EPOCH + pd.to_timedelta(x_line, unit="D")

        fig, ax = plt.subplots(figsize=STYLE.FIGSIZE_SINGLE)
        ax.scatter(
            pd.to_datetime(group[OBS.date]),
            y,
            s=STYLE.MARKERSIZE,
            alpha=STYLE.ALPHA,
            label="Observations",
        )
        ax.plot(
            dates_line,
            reg.intercept + reg.slope * x_line,
            color="black",
            linewidth=STYLE.LINEWIDTH,
            label=f"OLS trend (n={reg.n})",
        )
        if outcome.record is not None:
            ax.set_title(
                f"{outcome.station_id}: MDC = {outcome.record.mdc_percent:.1f}%",
                fontsize=STYLE.LABEL_FONTSIZE,
            )
        else:
            ax.set_title(str(outcome.station_id), fontsize=STYLE.LABEL_FONTSIZE)
        _finish_axis(ax, "Date", r"$\log_{10}$ concentration")
        ax.legend(frameon=False)
        fig.autofmt_xdate()
        paths.append(
            _save(fig, os.path.join(out_dir, f"{_safe_name(outcome.station_id)}.png"))
        )
    return paths


def plot_bootstrap_distributions(analysis, output_dir: str = "output") -> List[str]:
    """Histogram of resampled slopes for every bootstrapped station."""
    out_dir = os.path.join(output_dir, "bootstrap")
    os.makedirs(out_dir, exist_ok=True)

    paths = []
    for outcome in analysis.outcomes:
        boot = outcome.bootstrap
        if boot is None or boot.slopes is None:
            continue
        reg = outcome.regression
        fig, ax = plt.subplots(figsize=STYLE.FIGSIZE_SINGLE)
        ax.hist(boot.slopes, bins=40, alpha=STYLE.ALPHA, color="tab:blue")
        ax.axvline(reg.slope, color="black", linewidth=STYLE.LINEWIDTH, label="OLS slope")
        for sign in (-1.0, 1.0):
            ax.axvline(
                reg.slope + sign * reg.slope_std_error,
                color="tab:red",
                linestyle="--",
                linewidth=STYLE.LINEWIDTH,
                label="± standard error" if sign > 0 else None,
            )
        ax.set_title(
            f"{outcome.station_id}: bootstrap SD = {boot.slope_std_dev:.3g} "
            f"(R={boot.resample_count})",
            fontsize=STYLE.LABEL_FONTSIZE,
        )
        _finish_axis(ax, "Slope (log10 per day)", "Resamples")
        ax.legend(frameon=False)
        paths.append(
            _save(fig, os.path.join(out_dir, f"{_safe_name(outcome.station_id)}.png"))
        )
    return paths


def plot_uncertainty_comparison(analysis, output_dir: str = "output") -> str:
    """Scatter of bootstrap spread against standard error with the 1:1 line."""
    os.makedirs(output_dir, exist_ok=True)
    comp = analysis.comparison

    fig, ax = plt.subplots(figsize=STYLE.FIGSIZE_SINGLE)
    if not comp.empty:
        se = comp["slope_std_error"].to_numpy(dtype=float)
        sd = comp["slope_std_dev"].to_numpy(dtype=float)
        ax.scatter(se, sd, s=STYLE.MARKERSIZE, alpha=STYLE.ALPHA)
        for station_id, xi, yi in zip(comp["station_id"], se, sd):
            ax.annotate(str(station_id), (xi, yi), fontsize=8, xytext=(3, 3),
                        textcoords="offset points")
        hi = float(np.nanmax(np.concatenate([se, sd]))) * 1.1
        ax.plot([0, hi], [0, hi], color="gray", linestyle=":", label="1:1")
        ax.set_xlim(0, hi)
        ax.set_ylim(0, hi)
        ax.legend(frameon=False)
    _finish_axis(ax, "Slope standard error", "Bootstrap slope SD")
    return _save(fig, os.path.join(output_dir, "uncertainty_comparison.png"))
