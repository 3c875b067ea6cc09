"""Format MDC result tables for human-readable reporting.

This module is used after the numerical analysis to present slopes with their
uncertainties and to print the per-station summary.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np
import pandas as pd

from .schema import RESULT


def _round_uncertainty(u: float) -> tuple[float, int]:
    """Round an uncertainty to 1 s.f. (2 if the leading digit is 1).

    Returns:
        tuple[float, int]: Rounded uncertainty and the ``ndigits`` passed to
        :func:`round`, which may be negative.
    """
    if u <= 0 or not math.isfinite(u):
        return u, 0

    u = abs(float(u))
    exponent = math.floor(math.log10(u))
    leading = u / (10**exponent)
    sig_figs = 2 if 1.0 <= leading < 2.0 else 1
    ndigits = sig_figs - 1 - exponent
    return float(round(u, ndigits)), int(ndigits)


def format_value_with_uncertainty(value: float, uncertainty: float, unit: str = "") -> str:
    """Format ``value ± uncertainty`` with the value rounded to the uncertainty.

    Args:
        value (float): Reported quantity, e.g. an annual log10 slope.
        uncertainty (float): Absolute uncertainty in the same unit.
        unit (str): Optional unit suffix.

    Returns:
        str: For example ``"0.22 ± 0.35 log10/yr"``. Falls back to six
        significant figures when the uncertainty is zero or non-finite.
    """
    ru, ndigits = _round_uncertainty(abs(float(uncertainty)))
    if ru == 0 or not math.isfinite(ru):
        return f"{value:.6g} ± {uncertainty:.6g} {unit}".strip()

    places = max(ndigits, 0)
    v_str = f"{round(float(value), ndigits):.{places}f}"
    u_str = f"{ru:.{places}f}"
    return f"{v_str} ± {u_str} {unit}".strip()


def add_rounded_columns(
    df: pd.DataFrame, columns: Iterable[str], ndigits: int = 3
) -> pd.DataFrame:
    """Return a copy with a ``<col> (reported)`` column for each numeric column."""
    out = df.copy()
    for col in columns:
        if col not in out.columns:
            raise KeyError(f"Column '{col}' not found for rounding.")
        out[f"{col} (reported)"] = pd.to_numeric(out[col], errors="coerce").round(ndigits)
    return out


def add_annual_slope_column(
    comparison_df: pd.DataFrame, duration_scale: float = 365.0
) -> pd.DataFrame:
    """Add ``annual slope (reported)``: slope ± chosen std per reporting period."""
    out = comparison_df.copy()
    out["annual slope (reported)"] = [
        format_value_with_uncertainty(
            float(slope) * duration_scale, float(std) * duration_scale, "log10"
        )
        for slope, std in zip(out["slope"], out["chosen_std"])
    ]
    return out


def print_summary(analysis) -> None:
    """Print the per-station MDC table and the failure summary."""
    print("\nMinimum detectable change by station:")
    mdc_df = analysis.mdc
    if mdc_df.empty:
        print("  (no stations completed)")
    for _, row in mdc_df.iterrows():
        pct = row[RESULT.mdc_percent]
        pct_txt = f"{pct:.1f}%" if np.isfinite(pct) else "undefined"
        print(
            f" - {row[RESULT.station]}: MDC = {pct_txt} "
            f"(log10 {row[RESULT.mdc_log10]:.4f}, t={row[RESULT.t_critical]:.3f}, "
            f"n={int(row[RESULT.n])}, df={int(row[RESULT.dof])}, "
            f"{row[RESULT.source]})"
        )

    summary = analysis.summary()
    print(
        f"\n{summary['n_succeeded']} of {summary['n_stations']} stations succeeded, "
        f"{summary['n_failed']} failed."
    )
    for station_id, reason in summary["failure_reasons"].items():
        print(f"     {station_id}: {reason}")
