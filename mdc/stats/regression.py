"""Provide the per-station trend regression used for MDC estimation.

This module supports:
- a slope-only closed-form OLS fit reused by the bootstrap,
- a full closed-form fit with slope standard error and residual dof, and
- a grouped driver fitting one line per monitoring station.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from ..errors import DegenerateInputError, InsufficientDataError, MDCError
from ..schema import OBS


@dataclass(frozen=True)
class RegressionResult:
    """Closed-form OLS trend of log10 concentration against time for one station."""

    station_id: str
    slope: float
    intercept: float
    slope_std_error: float
    n: int
    degrees_freedom: int
    r2: float = math.nan


def _as_finite_arrays(x, y) -> Tuple[np.ndarray, np.ndarray]:
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.shape != y_arr.shape:
        raise ValueError("x and y must have the same shape.")
    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    return x_arr[mask], y_arr[mask]


def ols_slope(x: np.ndarray, y: np.ndarray) -> float:
    """Return the closed-form OLS slope ``Sxy / Sxx``.

    Args:
        x (numpy.ndarray): Abscissa (time ordinal).
        y (numpy.ndarray): Ordinate (log10 concentration).

    Raises:
        DegenerateInputError: If every ``x`` is identical.
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.size == 0 or np.all(x_arr == x_arr[0]):
        raise DegenerateInputError("All timestamps are identical; slope is undefined.")
    dx = x_arr - x_arr.mean()
    ssxx = float(np.dot(dx, dx))
    if ssxx <= 0:
        raise DegenerateInputError("Zero timestamp variance; slope is undefined.")
    return float(np.dot(dx, y_arr - y_arr.mean()) / ssxx)


def linear_regression(x: np.ndarray, y: np.ndarray, min_points: int = 3) -> Dict[str, float]:
    """Fit an ordinary least-squares straight line to finite data pairs.

    Args:
        x (numpy.ndarray): Independent variable, e.g. days since epoch.
        y (numpy.ndarray): Dependent variable, e.g. log10 concentration.
        min_points (int, optional): Minimum number of finite paired
            observations required. Defaults to ``3`` so that ``n - 2 >= 1``.

    Returns:
        dict[str, float]: Keys ``m`` (slope), ``b`` (intercept), ``se_m``,
        ``r2``, ``n``, ``dof``, ``mse`` and ``ssxx``.

    Raises:
        InsufficientDataError: If fewer than ``min_points`` finite pairs remain.
        DegenerateInputError: If all ``x`` values are identical.

    Note:
        ``se_m = sqrt(mse / Sxx)`` with ``mse = SSE / (n - 2)``. It describes
        statistical scatter around the fitted trend only.
    """
    x_arr, y_arr = _as_finite_arrays(x, y)
    n = int(len(x_arr))
    if n < max(int(min_points), 3):
        raise InsufficientDataError(
            f"Insufficient valid data for regression. "
            f"Found {n} points, minimum {max(int(min_points), 3)} required."
        )

    m = ols_slope(x_arr, y_arr)
    xbar = float(np.mean(x_arr))
    ybar = float(np.mean(y_arr))
    b = ybar - m * xbar
    resid = y_arr - (m * x_arr + b)

    sse = float(np.sum(resid**2))
    sst = float(np.sum((y_arr - ybar) ** 2))
    r2 = 1.0 - sse / sst if sst > 0 else math.nan

    dof = n - 2
    ssxx = float(np.sum((x_arr - xbar) ** 2))
    mse = sse / dof
    se_m = float(np.sqrt(mse / ssxx))

    return {
        "m": float(m),
        "b": float(b),
        "se_m": se_m,
        "r2": float(r2),
        "n": n,
        "dof": dof,
        "mse": mse,
        "ssxx": ssxx,
    }


def fit_station_regression(
    station_id: str, x: np.ndarray, y: np.ndarray, min_points: int = 3
) -> RegressionResult:
    """Fit one station's trend and wrap it as a :class:`RegressionResult`.

    Raises:
        InsufficientDataError: Fewer than ``min_points`` finite pairs.
        DegenerateInputError: All timestamps are identical.
    """
    reg = linear_regression(x, y, min_points=min_points)
    return RegressionResult(
        station_id=str(station_id),
        slope=reg["m"],
        intercept=reg["b"],
        slope_std_error=reg["se_m"],
        n=int(reg["n"]),
        degrees_freedom=int(reg["dof"]),
        r2=reg["r2"],
    )


def iter_stations(df: pd.DataFrame, group_col: str = OBS.station):
    """Yield ``(station_id, group)`` in order of first appearance."""
    for station_id, group in df.groupby(group_col, sort=False):
        yield str(station_id), group


def grouped_regression(
    df: pd.DataFrame,
    group_col: str = OBS.station,
    x_col: str = OBS.time,
    y_col: str = OBS.log_concentration,
    min_points: int = 3,
) -> Tuple[List[RegressionResult], Dict[str, MDCError]]:
    """Fit one trend line per station.

    Returns:
        tuple: ``(results, failures)`` where ``results`` holds one
        :class:`RegressionResult` per fitted station in order of first
        appearance and ``failures`` maps each excluded station to the error
        that excluded it.
    """
    results: List[RegressionResult] = []
    failures: Dict[str, MDCError] = {}
    for station_id, group in iter_stations(df, group_col):
        try:
            results.append(
                fit_station_regression(
                    station_id,
                    group[x_col].to_numpy(dtype=float),
                    group[y_col].to_numpy(dtype=float),
                    min_points=min_points,
                )
            )
        except MDCError as exc:
            failures[station_id] = exc
    return results, failures


def regression_table(results: List[RegressionResult]) -> pd.DataFrame:
    """One row per fitted station, in the order given."""
    columns = [
        "station_id",
        "slope",
        "intercept",
        "slope_std_error",
        "n",
        "degrees_freedom",
        "r2",
    ]
    rows = [{col: getattr(res, col) for col in columns} for res in results]
    return pd.DataFrame(rows, columns=columns)
