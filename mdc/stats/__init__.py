"""
Statistical utilities for station trend analysis.

This subpackage provides the numerical routines behind the MDC pipeline. All
functions operate on arrays or tidy DataFrames; no I/O is performed.

Modules:
    regression:
        Closed-form OLS slope, slope standard error and residual degrees of
        freedom, fitted per station.

    bootstrap:
        Resampling-with-replacement estimate of slope spread using a
        seedable, per-station random generator.

    descriptive:
        Per-station summary statistics and normal-approximation diagnostics
        on the raw and log10 scales.

Design Principle:
    This subpackage has no dependencies on plotting or output modules.
"""

from .bootstrap import (
    BootstrapResult,
    bootstrap_slope_std,
    bootstrap_station,
    station_seed,
)
from .descriptive import describe_stations
from .regression import (
    RegressionResult,
    fit_station_regression,
    grouped_regression,
    linear_regression,
    ols_slope,
)

__all__ = [
    "BootstrapResult",
    "bootstrap_slope_std",
    "bootstrap_station",
    "station_seed",
    "describe_stations",
    "RegressionResult",
    "fit_station_regression",
    "grouped_regression",
    "linear_regression",
    "ols_slope",
]
