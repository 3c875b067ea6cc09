"""
A Python package for estimating the Minimum Detectable Change (MDC) of
water-quality trends across multiple monitoring stations.

Supports designing pollutant-reduction monitoring programs: for each station,
how large a change in concentration the record can distinguish from zero.

Modules:
    - data_processing: Loads monitoring CSVs into canonical observation rows.
    - transform: log10 transform and its percent-change inverse.
    - stats: Per-station OLS trend, bootstrap slope spread, descriptive stats.
    - reconcile: Injectable choice between standard error and bootstrap spread.
    - calculator: t-based MDC in log10 units and percent change.
    - analysis: Station-scoped pipeline producing result and diagnostic tables.
    - output / reporting / plotting: CSV export, console summary, figures.
"""

__version__ = "1.0.0"

from .analysis import MDCAnalysis, StationOutcome, analyze_station, run_mdc_analysis
from .calculator import MDCRecord, compute_mdc, t_critical
from .config import MDCConfig
from .data_processing import load_observations, standardize_observations
from .errors import (
    AnalysisCancelledError,
    BootstrapConvergenceError,
    DegenerateInputError,
    DegreesOfFreedomError,
    DomainError,
    InsufficientDataError,
    MDCError,
)
from .reconcile import (
    ReconciledUncertainty,
    UncertaintySource,
    prefer_standard_error,
    reconcile,
    station_override_policy,
    threshold_policy,
)
from .transform import from_percent_change, log10_transform, to_percent_change

__all__ = [
    # Pipeline
    "MDCAnalysis",
    "MDCConfig",
    "StationOutcome",
    "analyze_station",
    "run_mdc_analysis",
    # Data
    "load_observations",
    "standardize_observations",
    # Transform
    "from_percent_change",
    "log10_transform",
    "to_percent_change",
    # Reconciliation
    "ReconciledUncertainty",
    "UncertaintySource",
    "prefer_standard_error",
    "reconcile",
    "station_override_policy",
    "threshold_policy",
    # MDC
    "MDCRecord",
    "compute_mdc",
    "t_critical",
    # Errors
    "AnalysisCancelledError",
    "BootstrapConvergenceError",
    "DegenerateInputError",
    "DegreesOfFreedomError",
    "DomainError",
    "InsufficientDataError",
    "MDCError",
]
