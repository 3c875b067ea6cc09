"""
Minimum Detectable Change (MDC) analysis of multi-station water-quality data.

For every monitoring station this module:
- log10-transforms concentrations (skewed data become near-normal),
- fits an OLS trend of log10 concentration against time (days),
- estimates slope uncertainty twice: closed-form standard error and the
  standard deviation of bootstrap-resampled slopes,
- reconciles the two with an injectable policy (default: standard error),
- converts the chosen uncertainty into an MDC in log10 units over
  ``duration_scale`` days and back-transforms it to a percent change.

Failures are station-scoped: a station that cannot be analysed is reported
with the stage and reason, and every other station still completes.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .calculator import MDCRecord, compute_mdc
from .config import MDCConfig
from .errors import MDCError
from .reconcile import ReconciledUncertainty, reconcile
from .schema import OBS, RESULT
from .stats.bootstrap import BootstrapResult, bootstrap_station, bootstrap_table
from .stats.descriptive import DESCRIPTIVE_COLUMNS, describe_stations
from .stats.regression import (
    RegressionResult,
    fit_station_regression,
    iter_stations,
    regression_table,
)
from .transform import add_time_ordinal, log10_transform

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = [
    "station_id",
    "n",
    "slope",
    "slope_std_error",
    "slope_std_dev",
    "percent_difference",
    "chosen_std_source",
    "chosen_std",
]
FAILURE_COLUMNS = ["station_id", "stage", "error_type", "reason"]


@dataclass(frozen=True)
class StationOutcome:
    """Result-or-error for one station, with every intermediate it reached."""

    station_id: str
    record: Optional[MDCRecord] = None
    error: Optional[MDCError] = None
    stage: str = "complete"
    regression: Optional[RegressionResult] = None
    bootstrap: Optional[BootstrapResult] = None
    reconciled: Optional[ReconciledUncertainty] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class MDCAnalysis:
    """Per-station outcomes plus the tables derived from them.

    ``mdc`` is the final table; ``descriptive``, ``regression``,
    ``bootstrap`` and ``comparison`` are intermediate diagnostics, and
    ``failures`` lists every excluded station with its reason.
    """

    outcomes: Tuple[StationOutcome, ...]
    descriptive: pd.DataFrame = field(repr=False)
    regression: pd.DataFrame = field(repr=False)
    bootstrap: pd.DataFrame = field(repr=False)
    comparison: pd.DataFrame = field(repr=False)
    mdc: pd.DataFrame = field(repr=False)
    failures: pd.DataFrame = field(repr=False)

    def outcome(self, station_id: str) -> StationOutcome:
        for out in self.outcomes:
            if out.station_id == str(station_id):
                return out
        raise KeyError(f"No outcome for station '{station_id}'.")

    def summary(self) -> Dict[str, object]:
        failed = [o for o in self.outcomes if not o.ok]
        return {
            "n_stations": len(self.outcomes),
            "n_succeeded": len(self.outcomes) - len(failed),
            "n_failed": len(failed),
            "failure_reasons": {
                o.station_id: f"{type(o.error).__name__} ({o.stage}): {o.error}"
                for o in failed
            },
        }


def analyze_station(
    station_id: str,
    group: pd.DataFrame,
    config: MDCConfig,
    cancel_event=None,
) -> StationOutcome:
    """Run regression → bootstrap → reconciliation → MDC for one station.

    ``group`` must already carry the ``time`` and ``log_concentration``
    columns. Station-scoped errors are returned inside the outcome;
    cancellation and unexpected errors propagate.
    """
    x = group[OBS.time].to_numpy(dtype=float)
    y = group[OBS.log_concentration].to_numpy(dtype=float)
    reached: Dict[str, object] = {}
    stage = "regression"
    try:
        reached["regression"] = fit_station_regression(
            station_id, x, y, min_points=config.min_points
        )
        stage = "bootstrap"
        reached["bootstrap"] = bootstrap_station(
            station_id,
            x,
            y,
            n_resamples=config.bootstrap_resample_count,
            base_seed=config.random_seed,
            max_retry_factor=config.max_retry_factor,
            cancel_event=cancel_event,
        )
        stage = "reconciliation"
        reached["reconciled"] = reconcile(
            reached["regression"],
            reached["bootstrap"],
            policy=config.reconciliation_policy,
        )
        stage = "mdc"
        record = compute_mdc(
            reached["reconciled"],
            reached["regression"],
            confidence_level=config.confidence_level,
            duration_scale=config.duration_scale,
        )
    except MDCError as exc:
        logger.warning(
            "Station %s excluded at %s stage: %s", station_id, stage, exc
        )
        return StationOutcome(station_id=station_id, error=exc, stage=stage, **reached)

    logger.debug(
        "Station %s: n=%d, MDC=%.2f%% (%s)",
        station_id,
        record.n,
        record.mdc_percent,
        record.source.value,
    )
    return StationOutcome(station_id=station_id, record=record, **reached)


def _split_transform(
    df: pd.DataFrame,
) -> Tuple[List[Tuple[str, pd.DataFrame]], Dict[str, StationOutcome]]:
    """Transform each station separately so one bad value only excludes its station."""
    groups: List[Tuple[str, pd.DataFrame]] = []
    failed: Dict[str, StationOutcome] = {}
    for station_id, group in iter_stations(df):
        try:
            groups.append((station_id, log10_transform(group)))
        except MDCError as exc:
            logger.warning("Station %s excluded at transform stage: %s", station_id, exc)
            failed[station_id] = StationOutcome(
                station_id=station_id, error=exc, stage="transform"
            )
    return groups, failed


def run_mdc_analysis(
    observations: pd.DataFrame,
    config: Optional[MDCConfig] = None,
    cancel_event=None,
) -> MDCAnalysis:
    """Compute the MDC for every station in ``observations``.

    Args:
        observations (pandas.DataFrame): Canonical observation frame with
            ``station_id``, ``date`` and ``concentration`` columns (see
            :func:`mdc.data_processing.standardize_observations`). It is not
            modified.
        config (MDCConfig, optional): Run settings; defaults to
            ``MDCConfig()``.
        cancel_event (threading.Event, optional): Setting it stops the run
            between bootstrap resamples with ``AnalysisCancelledError``.

    Returns:
        MDCAnalysis: Outcomes in order of first station appearance and the
        derived tables. Output does not depend on ``config.max_workers``.
    """
    config = config or MDCConfig()
    missing = {OBS.station, OBS.date, OBS.concentration} - set(observations.columns)
    if missing:
        raise ValueError(f"Observations are missing required columns: {sorted(missing)}")

    df = add_time_ordinal(observations)
    df[OBS.station] = df[OBS.station].astype(str)
    station_order = [sid for sid, _ in iter_stations(df)]
    logger.info(
        "Starting MDC analysis: %d stations, %d observations, R=%d, seed=%d",
        len(station_order),
        len(df),
        config.bootstrap_resample_count,
        config.random_seed,
    )

    groups, by_station = _split_transform(df)

    if config.max_workers > 1 and len(groups) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = {
                station_id: executor.submit(
                    analyze_station, station_id, group, config, cancel_event
                )
                for station_id, group in groups
            }
            for station_id, future in futures.items():
                by_station[station_id] = future.result()
    else:
        for station_id, group in groups:
            by_station[station_id] = analyze_station(
                station_id, group, config, cancel_event
            )

    outcomes = tuple(by_station[sid] for sid in station_order)
    transformed = [group for _, group in groups]
    descriptive = (
        describe_stations(pd.concat(transformed))
        if transformed
        else pd.DataFrame(columns=DESCRIPTIVE_COLUMNS)
    )
    analysis = _build_analysis(outcomes, descriptive)

    summary = analysis.summary()
    logger.info(
        "MDC analysis finished: %d succeeded, %d failed",
        summary["n_succeeded"],
        summary["n_failed"],
    )
    return analysis


def _build_analysis(
    outcomes: Tuple[StationOutcome, ...], descriptive: pd.DataFrame
) -> MDCAnalysis:
    regressions = [o.regression for o in outcomes if o.regression is not None]
    bootstraps = [o.bootstrap for o in outcomes if o.bootstrap is not None]

    comparison_rows = []
    for o in outcomes:
        if o.reconciled is None:
            continue
        comparison_rows.append(
            {
                "station_id": o.station_id,
                "n": o.regression.n,
                "slope": o.regression.slope,
                "slope_std_error": o.reconciled.slope_std_error,
                "slope_std_dev": o.reconciled.slope_std_dev,
                "percent_difference": o.reconciled.percent_difference,
                "chosen_std_source": o.reconciled.source.value,
                "chosen_std": o.reconciled.chosen_std,
            }
        )

    mdc_rows = [
        {
            RESULT.station: o.record.station_id,
            RESULT.n: o.record.n,
            RESULT.dof: o.record.degrees_freedom,
            RESULT.t_critical: o.record.t_critical,
            RESULT.source: o.record.source.value,
            RESULT.mdc_log10: o.record.mdc_log10,
            RESULT.mdc_percent: o.record.mdc_percent,
        }
        for o in outcomes
        if o.record is not None
    ]

    failure_rows = [
        {
            "station_id": o.station_id,
            "stage": o.stage,
            "error_type": type(o.error).__name__,
            "reason": str(o.error),
        }
        for o in outcomes
        if not o.ok
    ]

    return MDCAnalysis(
        outcomes=outcomes,
        descriptive=descriptive,
        regression=regression_table(regressions),
        bootstrap=bootstrap_table(bootstraps),
        comparison=pd.DataFrame(comparison_rows, columns=COMPARISON_COLUMNS),
        mdc=pd.DataFrame(mdc_rows, columns=RESULT.ordered()),
        failures=pd.DataFrame(failure_rows, columns=FAILURE_COLUMNS),
    )
