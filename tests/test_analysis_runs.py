import logging
import threading
from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from conftest import make_station_frame
from mdc.analysis import run_mdc_analysis
from mdc.config import MDCConfig
from mdc.data_processing import standardize_observations
from mdc.errors import AnalysisCancelledError
from mdc.reconcile import UncertaintySource, station_override_policy

MDC_COLUMNS = [
    "station_id",
    "N",
    "degrees_freedom",
    "t_critical",
    "chosen_std_source",
    "mdc_log10",
    "mdc_percent",
]


def _mixed_dataset(noisy_station):
    short = make_station_frame("SHORT", [0, 40], [5.0, 6.0])
    same_day = make_station_frame("SAME_DAY", [10, 10, 10, 10], [3.0, 3.5, 2.8, 3.1])
    nondetect = make_station_frame("ZERO", [0, 30, 60, 90], [1.0, 0.0, 1.2, 0.9])
    return pd.concat([noisy_station, short, same_day, nondetect], ignore_index=True)


def test_reference_station_end_to_end(reference_station):
    config = MDCConfig(random_seed=42, bootstrap_resample_count=1000)
    analysis = run_mdc_analysis(reference_station, config)

    assert list(analysis.mdc.columns) == MDC_COLUMNS
    assert len(analysis.mdc) == 1
    row = analysis.mdc.iloc[0]
    assert row["station_id"] == "S1"
    assert int(row["N"]) == 5
    assert int(row["degrees_freedom"]) == 3
    assert row["chosen_std_source"] == "standard_error"
    assert row["t_critical"] == pytest.approx(3.1824, abs=1e-3)
    # slope SE ~9.673e-4 /day -> 3.1824 * 365 * SE ~1.1237 log10 units
    assert row["mdc_log10"] == pytest.approx(1.1237, rel=2e-3)
    assert row["mdc_percent"] == pytest.approx(92.48, abs=0.5)

    outcome = analysis.outcome("S1")
    assert outcome.ok
    assert outcome.bootstrap.resample_count == 1000
    assert outcome.bootstrap.slope_std_dev > 0
    assert analysis.failures.empty


def test_observations_are_not_mutated(reference_station):
    before = reference_station.copy()
    run_mdc_analysis(reference_station, MDCConfig(bootstrap_resample_count=50))
    pd.testing.assert_frame_equal(reference_station, before)


def test_failures_are_station_scoped(noisy_station, caplog):
    caplog.set_level(logging.WARNING)
    data = _mixed_dataset(noisy_station)
    analysis = run_mdc_analysis(data, MDCConfig(bootstrap_resample_count=200))

    assert [o.station_id for o in analysis.outcomes] == [
        "NOISY",
        "SHORT",
        "SAME_DAY",
        "ZERO",
    ]
    assert analysis.mdc["station_id"].tolist() == ["NOISY"]

    failures = analysis.failures.set_index("station_id")
    assert failures.loc["SHORT", "error_type"] == "InsufficientDataError"
    assert failures.loc["SHORT", "stage"] == "regression"
    assert failures.loc["SAME_DAY", "error_type"] == "DegenerateInputError"
    assert failures.loc["ZERO", "error_type"] == "DomainError"
    assert failures.loc["ZERO", "stage"] == "transform"

    summary = analysis.summary()
    assert summary["n_stations"] == 4
    assert summary["n_succeeded"] == 1
    assert summary["n_failed"] == 3
    assert set(summary["failure_reasons"]) == {"SHORT", "SAME_DAY", "ZERO"}
    assert any("SHORT excluded at regression" in rec.message for rec in caplog.records)


def test_intermediate_tables_are_exposed(noisy_station):
    data = _mixed_dataset(noisy_station)
    analysis = run_mdc_analysis(data, MDCConfig(bootstrap_resample_count=200))

    assert analysis.regression["station_id"].tolist() == ["NOISY"]
    assert analysis.bootstrap["station_id"].tolist() == ["NOISY"]
    comp = analysis.comparison.iloc[0]
    expected = 100 * (comp["slope_std_error"] - comp["slope_std_dev"]) / comp["slope_std_dev"]
    assert comp["percent_difference"] == pytest.approx(expected)
    assert comp["chosen_std"] == comp["slope_std_error"]

    desc = analysis.descriptive.set_index("station_id")
    assert "ZERO" not in desc.index
    assert int(desc.loc["NOISY", "n"]) == 24
    assert int(desc.loc["SHORT", "n"]) == 2
    assert np.isnan(desc.loc["SHORT", "shapiro_p"])
    assert desc.loc["NOISY", "duration_days"] == pytest.approx(23 * 30)


def test_override_policy_flows_into_mdc(noisy_station):
    config = MDCConfig(
        bootstrap_resample_count=300,
        reconciliation_policy=station_override_policy(["NOISY"]),
    )
    analysis = run_mdc_analysis(noisy_station, config)
    outcome = analysis.outcome("NOISY")
    assert outcome.record.source is UncertaintySource.BOOTSTRAP_STD_DEV
    assert analysis.comparison.iloc[0]["chosen_std"] == outcome.bootstrap.slope_std_dev
    assert analysis.mdc.iloc[0]["chosen_std_source"] == "bootstrap_std_dev"


def test_parallel_run_matches_serial(noisy_station, reference_station):
    other = noisy_station.assign(station_id="NOISY2")
    data = pd.concat([noisy_station, reference_station, other], ignore_index=True)
    serial = run_mdc_analysis(data, MDCConfig(bootstrap_resample_count=300))
    parallel = run_mdc_analysis(
        data, MDCConfig(bootstrap_resample_count=300, max_workers=3)
    )
    pd.testing.assert_frame_equal(serial.mdc, parallel.mdc)
    pd.testing.assert_frame_equal(serial.comparison, parallel.comparison)


def test_changing_seed_changes_bootstrap_only(noisy_station):
    base = MDCConfig(bootstrap_resample_count=300)
    a = run_mdc_analysis(noisy_station, base)
    b = run_mdc_analysis(noisy_station, replace(base, random_seed=7))
    assert a.mdc.iloc[0]["mdc_percent"] == b.mdc.iloc[0]["mdc_percent"]
    assert (
        a.bootstrap.iloc[0]["slope_std_dev"] != b.bootstrap.iloc[0]["slope_std_dev"]
    )


def test_cancellation_aborts_run(noisy_station):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(AnalysisCancelledError):
        run_mdc_analysis(noisy_station, MDCConfig(), cancel_event=cancel)


def test_missing_columns_rejected():
    with pytest.raises(ValueError, match="missing required columns"):
        run_mdc_analysis(pd.DataFrame({"station_id": ["a"], "date": ["2020-01-01"]}))


def test_config_validation():
    with pytest.raises(ValueError):
        MDCConfig(confidence_level=1.5)
    with pytest.raises(ValueError):
        MDCConfig(min_points=2)
    with pytest.raises(ValueError):
        MDCConfig(bootstrap_resample_count=1)
    with pytest.raises(ValueError, match="random_seed"):
        MDCConfig(random_seed=-1)
    cfg = replace(MDCConfig(), duration_scale=1.0)
    assert cfg.duration_scale == 1.0
    assert cfg.confidence_level == 0.95


def test_time_zone_aware_dates_run_end_to_end(reference_station):
    raw = reference_station.assign(
        date=reference_station["date"].dt.strftime("%Y-%m-%dT%H:%M:%SZ")
    )
    observations = standardize_observations(raw)
    analysis = run_mdc_analysis(observations, MDCConfig(bootstrap_resample_count=50))

    assert analysis.failures.empty
    assert analysis.mdc.iloc[0]["mdc_percent"] == pytest.approx(92.48, abs=0.5)


def test_noise_free_stations_are_excluded_at_reconciliation(noisy_station):
    days = [0, 30, 60, 90, 120, 150]
    flat = make_station_frame("FLAT", days, [10.0] * len(days))
    exact = make_station_frame("EXACT", days, [10 ** (1.0 + 0.002 * d) for d in days])
    data = pd.concat([noisy_station, flat, exact], ignore_index=True)

    analysis = run_mdc_analysis(data, MDCConfig(bootstrap_resample_count=100))

    assert analysis.mdc["station_id"].tolist() == ["NOISY"]
    failures = analysis.failures.set_index("station_id")
    for station_id in ("FLAT", "EXACT"):
        assert failures.loc[station_id, "stage"] == "reconciliation"
        assert failures.loc[station_id, "error_type"] == "DegenerateInputError"
        assert "no residual scatter" in failures.loc[station_id, "reason"]
        outcome = analysis.outcome(station_id)
        assert outcome.regression is not None
        assert outcome.bootstrap is not None
    assert set(analysis.regression["station_id"]) == {"NOISY", "FLAT", "EXACT"}
