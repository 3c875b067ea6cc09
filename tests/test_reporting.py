"""Tests for reporting-layer formatting and console summary."""

import pandas as pd
import pytest

from mdc.analysis import run_mdc_analysis
from mdc.config import MDCConfig
from mdc.reporting import (
    add_annual_slope_column,
    add_rounded_columns,
    format_value_with_uncertainty,
    print_summary,
)


def test_format_value_matches_uncertainty_decimals():
    assert format_value_with_uncertainty(4.5678, 0.02) == "4.57 ± 0.02"
    assert format_value_with_uncertainty(0.2193, 0.0152, "log10") == "0.219 ± 0.015 log10"
    assert format_value_with_uncertainty(123.4, 20.0) == "120 ± 20"


def test_format_value_with_zero_uncertainty_falls_back():
    assert format_value_with_uncertainty(1.5, 0.0) == "1.5 ± 0"


def test_add_rounded_columns():
    df = pd.DataFrame({"mdc_percent": [92.4791, 10.0004]})
    out = add_rounded_columns(df, ["mdc_percent"], ndigits=1)
    assert out["mdc_percent (reported)"].tolist() == [92.5, 10.0]
    assert "mdc_percent (reported)" not in df.columns
    with pytest.raises(KeyError):
        add_rounded_columns(df, ["missing"])


def test_add_annual_slope_column():
    comp = pd.DataFrame({"slope": [0.002], "chosen_std": [0.0002]})
    out = add_annual_slope_column(comp, duration_scale=365.0)
    assert out.loc[0, "annual slope (reported)"] == "0.73 ± 0.07 log10"


def test_print_summary_lists_failures(capsys, reference_station):
    short = reference_station.head(2).assign(station_id="SHORT")
    data = pd.concat([reference_station, short], ignore_index=True)
    analysis = run_mdc_analysis(data, MDCConfig(bootstrap_resample_count=100))
    print_summary(analysis)
    out = capsys.readouterr().out
    assert "S1: MDC =" in out
    assert "1 of 2 stations succeeded, 1 failed." in out
    assert "SHORT: InsufficientDataError (regression)" in out
