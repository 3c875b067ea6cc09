"""Tests for CSV export of result and diagnostic tables."""

import os

import pandas as pd

from mdc.analysis import run_mdc_analysis
from mdc.config import MDCConfig
from mdc.output import OUTPUT_FILES, save_analysis_to_csv


def test_save_analysis_to_csv_writes_every_table(tmp_path, reference_station):
    analysis = run_mdc_analysis(reference_station, MDCConfig(bootstrap_resample_count=100))
    paths = save_analysis_to_csv(analysis, output_dir=str(tmp_path))

    assert set(paths) == set(OUTPUT_FILES)
    for path in paths.values():
        assert os.path.exists(path)

    mdc_df = pd.read_csv(paths["mdc"])
    assert list(mdc_df.columns) == [
        "station_id",
        "N",
        "degrees_freedom",
        "t_critical",
        "chosen_std_source",
        "mdc_log10",
        "mdc_percent",
    ]
    comparison = pd.read_csv(paths["comparison"])
    assert "annual slope (reported)" in comparison.columns

    failures = pd.read_csv(paths["failures"])
    assert failures.empty
    assert list(failures.columns) == ["station_id", "stage", "error_type", "reason"]
