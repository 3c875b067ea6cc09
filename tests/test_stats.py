import numpy as np
import pytest

from conftest import make_station_frame
from mdc.stats.descriptive import DESCRIPTIVE_COLUMNS, describe_stations
from mdc.transform import log10_transform


def test_describe_stations_values():
    conc = [1.0, 10.0, 100.0, 1000.0]
    df = log10_transform(make_station_frame("A", [0, 10, 20, 40], conc))
    desc = describe_stations(df)

    assert list(desc.columns) == DESCRIPTIVE_COLUMNS
    row = desc.iloc[0]
    assert row["station_id"] == "A"
    assert int(row["n"]) == 4
    assert row["duration_days"] == pytest.approx(40.0)
    assert row["mean"] == pytest.approx(277.75)
    assert row["median"] == pytest.approx(55.0)
    assert row["min"] == 1.0 and row["max"] == 1000.0
    # evenly spaced on the log scale
    assert row["log_skew"] == pytest.approx(0.0, abs=1e-6)
    assert row["skew"] > 1.0
    assert 0.0 <= row["log_shapiro_p"] <= 1.0


def test_describe_stations_small_or_constant_groups():
    df = log10_transform(make_station_frame("B", [0, 5], [2.0, 2.0]))
    row = describe_stations(df).iloc[0]
    assert np.isnan(row["skew"])
    assert np.isnan(row["shapiro_p"])
    assert row["sd"] == 0.0
