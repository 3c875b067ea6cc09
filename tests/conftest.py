"""Pytest configuration for repository-relative imports and shared data."""

import os
import sys

import matplotlib
import numpy as np
import pandas as pd
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

matplotlib.use("Agg")


def make_station_frame(station_id, days, concentrations, start="2020-01-01"):
    base = pd.Timestamp(start)
    return pd.DataFrame(
        {
            "station_id": [str(station_id)] * len(days),
            "date": [base + pd.Timedelta(days=int(d)) for d in days],
            "concentration": np.asarray(concentrations, dtype=float),
        }
    )


@pytest.fixture()
def reference_station() -> pd.DataFrame:
    """Five observations 30 days apart used as the end-to-end reference."""
    return make_station_frame("S1", [0, 30, 60, 90, 120], [10, 12, 9, 15, 11])


@pytest.fixture()
def noisy_station() -> pd.DataFrame:
    rng = np.random.default_rng(7)
    days = np.arange(24) * 30
    log_c = 1.0 + 0.0004 * days + rng.normal(0.0, 0.08, size=len(days))
    return make_station_frame("NOISY", days, 10**log_c)
