import math

import pytest

from mdc.calculator import compute_mdc, t_critical
from mdc.errors import DegreesOfFreedomError
from mdc.reconcile import ReconciledUncertainty, UncertaintySource
from mdc.stats.regression import RegressionResult
from mdc.transform import to_percent_change


def _inputs(chosen_std=1.0e-3, n=5, source=UncertaintySource.STANDARD_ERROR):
    reg = RegressionResult(
        station_id="S1",
        slope=1.0e-4,
        intercept=1.0,
        slope_std_error=chosen_std,
        n=n,
        degrees_freedom=n - 2,
    )
    rec = ReconciledUncertainty(
        station_id="S1",
        chosen_std=chosen_std,
        source=source,
        percent_difference=0.0,
        slope_std_error=chosen_std,
        slope_std_dev=chosen_std,
    )
    return rec, reg


def test_t_critical_reference_values():
    assert t_critical(0.95, 1) == pytest.approx(12.706, abs=1e-3)
    assert t_critical(0.95, 3) == pytest.approx(3.182, abs=1e-3)
    assert t_critical(0.90, 10) == pytest.approx(1.812, abs=1e-3)


def test_t_critical_rejects_bad_inputs():
    with pytest.raises(DegreesOfFreedomError):
        t_critical(0.95, 0)
    with pytest.raises(ValueError):
        t_critical(1.0, 5)


def test_compute_mdc_formula():
    rec, reg = _inputs(chosen_std=1.0e-3, n=5)
    out = compute_mdc(rec, reg, confidence_level=0.95, duration_scale=365.0)
    expected_log10 = t_critical(0.95, 3) * 365.0 * 1.0e-3
    assert out.mdc_log10 == pytest.approx(expected_log10)
    assert out.mdc_percent == pytest.approx(to_percent_change(expected_log10))
    assert out.n == 5
    assert out.degrees_freedom == 3
    assert out.source is UncertaintySource.STANDARD_ERROR


def test_compute_mdc_rejects_low_degrees_of_freedom():
    rec, reg = _inputs(n=2)
    with pytest.raises(DegreesOfFreedomError):
        compute_mdc(rec, reg)


def test_out_of_range_percent_warns_without_clamping():
    rec, reg = _inputs(chosen_std=-0.01, n=5)
    with pytest.warns(UserWarning, match="directional"):
        out = compute_mdc(rec, reg)
    assert out.mdc_percent < -100.0
    assert math.isfinite(out.mdc_percent)
