"""Log10 transform of concentrations and its percent-change inverse.

Concentration data are right-skewed; the trend is fitted on the log10 scale
where residuals are closer to normal. The inverse maps a log10 difference back
onto an original-scale percent change for reporting.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from .errors import DomainError
from .schema import OBS

EPOCH = pd.Timestamp("1970-01-01")


def log10_transform(
    df: pd.DataFrame,
    value_col: str = OBS.concentration,
    out_col: str = OBS.log_concentration,
) -> pd.DataFrame:
    """Return a copy of ``df`` with ``out_col = log10(value_col)`` added.

    Args:
        df (pandas.DataFrame): Observation frame with a positive concentration
            column.
        value_col (str): Column to transform.
        out_col (str): Name of the new log10 column.

    Returns:
        pandas.DataFrame: New frame, same length and row order as ``df``.

    Raises:
        DomainError: If any value is non-positive or non-finite.
    """
    values = pd.to_numeric(df[value_col], errors="coerce").to_numpy(dtype=float)
    bad = ~np.isfinite(values) | (values <= 0)
    if np.any(bad):
        raise DomainError(
            f"log10 undefined for {int(np.sum(bad))} non-positive or "
            f"non-finite value(s) in '{value_col}'."
        )
    out = df.copy()
    out[out_col] = np.log10(values)
    return out


def add_time_ordinal(
    df: pd.DataFrame, date_col: str = OBS.date, out_col: str = OBS.time
) -> pd.DataFrame:
    """Return a copy of ``df`` with dates expressed as days since 1970-01-01.

    Time-zone-aware dates are converted to UTC first.
    """
    dates = pd.to_datetime(df[date_col], utc=True).dt.tz_localize(None)
    out = df.copy()
    out[out_col] = ((dates - EPOCH) / pd.Timedelta(days=1)).astype(float)
    return out


def to_percent_change(delta_log10):
    """Convert a log10 difference to an original-scale percent change.

    Args:
        delta_log10 (float | numpy.ndarray): Difference on the log10 scale.

    Returns:
        float | numpy.ndarray: ``(1 - 10**(-delta_log10)) * 100``.

    Note:
        A positive ``delta_log10`` maps into (0, 100); large negative inputs
        fall below -100. No clamping is applied.
    """
    result = (1.0 - np.power(10.0, -np.asarray(delta_log10, dtype=float))) * 100.0
    return float(result) if np.ndim(result) == 0 else result


def from_percent_change(percent):
    """Inverse of :func:`to_percent_change`.

    Raises:
        DomainError: If any ``percent`` is 100 or more (log undefined).
    """
    arr = np.asarray(percent, dtype=float)
    if np.any(arr >= 100.0):
        raise DomainError("Percent change must be below 100 to invert.")
    result = -np.log10(1.0 - arr / 100.0)
    return float(result) if np.ndim(result) == 0 else result
