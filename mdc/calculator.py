"""Minimum Detectable Change from a station's chosen slope uncertainty.

``MDC_log10 = t_crit * duration_scale * chosen_std``, where ``t_crit`` is the
two-tailed Student's t critical value at the configured confidence level with
the regression's residual degrees of freedom. The log10 MDC is then expressed
as an original-scale percent change.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass

from scipy.stats import t as student_t

from .errors import DegreesOfFreedomError
from .reconcile import ReconciledUncertainty, UncertaintySource
from .stats.regression import RegressionResult
from .transform import to_percent_change

DEFAULT_CONFIDENCE = 0.95
DEFAULT_DURATION_SCALE = 365.0


@dataclass(frozen=True)
class MDCRecord:
    station_id: str
    n: int
    degrees_freedom: int
    t_critical: float
    source: UncertaintySource
    mdc_log10: float
    mdc_percent: float


def t_critical(confidence_level: float, degrees_freedom: int) -> float:
    """Two-tailed Student's t critical value.

    Args:
        confidence_level (float): For example ``0.95``; must lie in (0, 1).
        degrees_freedom (int): Residual degrees of freedom, ``n - 2``.

    Raises:
        DegreesOfFreedomError: If ``degrees_freedom < 1``.
        ValueError: If ``confidence_level`` is outside (0, 1).

    References:
        ``t_critical(0.95, 1) ≈ 12.706`` (standard t table).
    """
    if degrees_freedom is None or int(degrees_freedom) < 1:
        raise DegreesOfFreedomError(
            f"Degrees of freedom must be >= 1, got {degrees_freedom}."
        )
    if not 0.0 < float(confidence_level) < 1.0:
        raise ValueError(
            f"confidence_level must lie strictly between 0 and 1, got {confidence_level}."
        )
    alpha = 1.0 - float(confidence_level)
    return float(student_t.ppf(1.0 - alpha / 2.0, int(degrees_freedom)))


def compute_mdc(
    reconciled: ReconciledUncertainty,
    regression: RegressionResult,
    confidence_level: float = DEFAULT_CONFIDENCE,
    duration_scale: float = DEFAULT_DURATION_SCALE,
) -> MDCRecord:
    """Combine the reconciled uncertainty with ``t_crit`` and the duration scale.

    Args:
        reconciled (ReconciledUncertainty): Output of the reconciler.
        regression (RegressionResult): Supplies ``n`` and degrees of freedom.
        confidence_level (float): Two-tailed confidence level.
        duration_scale (float): Time units per reporting period, e.g. ``365``
            to annualize a per-day slope.

    Returns:
        MDCRecord: Terminal per-station record.

    Note:
        ``mdc_percent`` is a directional percent-change estimate and is not
        bounded to (-100, 100). A ``UserWarning`` is issued when it falls
        outside that range.
    """
    if reconciled.station_id != regression.station_id:
        raise ValueError(
            f"Station mismatch: '{reconciled.station_id}' vs '{regression.station_id}'."
        )
    t_crit = t_critical(confidence_level, regression.degrees_freedom)
    mdc_log10 = t_crit * float(duration_scale) * float(reconciled.chosen_std)
    mdc_percent = to_percent_change(mdc_log10)

    if not (math.isfinite(mdc_percent) and -100.0 < mdc_percent < 100.0):
        warnings.warn(
            f"Station {regression.station_id}: MDC of {mdc_percent:.1f}% lies "
            f"outside (-100, 100); treat it as a directional estimate.",
            UserWarning,
            stacklevel=2,
        )

    return MDCRecord(
        station_id=regression.station_id,
        n=int(regression.n),
        degrees_freedom=int(regression.degrees_freedom),
        t_critical=t_crit,
        source=reconciled.source,
        mdc_log10=float(mdc_log10),
        mdc_percent=float(mdc_percent),
    )
