"""Reconcile the closed-form slope standard error with the bootstrap spread.

The size and sign of the discrepancy between the two estimates depend on the
sampling design (record length, frequency, seasonality) and cannot be judged
from the statistics alone. The reconciler therefore exposes the percent
difference and delegates the choice to an injectable policy
``policy(station_id, percent_difference) -> UncertaintySource``.
"""

from __future__ import annotations

import enum
import math
import warnings
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional

from .errors import DegenerateInputError
from .stats.bootstrap import BootstrapResult
from .stats.regression import RegressionResult

DISCREPANCY_WARNING_PCT = 25.0
# SE at or below this fraction of |slope| is rounding residue of an exact fit.
NO_SCATTER_RTOL = 1e-9


class UncertaintySource(enum.Enum):
    STANDARD_ERROR = "standard_error"
    BOOTSTRAP_STD_DEV = "bootstrap_std_dev"


ReconciliationPolicy = Callable[[str, float], UncertaintySource]


@dataclass(frozen=True)
class ReconciledUncertainty:
    station_id: str
    chosen_std: float
    source: UncertaintySource
    percent_difference: float
    slope_std_error: float
    slope_std_dev: float


def percent_difference(slope_std_error: float, slope_std_dev: float) -> float:
    """Return ``100 * (se - sd) / sd``; positive when the SE is the larger."""
    sd = float(slope_std_dev)
    if sd == 0 or not math.isfinite(sd):
        raise DegenerateInputError(
            "Bootstrap standard deviation is zero or non-finite; "
            "percent difference is undefined."
        )
    return 100.0 * (float(slope_std_error) - sd) / sd


def prefer_standard_error(station_id: str, pct_diff: float) -> UncertaintySource:
    """Default policy: always use the closed-form standard error."""
    return UncertaintySource.STANDARD_ERROR


def station_override_policy(
    bootstrap_stations: Iterable[str],
    fallback: ReconciliationPolicy = prefer_standard_error,
) -> ReconciliationPolicy:
    """Use the bootstrap spread for operator-flagged stations only."""
    flagged = frozenset(str(s) for s in bootstrap_stations)

    def policy(station_id: str, pct_diff: float) -> UncertaintySource:
        if str(station_id) in flagged:
            return UncertaintySource.BOOTSTRAP_STD_DEV
        return fallback(station_id, pct_diff)

    return policy


def threshold_policy(
    max_abs_percent_difference: float,
    max_n: Optional[int] = None,
    n_lookup: Optional[Mapping[str, int]] = None,
) -> ReconciliationPolicy:
    """Use the bootstrap spread when the two estimates nearly agree.

    Args:
        max_abs_percent_difference (float): Bootstrap is chosen only when
            ``|percent_difference|`` is strictly below this value.
        max_n (int, optional): If given, bootstrap is chosen only for
            stations whose sample count (from ``n_lookup``) is below it.
        n_lookup (Mapping[str, int], optional): Sample count per station.
            Required when ``max_n`` is given.
    """
    if max_n is not None and n_lookup is None:
        raise ValueError("n_lookup is required when max_n is given.")
    limit = float(max_abs_percent_difference)

    def policy(station_id: str, pct_diff: float) -> UncertaintySource:
        if not abs(pct_diff) < limit:
            return UncertaintySource.STANDARD_ERROR
        if max_n is not None:
            n = n_lookup.get(str(station_id))
            if n is None or n >= max_n:
                return UncertaintySource.STANDARD_ERROR
        return UncertaintySource.BOOTSTRAP_STD_DEV

    return policy


def reconcile(
    regression: RegressionResult,
    bootstrap: BootstrapResult,
    policy: ReconciliationPolicy = prefer_standard_error,
) -> ReconciledUncertainty:
    """Pair one station's two slope uncertainties and apply ``policy``.

    Raises:
        ValueError: If the two results belong to different stations or the
            policy returns something other than an :class:`UncertaintySource`.
        DegenerateInputError: If the station has no residual scatter about
            its trend (slope SE zero or within rounding of zero), or the
            bootstrap spread is zero.
    """
    if regression.station_id != bootstrap.station_id:
        raise ValueError(
            f"Cannot reconcile station '{regression.station_id}' with "
            f"bootstrap result for '{bootstrap.station_id}'."
        )
    se = float(regression.slope_std_error)
    sd = float(bootstrap.slope_std_dev)
    if se <= NO_SCATTER_RTOL * abs(float(regression.slope)):
        raise DegenerateInputError(
            f"Station {regression.station_id} has no residual scatter about its "
            f"trend; slope uncertainty is zero and the MDC is undefined."
        )
    pct = percent_difference(se, sd)

    if abs(pct) > DISCREPANCY_WARNING_PCT:
        warnings.warn(
            f"Station {regression.station_id}: standard error and bootstrap "
            f"spread differ by {pct:+.1f}%; review the sampling design before "
            f"relying on either.",
            UserWarning,
            stacklevel=2,
        )

    source = policy(regression.station_id, pct)
    if not isinstance(source, UncertaintySource):
        raise ValueError(
            f"Reconciliation policy returned {source!r}; expected an UncertaintySource."
        )
    chosen = se if source is UncertaintySource.STANDARD_ERROR else sd
    return ReconciledUncertainty(
        station_id=regression.station_id,
        chosen_std=chosen,
        source=source,
        percent_difference=pct,
        slope_std_error=se,
        slope_std_dev=sd,
    )
