"""Bootstrap estimate of trend-slope uncertainty.

Each resample draws ``n`` observation pairs with replacement from one station,
refits the OLS slope, and the spread of the collected slopes is reported as an
empirical counterpart to the closed-form slope standard error.
"""

from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ..errors import AnalysisCancelledError, BootstrapConvergenceError, DegenerateInputError
from .regression import _as_finite_arrays, ols_slope

logger = logging.getLogger(__name__)

DEFAULT_RESAMPLES = 1000
DEFAULT_MAX_RETRY_FACTOR = 10


@dataclass(frozen=True)
class BootstrapResult:
    """Bootstrap slope spread for one station.

    ``slopes`` holds the accepted resampled slopes for plotting and is left
    out of equality and ``repr``. ``seed`` is the per-station seed actually
    used, or ``None`` when a caller-supplied generator was passed.
    """

    station_id: str
    slope_std_dev: float
    resample_count: int
    discarded_resamples: int = 0
    seed: Optional[int] = None
    slopes: np.ndarray = field(default=None, repr=False, compare=False)


def station_seed(base_seed: int, station_id: str) -> int:
    """Derive a per-station seed that is stable across processes and runs.

    The result is masked to 64 bits so it is always a valid non-negative
    seed for ``numpy.random.default_rng``.
    """
    mixed = int(base_seed) ^ zlib.crc32(str(station_id).encode("utf-8"))
    return mixed & 0xFFFFFFFFFFFFFFFF


def bootstrap_slope_std(
    x: np.ndarray,
    y: np.ndarray,
    n_resamples: int = DEFAULT_RESAMPLES,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    max_retry_factor: int = DEFAULT_MAX_RETRY_FACTOR,
    cancel_event=None,
) -> Tuple[float, np.ndarray, int]:
    """Resample ``(x, y)`` pairs with replacement and return the slope spread.

    Args:
        x (numpy.ndarray): Time ordinal of each observation.
        y (numpy.ndarray): Log10 concentration of each observation.
        n_resamples (int): Number of accepted resamples ``R``.
        rng (numpy.random.Generator, optional): Random source. Built from
            ``seed`` when omitted.
        seed (int, optional): Seed used only when ``rng`` is ``None``.
        max_retry_factor (int): Degenerate resamples (all timestamps equal)
            are discarded and redrawn; more than ``max_retry_factor * R``
            discards abort the estimate.
        cancel_event (threading.Event, optional): Checked between resamples.

    Returns:
        tuple[float, numpy.ndarray, int]: Sample standard deviation of the
        slopes (``ddof=1``), the ``R`` accepted slopes, and the number of
        discarded resamples.

    Raises:
        BootstrapConvergenceError: If the discard cap is exceeded.
        AnalysisCancelledError: If ``cancel_event`` is set mid-run.
        ValueError: If ``n_resamples < 2`` or fewer than two finite pairs.
    """
    if int(n_resamples) < 2:
        raise ValueError("n_resamples must be >= 2 for a sample standard deviation.")
    x_arr, y_arr = _as_finite_arrays(x, y)
    n = int(len(x_arr))
    if n < 2:
        raise ValueError("At least two finite observations are required to bootstrap.")
    if rng is None:
        rng = np.random.default_rng(seed)

    max_discards = int(max_retry_factor) * int(n_resamples)
    slopes = np.empty(int(n_resamples), dtype=float)
    accepted = 0
    discarded = 0
    while accepted < n_resamples:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError(
                f"Bootstrap cancelled after {accepted} of {n_resamples} resamples."
            )
        idx = rng.integers(0, n, size=n)
        try:
            slopes[accepted] = ols_slope(x_arr[idx], y_arr[idx])
        except DegenerateInputError:
            discarded += 1
            if discarded > max_discards:
                raise BootstrapConvergenceError(
                    f"{discarded} degenerate resamples exceeded the cap of "
                    f"{max_discards} ({max_retry_factor} x {n_resamples})."
                )
            continue
        accepted += 1

    return float(np.std(slopes, ddof=1)), slopes, discarded


def bootstrap_station(
    station_id: str,
    x: np.ndarray,
    y: np.ndarray,
    n_resamples: int = DEFAULT_RESAMPLES,
    base_seed: int = 42,
    max_retry_factor: int = DEFAULT_MAX_RETRY_FACTOR,
    cancel_event=None,
) -> BootstrapResult:
    """Bootstrap one station with a private generator seeded from its id."""
    seed = station_seed(base_seed, station_id)
    std, slopes, discarded = bootstrap_slope_std(
        x,
        y,
        n_resamples=n_resamples,
        rng=np.random.default_rng(seed),
        max_retry_factor=max_retry_factor,
        cancel_event=cancel_event,
    )
    if discarded:
        logger.debug(
            "Station %s: discarded %d degenerate resamples", station_id, discarded
        )
    return BootstrapResult(
        station_id=str(station_id),
        slope_std_dev=std,
        resample_count=int(n_resamples),
        discarded_resamples=int(discarded),
        seed=seed,
        slopes=slopes,
    )


def bootstrap_table(results) -> pd.DataFrame:
    columns = [
        "station_id",
        "slope_std_dev",
        "resample_count",
        "discarded_resamples",
        "seed",
    ]
    rows = [{col: getattr(res, col) for col in columns} for res in results]
    return pd.DataFrame(rows, columns=columns)
