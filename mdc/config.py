"""Configuration for an MDC batch run."""

from __future__ import annotations

from dataclasses import dataclass

from .calculator import DEFAULT_CONFIDENCE, DEFAULT_DURATION_SCALE
from .reconcile import ReconciliationPolicy, prefer_standard_error
from .stats.bootstrap import DEFAULT_MAX_RETRY_FACTOR, DEFAULT_RESAMPLES

DEFAULT_SEED = 42


@dataclass(frozen=True)
class MDCConfig:
    """Every setting of the pipeline, each independently overridable.

    Use :func:`dataclasses.replace` to derive a variant, e.g.
    ``replace(MDCConfig(), bootstrap_resample_count=5000)``.

    Attributes:
        confidence_level: Two-tailed confidence level for ``t_crit``.
        bootstrap_resample_count: Accepted resamples per station.
        duration_scale: Time units per reporting period; ``365`` annualizes
            slopes fitted against days.
        random_seed: Base seed; each station derives its own from it.
        reconciliation_policy: ``policy(station_id, percent_difference)``
            returning an ``UncertaintySource``.
        min_points: Minimum observations per station (at least 3).
        max_retry_factor: Degenerate-resample cap as a multiple of the
            resample count.
        max_workers: Stations processed concurrently; ``1`` runs serially.
    """

    confidence_level: float = DEFAULT_CONFIDENCE
    bootstrap_resample_count: int = DEFAULT_RESAMPLES
    duration_scale: float = DEFAULT_DURATION_SCALE
    random_seed: int = DEFAULT_SEED
    reconciliation_policy: ReconciliationPolicy = prefer_standard_error
    min_points: int = 3
    max_retry_factor: int = DEFAULT_MAX_RETRY_FACTOR
    max_workers: int = 1

    def __post_init__(self):
        if not 0.0 < float(self.confidence_level) < 1.0:
            raise ValueError("confidence_level must lie strictly between 0 and 1.")
        if int(self.bootstrap_resample_count) < 2:
            raise ValueError("bootstrap_resample_count must be >= 2.")
        if not float(self.duration_scale) > 0:
            raise ValueError("duration_scale must be positive.")
        if int(self.random_seed) < 0:
            raise ValueError("random_seed must be a non-negative integer.")
        if int(self.min_points) < 3:
            raise ValueError("min_points must be >= 3 so that n - 2 >= 1.")
        if int(self.max_retry_factor) < 1:
            raise ValueError("max_retry_factor must be >= 1.")
        if int(self.max_workers) < 1:
            raise ValueError("max_workers must be >= 1.")
        if not callable(self.reconciliation_policy):
            raise ValueError("reconciliation_policy must be callable.")
