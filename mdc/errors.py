"""Exception taxonomy for the MDC pipeline.

Every station-scoped failure derives from :class:`MDCError`, which is itself a
``ValueError`` so callers that already guard numerical helpers with
``except ValueError`` keep working.
"""

from __future__ import annotations


class MDCError(ValueError):
    """Base class for station-scoped failures in the MDC pipeline."""


class DomainError(MDCError):
    """A concentration is non-positive, so its log10 is undefined."""


class InsufficientDataError(MDCError):
    """A station has fewer observations than a t-based interval needs."""


class DegenerateInputError(MDCError):
    """All timestamps in a fit are identical, so the slope is undefined."""


class BootstrapConvergenceError(MDCError):
    """Too many degenerate resamples were drawn before the target count."""


class DegreesOfFreedomError(MDCError):
    """Residual degrees of freedom are below one at the MDC stage."""


class AnalysisCancelledError(RuntimeError):
    """The run was cancelled cooperatively between bootstrap resamples."""
