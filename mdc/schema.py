"""Define standardized column names for observation and result DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ObservationColumns:
    """Canonical column labels of the observation frame.

    Attributes:
        station: Monitoring-station identifier, always coerced to ``str``.
        date: Sample date as ``datetime64``. Spacing need not be regular.
        concentration: Measured concentration in original units. Must be
            strictly positive for the log10 transform.
        log_concentration: ``log10(concentration)``, added by the transformer.
        time: Sample date as a numeric ordinal (days since 1970-01-01), used
            as the regression abscissa.
    """

    station: str = "station_id"
    date: str = "date"
    concentration: str = "concentration"
    log_concentration: str = "log_concentration"
    time: str = "time"


@dataclass(frozen=True)
class ResultColumns:
    """Column labels of the final per-station MDC table.

    Attributes:
        n: Number of observations used in the station's regression.
        source: Which slope uncertainty fed the MDC (``standard_error`` or
            ``bootstrap_std_dev``).
        mdc_log10: MDC in log10 units over ``duration_scale`` time units.
        mdc_percent: MDC back-transformed to percent change. Not bounded to
            (-100, 100).
    """

    station: str = "station_id"
    n: str = "N"
    dof: str = "degrees_freedom"
    t_critical: str = "t_critical"
    source: str = "chosen_std_source"
    mdc_log10: str = "mdc_log10"
    mdc_percent: str = "mdc_percent"

    def ordered(self) -> list[str]:
        return [
            self.station,
            self.n,
            self.dof,
            self.t_critical,
            self.source,
            self.mdc_log10,
            self.mdc_percent,
        ]


OBS = ObservationColumns()
RESULT = ResultColumns()
