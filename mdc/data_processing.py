"""
Handles CSV loading and coercion of monitoring data into observation rows.
"""

# The loader accepts water-quality exports with varying header names, resolves
# station/date/value columns by explicit name or known aliases, and returns a
# tidy frame with canonical column names. Rows missing any of the three are
# dropped and counted; non-positive concentrations are kept so the transform
# stage can report them against their station.

from __future__ import annotations

import logging

import pandas as pd

from .schema import OBS

logger = logging.getLogger(__name__)

STATION_CANDIDATES = (
    "station_id",
    "station",
    "site",
    "site_id",
    "monitoringlocationidentifier",
)
DATE_CANDIDATES = (
    "date",
    "sample_date",
    "sampledate",
    "activitystartdate",
    "datetime",
)
VALUE_CANDIDATES = (
    "concentration",
    "value",
    "result",
    "resultmeasurevalue",
)


def _resolve_column(
    frame: pd.DataFrame,
    explicit: str | None,
    candidates: tuple[str, ...],
    label: str,
) -> str:
    """Resolve one input column using explicit name or canonical candidates."""
    if explicit is not None:
        if explicit not in frame.columns:
            raise ValueError(
                f"Column '{explicit}' not found for {label}. "
                f"Available columns: {list(frame.columns)}"
            )
        return explicit

    lookup = {str(col).strip().lower(): str(col) for col in frame.columns}
    for name in candidates:
        found = lookup.get(name)
        if found is not None:
            return found
    raise ValueError(
        f"Could not detect {label} column. Available columns: {list(frame.columns)}"
    )


def standardize_observations(
    raw_df: pd.DataFrame,
    station_col: str | None = None,
    date_col: str | None = None,
    value_col: str | None = None,
) -> pd.DataFrame:
    """Coerce a raw table into the canonical observation frame.

    Args:
        raw_df: Table with one row per sample.
        station_col: Optional explicit station column name.
        date_col: Optional explicit date column name (ISO 8601 or any format
            ``pandas.to_datetime`` parses).
        value_col: Optional explicit concentration column name.

    Returns:
        pd.DataFrame: Columns ``station_id`` (str), ``date`` (naive UTC
        datetime64) and ``concentration`` (float), in input row order with a
        fresh index.
    """
    station_name = _resolve_column(raw_df, station_col, STATION_CANDIDATES, "station")
    date_name = _resolve_column(raw_df, date_col, DATE_CANDIDATES, "date")
    value_name = _resolve_column(raw_df, value_col, VALUE_CANDIDATES, "concentration")

    station = raw_df[station_name].astype("string").str.strip().replace("", pd.NA)
    df = pd.DataFrame(
        {
            OBS.station: station,
            OBS.date: pd.to_datetime(
                raw_df[date_name], errors="coerce", utc=True
            ).dt.tz_localize(None),
            OBS.concentration: pd.to_numeric(raw_df[value_name], errors="coerce"),
        }
    )

    missing = df[[OBS.station, OBS.date, OBS.concentration]].isna().any(axis=1)
    if bool(missing.any()):
        logger.warning(
            "Dropping %d row(s) with a missing station, unparseable date or "
            "non-numeric concentration",
            int(missing.sum()),
        )
    df = df.loc[~missing].copy()
    df[OBS.station] = df[OBS.station].astype(str)
    df[OBS.concentration] = df[OBS.concentration].astype(float)
    return df.reset_index(drop=True)


def load_observations(
    filepath,
    station_col: str | None = None,
    date_col: str | None = None,
    value_col: str | None = None,
) -> pd.DataFrame:
    """
    Load monitoring observations from a CSV file.

    The station column is read as text so identifiers such as ``0101`` keep
    their leading zeros and stay distinct from ``101``.

    Args:
        filepath (str): Path to the CSV file.

    Returns:
        pd.DataFrame: Canonical observation frame.
    """
    header = pd.read_csv(filepath, nrows=0)
    station_name = _resolve_column(header, station_col, STATION_CANDIDATES, "station")
    raw_df = pd.read_csv(filepath, dtype={station_name: str})
    logger.info("Loaded %d rows from %s", len(raw_df), filepath)
    return standardize_observations(
        raw_df, station_col=station_col, date_col=date_col, value_col=value_col
    )
