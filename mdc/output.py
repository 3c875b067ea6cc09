"""Write MDC results and intermediate diagnostic tables to CSV files.

This module is the output boundary between the in-memory analysis and the
tabular artifacts reviewed when designing the monitoring program.
"""

from __future__ import annotations

import logging
import os
from typing import Dict

from .reporting import add_annual_slope_column

logger = logging.getLogger(__name__)

OUTPUT_FILES = {
    "mdc": "mdc_results.csv",
    "regression": "regression.csv",
    "bootstrap": "bootstrap.csv",
    "comparison": "uncertainty_comparison.csv",
    "descriptive": "descriptive_statistics.csv",
    "failures": "failures.csv",
}


def save_analysis_to_csv(
    analysis, output_dir: str = "output", duration_scale: float = 365.0
) -> Dict[str, str]:
    """Save the final MDC table and every intermediate table.

    Args:
        analysis (MDCAnalysis): Output of ``run_mdc_analysis``.
        output_dir (str): Directory where CSV outputs are written.
        duration_scale (float): Used to annualize the reported slope in the
            uncertainty comparison table.

    Returns:
        dict[str, str]: Table name to written path.

    Note:
        ``failures.csv`` is always written, with only a header when every
        station succeeded.
    """
    os.makedirs(output_dir, exist_ok=True)

    tables = {
        "mdc": analysis.mdc,
        "regression": analysis.regression,
        "bootstrap": analysis.bootstrap,
        "comparison": add_annual_slope_column(analysis.comparison, duration_scale),
        "descriptive": analysis.descriptive,
        "failures": analysis.failures,
    }

    paths = {}
    for name, table in tables.items():
        path = os.path.join(output_dir, OUTPUT_FILES[name])
        table.to_csv(path, index=False)
        paths[name] = path
        logger.info("Saved %s table (%d rows) to %s", name, len(table), path)
    return paths
