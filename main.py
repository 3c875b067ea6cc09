#!/usr/bin/env python3
"""
Main script for running the Minimum Detectable Change analysis.
"""

# Pipeline overview (README-style):
# 1) Load a monitoring CSV and coerce station, date and concentration columns.
# 2) log10-transform concentrations per station; stations with non-positive
#    values are reported and excluded.
# 3) Fit an OLS trend of log10 concentration against days for each station
#    and take the closed-form slope standard error.
# 4) Bootstrap the slope (seeded per station) for an empirical spread.
# 5) Reconcile SE vs bootstrap with the configured policy, compute the MDC at
#    the chosen confidence, and export result, diagnostic and failure tables.

import argparse
import logging
import os
import sys
import time
from dataclasses import replace

from mdc.analysis import run_mdc_analysis
from mdc.config import MDCConfig
from mdc.data_processing import load_observations
from mdc.output import save_analysis_to_csv
from mdc.plotting import (
    plot_bootstrap_distributions,
    plot_station_trends,
    plot_uncertainty_comparison,
)
from mdc.reconcile import station_override_policy
from mdc.reporting import print_summary


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build command-line parser for the batch run."""
    defaults = MDCConfig()
    parser = argparse.ArgumentParser(
        description="Minimum Detectable Change for multi-station water-quality trends."
    )
    parser.add_argument("--input", required=True, help="Path to input CSV file.")
    parser.add_argument(
        "--outdir", default="output", help="Output directory (default: output)."
    )
    parser.add_argument("--station-col", default=None, help="Explicit station column.")
    parser.add_argument("--date-col", default=None, help="Explicit date column.")
    parser.add_argument("--value-col", default=None, help="Explicit concentration column.")
    parser.add_argument(
        "--confidence",
        type=float,
        default=defaults.confidence_level,
        help="Two-tailed confidence level (default: %(default)s).",
    )
    parser.add_argument(
        "--resamples",
        type=int,
        default=defaults.bootstrap_resample_count,
        help="Bootstrap resamples per station (default: %(default)s).",
    )
    parser.add_argument(
        "--duration-scale",
        type=float,
        default=defaults.duration_scale,
        help="Days per reporting period (default: %(default)s).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.random_seed,
        help="Base random seed (default: %(default)s).",
    )
    parser.add_argument(
        "--bootstrap-station",
        action="append",
        default=[],
        metavar="ID",
        help="Use the bootstrap spread instead of the SE for this station. Repeatable.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=defaults.max_workers,
        help="Stations processed concurrently (default: %(default)s).",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip figure output.")
    return parser


def main(argv=None):
    """Main execution function with comprehensive technical logging."""
    args = _build_arg_parser().parse_args(argv)
    os.makedirs(args.outdir, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(os.path.join(args.outdir, "mdc_analysis.log"), mode="w"),
        ],
    )

    start_time = time.time()
    logging.info("Initializing MDC analysis pipeline")

    config = replace(
        MDCConfig(),
        confidence_level=args.confidence,
        bootstrap_resample_count=args.resamples,
        duration_scale=args.duration_scale,
        random_seed=args.seed,
        max_workers=args.workers,
    )
    if args.bootstrap_station:
        config = replace(
            config,
            reconciliation_policy=station_override_policy(args.bootstrap_station),
        )
        logging.info(
            "Bootstrap spread selected for stations: %s",
            ", ".join(args.bootstrap_station),
        )

    observations = load_observations(
        args.input,
        station_col=args.station_col,
        date_col=args.date_col,
        value_col=args.value_col,
    )
    if observations.empty:
        logging.error("No valid observations loaded. Terminating execution.")
        return 1

    step_start = time.time()
    analysis = run_mdc_analysis(observations, config)
    logging.info(
        "Station analysis completed in %.2f seconds", time.time() - step_start
    )

    print_summary(analysis)

    paths = save_analysis_to_csv(analysis, args.outdir, duration_scale=config.duration_scale)

    if not args.no_plots:
        step_start = time.time()
        trend_paths = plot_station_trends(analysis, observations, args.outdir)
        boot_paths = plot_bootstrap_distributions(analysis, args.outdir)
        comparison_path = plot_uncertainty_comparison(analysis, args.outdir)
        logging.info(
            "Generated %d trend and %d bootstrap figures in %.2f seconds",
            len(trend_paths),
            len(boot_paths),
            time.time() - step_start,
        )
        logging.info("  - Uncertainty comparison: %s", comparison_path)

    logging.info("Generated output files:")
    for name, path in paths.items():
        logging.info("  - %s: %s", name, path)
    logging.info("Total execution time: %.2f seconds", time.time() - start_time)

    summary = analysis.summary()
    return 0 if summary["n_succeeded"] else 1


if __name__ == "__main__":
    sys.exit(main())
