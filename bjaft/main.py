"""
Main entry point for the Buckley-James AFT project.

This script provides a command-line interface to fit the estimator on a data
file, run a demonstration fit on a synthetic cohort, or run a Monte Carlo
coefficient-recovery study.
"""

import argparse
import sys

from .config.settings import EstimatorConfig, SimulationConfig, DEFAULT_DURATION_COL, DEFAULT_EVENT_COL
from .data import SurvivalDataLoader, simulate_cohort
from .exceptions import BuckleyJamesError
from .models import BuckleyJamesAFT
from .analysis import (
    compare_with_parametric_aft, run_monte_carlo_study,
    create_monte_carlo_summary_table, export_results
)


def run_file_fit(args):
    """Fit the estimator on a CSV or Excel file."""
    print(f"=== Buckley-James fit: {args.data} ===")

    loader = SurvivalDataLoader(args.data, args.duration_col, args.event_col, args.covariates)
    dataset = loader.build_dataset()

    summary = loader.get_summary_statistics()
    print("\nData Summary:")
    for key, value in summary.items():
        print(f"{key}: {value}")
    print()

    model = BuckleyJamesAFT(tolerance=args.tolerance, max_iterations=args.max_iterations)
    model.fit_dataset(dataset, verbose=args.verbose)
    model.display_summary()

    if args.output:
        imputed = loader.processed_data.copy()
        imputed['imputed_time'] = model.result_.imputed_times
        export_results(imputed, args.output)

    return model


def run_demo(args):
    """Fit the estimator on a synthetic cohort with known coefficients."""
    print("=== Buckley-James demo on a synthetic cohort ===")

    df = simulate_cohort(
        n_observations=args.n,
        censoring_rate=args.censoring_rate,
        random_seed=args.seed,
    )
    covariates = [c for c in df.columns if c.startswith('x')]

    model = BuckleyJamesAFT(tolerance=args.tolerance, max_iterations=args.max_iterations)
    model.fit(df, DEFAULT_DURATION_COL, DEFAULT_EVENT_COL, covariates, verbose=args.verbose)
    model.display_summary()

    print(f"\nTrue coefficients: {list(SimulationConfig.TRUE_COEFFICIENTS)}")
    compare_with_parametric_aft(df, DEFAULT_DURATION_COL, DEFAULT_EVENT_COL, covariates, bj_model=model)

    return model


def run_monte_carlo(args):
    """Run a Monte Carlo coefficient-recovery study."""
    print("=== Buckley-James Monte Carlo study ===")

    study = run_monte_carlo_study(
        n_replicates=args.replicates,
        n_observations=args.n,
        censoring_rate=args.censoring_rate,
        tolerance=args.tolerance,
        max_iterations=args.max_iterations,
        random_seed=args.seed,
        n_workers=args.workers,
        verbose=True,
    )
    summary_df = create_monte_carlo_summary_table(study)
    if args.output:
        export_results(summary_df, args.output)

    return study


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Buckley-James AFT regression for right-censored data')
    parser.add_argument('--tolerance', type=float, default=EstimatorConfig.TOLERANCE,
                        help='Max absolute coefficient change for convergence')
    parser.add_argument('--max-iterations', type=int, default=EstimatorConfig.MAX_ITERATIONS,
                        help='Maximum number of least-squares refits')
    parser.add_argument('--verbose', action='store_true', help='Print per-iteration progress')

    subparsers = parser.add_subparsers(dest='command')

    fit_parser = subparsers.add_parser('fit', help='Fit a data file')
    fit_parser.add_argument('--data', required=True, help='CSV or Excel file')
    fit_parser.add_argument('--duration-col', default=DEFAULT_DURATION_COL)
    fit_parser.add_argument('--event-col', default=DEFAULT_EVENT_COL)
    fit_parser.add_argument('--covariates', nargs='+', default=None,
                            help='Covariate columns (default: all other numeric columns)')
    fit_parser.add_argument('--output', help='Write the data with imputed times to this CSV')

    demo_parser = subparsers.add_parser('demo', help='Fit a synthetic cohort')
    demo_parser.add_argument('--n', type=int, default=SimulationConfig.N_OBSERVATIONS)
    demo_parser.add_argument('--censoring-rate', type=float, default=SimulationConfig.CENSORING_RATE)
    demo_parser.add_argument('--seed', type=int, default=SimulationConfig.RANDOM_SEED)

    mc_parser = subparsers.add_parser('monte-carlo', help='Run a Monte Carlo study')
    mc_parser.add_argument('--replicates', type=int, default=SimulationConfig.N_REPLICATES)
    mc_parser.add_argument('--n', type=int, default=SimulationConfig.N_OBSERVATIONS)
    mc_parser.add_argument('--censoring-rate', type=float, default=SimulationConfig.CENSORING_RATE)
    mc_parser.add_argument('--seed', type=int, default=SimulationConfig.RANDOM_SEED)
    mc_parser.add_argument('--workers', type=int, default=None, help='Parallel worker processes')
    mc_parser.add_argument('--output', help='Write the summary table to this CSV')

    return parser


def main(argv=None):
    """Main function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        'fit': run_file_fit,
        'demo': run_demo,
        'monte-carlo': run_monte_carlo,
    }

    if args.command is None:
        parser.print_help()
        return 0

    try:
        commands[args.command](args)
        print("\nAnalysis completed successfully!")
    except (BuckleyJamesError, FileNotFoundError) as e:
        print(f"Error during analysis: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
