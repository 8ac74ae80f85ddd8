"""
Monte Carlo replication studies for the Buckley-James estimator.

Each replicate simulates an independent cohort from a known AFT model with
its own seeded generator, fits the estimator, and records coefficients,
convergence diagnostics and imputation error against the true times.
"""

import pandas as pd
import numpy as np
from typing import List, Dict, Tuple, Optional, Any, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

from ..config.settings import (
    EstimatorConfig, SimulationConfig, RESULTS_DIR,
    DEFAULT_DURATION_COL, DEFAULT_EVENT_COL, TRUE_TIME_COL
)
from ..data.dataset import Dataset
from ..data.simulation import simulate_cohort
from ..exceptions import BuckleyJamesError
from ..models.buckley_james import fit
from ..utils.statistics import coefficient_recovery, imputation_error, max_abs_error

__all__ = [
    'run_single_replicate',
    'run_monte_carlo_study',
    'analyze_monte_carlo_results',
    'create_monte_carlo_summary_table',
    'export_results',
]


def run_single_replicate(args: Tuple) -> Dict[str, Any]:
    """
    Run a single Monte Carlo replicate.

    Args:
        args: Tuple containing (replicate_idx, random_seed, n_observations,
                                coefficients, intercept, error_scale,
                                censoring_rate, error_distribution,
                                tolerance, max_iterations)

    Returns:
        Dictionary with replicate results
    """
    (replicate_idx, random_seed, n_observations, coefficients, intercept,
     error_scale, censoring_rate, error_distribution,
     tolerance, max_iterations) = args

    rng = np.random.default_rng(random_seed + replicate_idx)

    try:
        df = simulate_cohort(
            n_observations=n_observations,
            coefficients=coefficients,
            intercept=intercept,
            error_scale=error_scale,
            censoring_rate=censoring_rate,
            error_distribution=error_distribution,
            rng=rng,
        )
        covariate_cols = [f'x{j + 1}' for j in range(len(coefficients))]
        dataset = Dataset.from_dataframe(df, DEFAULT_DURATION_COL, DEFAULT_EVENT_COL, covariate_cols)

        result = fit(dataset, tolerance=tolerance, max_iterations=max_iterations)

    except BuckleyJamesError as e:
        return {
            'replicate': replicate_idx,
            'success': False,
            'error': str(e)
        }

    return {
        'replicate': replicate_idx,
        'success': True,
        'converged': result.converged,
        'n_iterations': result.n_iterations,
        'coefficients': result.coefficients.tolist(),
        'naive_coefficients': result.initial_coefficients.tolist(),
        'max_abs_error': max_abs_error(result.coefficients, coefficients),
        'censoring_rate': dataset.censoring_rate,
        'imputation': imputation_error(result.imputed_times, df[TRUE_TIME_COL].values, dataset.events),
    }


def run_monte_carlo_study(n_replicates: int = SimulationConfig.N_REPLICATES,
                          n_observations: int = SimulationConfig.N_OBSERVATIONS,
                          coefficients: Sequence[float] = SimulationConfig.TRUE_COEFFICIENTS,
                          intercept: float = SimulationConfig.INTERCEPT,
                          error_scale: float = SimulationConfig.ERROR_SCALE,
                          censoring_rate: float = SimulationConfig.CENSORING_RATE,
                          error_distribution: str = 'normal',
                          tolerance: float = EstimatorConfig.TOLERANCE,
                          max_iterations: int = EstimatorConfig.MAX_ITERATIONS,
                          random_seed: int = SimulationConfig.RANDOM_SEED,
                          n_workers: Optional[int] = None,
                          verbose: bool = True) -> Dict[str, Any]:
    """
    Run a Monte Carlo study of coefficient recovery under censoring.

    Args:
        n_replicates: Number of simulated cohorts
        n_observations: Cohort size
        coefficients: True slope coefficients
        intercept: True log-time intercept
        error_scale: Scale of the log-time error
        censoring_rate: Target censoring fraction
        error_distribution: Error law of the simulated log times
        tolerance: Estimator stopping threshold
        max_iterations: Estimator iteration cap
        random_seed: Base seed; replicate i uses random_seed + i
        n_workers: Number of parallel workers (None for single-threaded)
        verbose: Whether to print progress

    Returns:
        Dictionary with parameters, raw replicate results and analysis
    """
    coefficients = [float(c) for c in coefficients]

    if verbose:
        print(f"🎲 Running Buckley-James Monte Carlo study...")
        print(f"  Replicates: {n_replicates}")
        print(f"  Cohort size: {n_observations}, target censoring: {100 * censoring_rate:.0f}%")
        print(f"  True coefficients: {coefficients}")

    args_list = [
        (i, random_seed, n_observations, coefficients, intercept, error_scale,
         censoring_rate, error_distribution, tolerance, max_iterations)
        for i in range(n_replicates)
    ]

    mc_results = []

    if n_workers is None or n_workers == 1:
        if verbose:
            print("🔄 Running replicates (single-threaded)...")

        for i, args in enumerate(args_list):
            if verbose and (i + 1) % max(1, n_replicates // 10) == 0:
                print(f"  Progress: {i + 1}/{n_replicates} ({100*(i+1)/n_replicates:.1f}%)")

            mc_results.append(run_single_replicate(args))

    else:
        if verbose:
            print(f"🔄 Running replicates (parallel with {n_workers} workers)...")

        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = [executor.submit(run_single_replicate, args) for args in args_list]

            completed = 0
            for future in as_completed(futures):
                mc_results.append(future.result())
                completed += 1

                if verbose and completed % max(1, n_replicates // 10) == 0:
                    print(f"  Progress: {completed}/{n_replicates} ({100*completed/n_replicates:.1f}%)")

    mc_results.sort(key=lambda x: x['replicate'])

    if verbose:
        print("📊 Analyzing Monte Carlo results...")

    analysis = analyze_monte_carlo_results(mc_results, coefficients, verbose=verbose)

    return {
        'parameters': {
            'n_replicates': n_replicates,
            'n_observations': n_observations,
            'coefficients': coefficients,
            'intercept': intercept,
            'error_scale': error_scale,
            'censoring_rate': censoring_rate,
            'error_distribution': error_distribution,
            'tolerance': tolerance,
            'max_iterations': max_iterations,
            'random_seed': random_seed
        },
        'raw_results': mc_results,
        'analysis': analysis
    }


def analyze_monte_carlo_results(mc_results: List[Dict],
                                true_coefficients: Sequence[float],
                                verbose: bool = True) -> Dict[str, Any]:
    """
    Analyze Monte Carlo replicate results.

    Args:
        mc_results: List of replicate results
        true_coefficients: Coefficients used to simulate the data
        verbose: Whether to print analysis results

    Returns:
        Dictionary with success/convergence rates, iteration statistics,
        coefficient recovery tables for the Buckley-James and naive OLS
        estimates, and imputation error
    """
    successful = [r for r in mc_results if r['success']]
    n_successful = len(successful)
    n_total = len(mc_results)

    if verbose:
        print(f"✅ Monte Carlo Analysis:")
        print(f"  Successful replicates: {n_successful}/{n_total} ({100*n_successful/max(n_total, 1):.1f}%)")

    if n_successful == 0:
        if verbose:
            print("❌ No successful replicates to analyze")
        return {'success_rate': 0, 'error': 'No successful replicates'}

    converged = np.array([r['converged'] for r in successful])
    iterations = np.array([r['n_iterations'] for r in successful])
    bj_estimates = np.array([r['coefficients'] for r in successful])
    naive_estimates = np.array([r['naive_coefficients'] for r in successful])
    censoring = np.array([r['censoring_rate'] for r in successful])
    abs_log_err = np.array([r['imputation']['mean_abs_log_error'] for r in successful])

    bj_summary = coefficient_recovery(bj_estimates, true_coefficients)
    naive_summary = coefficient_recovery(naive_estimates, true_coefficients)

    analysis = {
        'success_rate': n_successful / n_total,
        'n_successful': n_successful,
        'n_total': n_total,
        'convergence_rate': float(converged.mean()),
        'mean_iterations': float(iterations.mean()),
        'max_iterations_used': int(iterations.max()),
        'mean_censoring_rate': float(censoring.mean()),
        'mean_abs_log_imputation_error': float(abs_log_err.mean()),
        'coefficient_summary': bj_summary,
        'naive_coefficient_summary': naive_summary,
    }

    if verbose:
        print(f"  Converged: {100 * analysis['convergence_rate']:.1f}%")
        print(f"  Iterations: mean {analysis['mean_iterations']:.1f}, max {analysis['max_iterations_used']}")
        print(f"  Realized censoring: {100 * analysis['mean_censoring_rate']:.1f}%")
        print(f"  Imputation |log error| on censored rows: {analysis['mean_abs_log_imputation_error']:.3f}")
        print(f"\n  📊 Buckley-James coefficients:")
        print(bj_summary[['true', 'mean', 'bias', 'std', 'rmse']].to_string(float_format=lambda v: f'{v:.4f}'))
        print(f"\n  📊 Naive OLS (censoring ignored):")
        print(naive_summary[['true', 'mean', 'bias', 'std', 'rmse']].to_string(float_format=lambda v: f'{v:.4f}'))

    return analysis


def create_monte_carlo_summary_table(mc_study: Dict[str, Any],
                                     verbose: bool = True) -> pd.DataFrame:
    """
    Create a summary table of a Monte Carlo study.

    Args:
        mc_study: Results from run_monte_carlo_study()
        verbose: Whether to print the summary table

    Returns:
        DataFrame with one row per coefficient comparing Buckley-James and
        naive OLS recovery
    """
    analysis = mc_study['analysis']
    if 'coefficient_summary' not in analysis:
        return pd.DataFrame()

    bj = analysis['coefficient_summary']
    naive = analysis['naive_coefficient_summary']

    summary_df = pd.DataFrame({
        'coefficient': bj.index,
        'true': bj['true'].values,
        'bj_mean': bj['mean'].values,
        'bj_bias': bj['bias'].values,
        'bj_rmse': bj['rmse'].values,
        'bj_95_range': [f"[{lo:.3f}, {hi:.3f}]" for lo, hi in zip(bj['q025'], bj['q975'])],
        'naive_bias': naive['bias'].values,
        'naive_rmse': naive['rmse'].values,
    })

    if verbose and not summary_df.empty:
        parameters = mc_study['parameters']
        print("📋 Monte Carlo Coefficient Recovery Summary:")
        print("=" * 80)
        print(summary_df.to_string(index=False))

        print(f"\n📊 Monte Carlo Study Summary:")
        print(f"  Replicates: {parameters['n_replicates']} x n={parameters['n_observations']}")
        print(f"  Success rate: {100*analysis['success_rate']:.1f}%")
        print(f"  Convergence rate: {100*analysis['convergence_rate']:.1f}%")

    return summary_df


def export_results(summary_df: pd.DataFrame,
                   output_path: Optional[Path] = None,
                   verbose: bool = True) -> Path:
    """
    Export a summary table to CSV.

    Args:
        summary_df: Table to export
        output_path: Output file path (default: results directory)
        verbose: Whether to print export details

    Returns:
        Path to the exported file
    """
    if output_path is None:
        output_path = RESULTS_DIR / "monte_carlo_summary.csv"

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    summary_df.to_csv(output_path, index=False)

    if verbose:
        print(f"💾 Results exported to: {output_path}")
        print(f"  File size: {output_path.stat().st_size / 1024:.1f} KB")

    return output_path
