"""
Statistical utilities for evaluating Buckley-James fits against known truth.
"""

import numpy as np
import pandas as pd
from scipy import stats
from typing import Dict, List, Optional, Sequence


def max_abs_error(estimate: Sequence[float], truth: Sequence[float]) -> float:
    """Largest absolute coefficient error."""
    estimate = np.asarray(estimate, dtype=float)
    truth = np.asarray(truth, dtype=float)
    if estimate.shape != truth.shape:
        raise ValueError(f"Estimate shape {estimate.shape} does not match truth shape {truth.shape}")
    return float(np.max(np.abs(estimate - truth)))


def coefficient_recovery(estimates: np.ndarray, truth: Sequence[float],
                         names: Optional[List[str]] = None,
                         alpha: float = 0.05) -> pd.DataFrame:
    """
    Summarize replicate coefficient estimates against the true values.

    Args:
        estimates: Array of shape (n_replicates, p)
        truth: True coefficients, length p
        names: Coefficient names (default x1..xp)
        alpha: Level for the Monte Carlo interval on the bias

    Returns:
        DataFrame indexed by coefficient with truth, mean, bias, std, rmse,
        a t-interval for the bias and the empirical 2.5/97.5 percentiles
    """
    est = np.atleast_2d(np.asarray(estimates, dtype=float))
    truth = np.asarray(truth, dtype=float)
    if est.shape[1] != len(truth):
        raise ValueError(f"Got {est.shape[1]} estimated coefficients for {len(truth)} true values")
    if names is None:
        names = [f'x{j + 1}' for j in range(len(truth))]

    n_rep = est.shape[0]
    mean = est.mean(axis=0)
    bias = mean - truth
    std = est.std(axis=0, ddof=1) if n_rep > 1 else np.zeros(len(truth))
    rmse = np.sqrt(np.mean((est - truth) ** 2, axis=0))

    # Monte Carlo standard error of the bias
    if n_rep > 1:
        t_crit = stats.t.ppf(1 - alpha / 2, df=n_rep - 1)
        half_width = t_crit * std / np.sqrt(n_rep)
    else:
        half_width = np.full(len(truth), np.nan)

    return pd.DataFrame({
        'true': truth,
        'mean': mean,
        'bias': bias,
        'bias_ci_lower': bias - half_width,
        'bias_ci_upper': bias + half_width,
        'std': std,
        'rmse': rmse,
        'q025': np.percentile(est, 2.5, axis=0),
        'q975': np.percentile(est, 97.5, axis=0),
    }, index=pd.Index(names, name='coefficient'))


def imputation_error(imputed_times: np.ndarray, true_times: np.ndarray,
                     events: np.ndarray) -> Dict[str, float]:
    """
    Compare imputed times with the (simulated) true times on censored rows.

    Returns:
        Dictionary with the number of censored rows and the mean absolute and
        mean signed error on the log-time scale
    """
    imputed = np.asarray(imputed_times, dtype=float)
    true = np.asarray(true_times, dtype=float)
    censored = np.asarray(events) == 0

    if not censored.any():
        return {'n_censored': 0, 'mean_abs_log_error': 0.0, 'mean_log_error': 0.0}

    log_err = np.log(imputed[censored]) - np.log(true[censored])
    return {
        'n_censored': int(censored.sum()),
        'mean_abs_log_error': float(np.mean(np.abs(log_err))),
        'mean_log_error': float(np.mean(log_err)),
    }
