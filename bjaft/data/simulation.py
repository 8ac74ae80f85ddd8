"""
Synthetic right-censored cohorts for testing and Monte Carlo studies.

Outcomes follow an accelerated failure time model
    log(T) = intercept + X @ beta + scale * epsilon
with independent uniform censoring on [0, c_max], where c_max is calibrated
so that the expected censoring fraction matches a target rate.
"""

import numpy as np
import pandas as pd
from scipy.optimize import brentq
from typing import Optional, Sequence

from ..config.settings import (
    SimulationConfig, DEFAULT_DURATION_COL, DEFAULT_EVENT_COL, TRUE_TIME_COL
)
from ..exceptions import InputError

ERROR_DISTRIBUTIONS = ('normal', 'logistic', 'extreme_value')


def draw_errors(rng: np.random.Generator, n: int, distribution: str = 'normal') -> np.ndarray:
    """
    Draw standardized log-time errors.

    'extreme_value' gives a Weibull AFT model, 'logistic' a log-logistic one.
    """
    if distribution == 'normal':
        return rng.normal(0.0, 1.0, n)
    if distribution == 'logistic':
        return rng.logistic(0.0, 1.0, n)
    if distribution == 'extreme_value':
        # Minimum extreme value distribution of log(Weibull)
        return -rng.gumbel(0.0, 1.0, n)
    raise InputError(f"Unknown error distribution: {distribution}. Choose from {ERROR_DISTRIBUTIONS}")


def calibrate_censoring_upper_bound(true_times: np.ndarray, censoring_rate: float) -> float:
    """
    Find c_max such that C ~ Uniform(0, c_max) censors ``censoring_rate`` of
    ``true_times`` in expectation.

    For fixed times, P(C < T_i) = min(T_i, c) / c, so the expected censoring
    fraction is mean(min(T, c)) / c, which decreases from 1 to 0 in c.
    """
    if not 0.0 < censoring_rate < 1.0:
        raise InputError(f"censoring_rate must lie in (0, 1), got {censoring_rate}")

    t = np.asarray(true_times, dtype=float)

    def excess(c):
        return np.mean(np.minimum(t, c)) / c - censoring_rate

    lower = 0.5 * t.min()
    upper = 2.0 * t.mean() / censoring_rate
    return float(brentq(excess, lower, upper))


def simulate_cohort(n_observations: int = SimulationConfig.N_OBSERVATIONS,
                    coefficients: Sequence[float] = SimulationConfig.TRUE_COEFFICIENTS,
                    intercept: float = SimulationConfig.INTERCEPT,
                    error_scale: float = SimulationConfig.ERROR_SCALE,
                    censoring_rate: float = SimulationConfig.CENSORING_RATE,
                    error_distribution: str = 'normal',
                    random_seed: Optional[int] = None,
                    rng: Optional[np.random.Generator] = None) -> pd.DataFrame:
    """
    Simulate a right-censored cohort from a linear model on log time.

    Args:
        n_observations: Number of subjects
        coefficients: True slope coefficients (one per covariate)
        intercept: True intercept on the log-time scale
        error_scale: Scale of the log-time error term
        censoring_rate: Target censoring fraction (0 disables censoring)
        error_distribution: One of 'normal', 'logistic', 'extreme_value'
        random_seed: Seed for a fresh generator (ignored if ``rng`` given)
        rng: Generator to draw from

    Returns:
        DataFrame with covariates x1..xp, observed time, event indicator and
        the uncensored true time
    """
    beta = np.asarray(coefficients, dtype=float)
    if beta.ndim != 1 or len(beta) == 0:
        raise InputError("At least one true coefficient is required")
    if n_observations < len(beta) + 1:
        raise InputError(f"Need at least {len(beta) + 1} observations for {len(beta)} covariates")
    if error_scale <= 0:
        raise InputError(f"error_scale must be positive, got {error_scale}")
    if not 0.0 <= censoring_rate < 1.0:
        raise InputError(f"censoring_rate must lie in [0, 1), got {censoring_rate}")

    if rng is None:
        rng = np.random.default_rng(random_seed)

    p = len(beta)
    X = rng.normal(0.0, 1.0, size=(n_observations, p))
    log_true = intercept + X @ beta + error_scale * draw_errors(rng, n_observations, error_distribution)
    true_times = np.exp(log_true)

    if censoring_rate > 0:
        c_max = calibrate_censoring_upper_bound(true_times, censoring_rate)
        censor_times = rng.uniform(0.0, c_max, n_observations)
    else:
        censor_times = np.full(n_observations, np.inf)

    observed = np.minimum(true_times, censor_times)
    event = (true_times <= censor_times).astype(int)

    df = pd.DataFrame(X, columns=[f'x{j + 1}' for j in range(p)])
    df[DEFAULT_DURATION_COL] = observed
    df[DEFAULT_EVENT_COL] = event
    df[TRUE_TIME_COL] = true_times
    return df
