"""
Buckley-James estimator for accelerated failure time (AFT) models.

Fits log(T) = x'beta + error to right-censored data by self-consistency:
censored log-times are replaced by their conditional expectation under a
Kaplan-Meier estimate of the residual distribution, OLS is refit on the
completed response, and the two steps are repeated until the slope
coefficients stop moving.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Tuple, Optional, Sequence, Union, Any
from dataclasses import dataclass, field

from ..config.settings import EstimatorConfig
from ..data.dataset import Dataset, Observation
from ..exceptions import BuckleyJamesError, InputError
from .primitives import SurvivalStepFunction, km_fit, ols_fit


@dataclass
class FitResult:
    """Container for Buckley-James fitting results."""
    coefficients: np.ndarray
    pseudo_response: np.ndarray
    n_iterations: int
    converged: bool
    intercept: float
    initial_coefficients: np.ndarray
    coefficient_changes: List[float] = field(default_factory=list)

    @property
    def imputed_times(self) -> np.ndarray:
        """Pseudo-response mapped back to the time scale."""
        return np.exp(self.pseudo_response)

    @property
    def final_change(self) -> Optional[float]:
        return self.coefficient_changes[-1] if self.coefficient_changes else None


def redistribute(residuals: np.ndarray, event_indicator: np.ndarray,
                 survival_curve: SurvivalStepFunction,
                 denominator_floor: float = EstimatorConfig.TOLERANCE) -> np.ndarray:
    """
    Redistribute-to-the-right imputation of censored residuals.

    For each residual e_i returns the conditional mean of the residual
    distribution over values >= e_i, weighting each residual by the
    Kaplan-Meier mass placed on it. Only values at censored positions are
    meaningful to callers.

    Args:
        residuals: Current-iteration residuals
        event_indicator: 1 for events, 0 for censored residuals
        survival_curve: Right-continuous survival curve of the residuals
        denominator_floor: Lower bound on the tail survival used as divisor

    Returns:
        Imputed residuals in the original observation order
    """
    e = np.asarray(residuals, dtype=float)
    d = np.asarray(event_indicator).astype(int)
    if e.ndim != 1 or e.shape != d.shape:
        raise InputError("Residuals and event indicator must be 1-d arrays of equal length")
    if len(e) == 0:
        return np.empty(0)

    # Ascending residuals; on ties events come before censorings, then
    # original position (lexsort is stable)
    order = np.lexsort((1 - d, e))
    sorted_e = e[order]

    cdf = 1.0 - np.asarray(survival_curve(sorted_e), dtype=float)
    mass = np.diff(np.concatenate([[0.0], cdf]))
    # Survival left beyond the largest residual is assigned to it
    mass[-1] += 1.0 - cdf[-1]

    numerator = np.cumsum((sorted_e * mass)[::-1])[::-1]
    denominator = np.maximum(1.0 - cdf, denominator_floor)
    imputed_sorted = np.maximum(numerator / denominator, sorted_e)

    imputed = np.empty_like(e)
    imputed[order] = imputed_sorted
    return imputed


def _validate_fit_inputs(dataset: Dataset, tolerance: float, max_iterations: int) -> None:
    n, p = dataset.n_observations, dataset.n_covariates
    if n < p + 1:
        raise InputError(f"Need at least p + 1 = {p + 1} observations, got {n}")
    if dataset.n_events == 0:
        raise InputError("Every observation is censored; the residual distribution is undefined")
    if not np.isfinite(tolerance) or tolerance <= 0:
        raise InputError(f"tolerance must be positive, got {tolerance}")
    if int(max_iterations) != max_iterations or max_iterations < 1:
        raise InputError(f"max_iterations must be a positive integer, got {max_iterations}")


def fit(dataset: Union[Dataset, Sequence[Observation]],
        tolerance: float = EstimatorConfig.TOLERANCE,
        max_iterations: int = EstimatorConfig.MAX_ITERATIONS,
        denominator_floor: Optional[float] = None,
        verbose: bool = False) -> FitResult:
    """
    Fit a Buckley-James AFT model on log observed times.

    Args:
        dataset: Dataset (or sequence of Observations) to fit
        tolerance: Stop once max |beta_new - beta_old| <= tolerance
        max_iterations: Maximum number of OLS refits
        denominator_floor: Floor for the redistribution divisor
            (defaults to ``tolerance``)
        verbose: Whether to print per-iteration progress

    Returns:
        FitResult. Hitting ``max_iterations`` is not an error; it is reported
        through ``converged=False``.

    Raises:
        InputError: Invalid dataset or configuration
        NumericalError: Propagated from the OLS or Kaplan-Meier primitives
    """
    if not isinstance(dataset, Dataset):
        dataset = Dataset.from_observations(dataset)
    _validate_fit_inputs(dataset, tolerance, max_iterations)
    floor = tolerance if denominator_floor is None else denominator_floor

    X = dataset.covariates
    events = dataset.events
    log_t = dataset.log_times
    censored = events == 0

    # Starting values: naive OLS ignoring censoring, slopes only
    initial = ols_fit(log_t, X, include_intercept=True)
    beta = initial[1:]
    intercept = float(initial[0])

    if verbose:
        print(f"⚙️ Buckley-James fit: n={dataset.n_observations}, p={dataset.n_covariates}, "
              f"censored={int(censored.sum())} ({100 * dataset.censoring_rate:.1f}%)")

    pseudo_response = log_t.copy()
    changes = []
    converged = False
    n_iterations = 0

    while n_iterations < max_iterations:
        n_iterations += 1

        xbeta = X @ beta
        residuals = log_t - xbeta
        curve = km_fit(residuals, events)
        imputed = redistribute(residuals, events, curve, denominator_floor=floor)

        pseudo_response = np.where(censored, xbeta + imputed, log_t)

        refit = ols_fit(pseudo_response, X, include_intercept=True)
        new_beta = refit[1:]
        err = float(np.max(np.abs(new_beta - beta)))
        changes.append(err)

        beta = new_beta
        intercept = float(refit[0])

        if verbose:
            print(f"  🔄 Iteration {n_iterations}: max |Δβ| = {err:.6f}")

        if err <= tolerance:
            converged = True
            break

    if verbose:
        if converged:
            print(f"✅ Converged after {n_iterations} iterations")
        else:
            print(f"⚠️ Stopped at max_iterations={max_iterations} without converging "
                  f"(last change {changes[-1]:.6f})")

    return FitResult(
        coefficients=beta,
        pseudo_response=pseudo_response,
        n_iterations=n_iterations,
        converged=converged,
        intercept=intercept,
        initial_coefficients=initial[1:],
        coefficient_changes=changes,
    )


class BuckleyJamesAFT:
    """
    DataFrame interface to the Buckley-James estimator.

    Handles column selection, fitting, coefficient summaries and prediction
    on the log-time scale.
    """

    def __init__(self, tolerance: float = EstimatorConfig.TOLERANCE,
                 max_iterations: int = EstimatorConfig.MAX_ITERATIONS,
                 denominator_floor: Optional[float] = None):
        """
        Initialize the estimator.

        Args:
            tolerance: Coefficient-change stopping threshold
            max_iterations: Maximum number of OLS refits
            denominator_floor: Floor for the redistribution divisor
        """
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.denominator_floor = denominator_floor
        self.dataset_: Optional[Dataset] = None
        self.result_: Optional[FitResult] = None
        self.index_ = None

    def fit(self, df: pd.DataFrame, duration_col: str, event_col: str,
            covariate_cols: Optional[List[str]] = None,
            verbose: bool = False) -> 'BuckleyJamesAFT':
        """
        Fit the model to DataFrame columns.

        Args:
            df: Data with one row per subject
            duration_col: Observed time column
            event_col: Event indicator column (1 = event, 0 = censored)
            covariate_cols: Covariates; defaults to every other numeric column
            verbose: Whether to print progress information

        Returns:
            self
        """
        if covariate_cols is None:
            covariate_cols = [c for c in df.select_dtypes(include=[np.number]).columns
                              if c not in (duration_col, event_col)]

        dataset = Dataset.from_dataframe(df, duration_col, event_col, covariate_cols)
        self.fit_dataset(dataset, verbose=verbose)
        self.index_ = df.index
        return self

    def fit_dataset(self, dataset: Dataset, verbose: bool = False) -> 'BuckleyJamesAFT':
        """Fit the model to an already constructed Dataset."""
        self.result_ = fit(
            dataset,
            tolerance=self.tolerance,
            max_iterations=self.max_iterations,
            denominator_floor=self.denominator_floor,
            verbose=verbose,
        )
        self.dataset_ = dataset
        self.index_ = pd.RangeIndex(dataset.n_observations)
        return self

    def _check_fitted(self):
        if self.result_ is None:
            raise ValueError("Model must be fitted before use. Call fit first.")

    @property
    def coefficients_(self) -> pd.Series:
        self._check_fitted()
        return pd.Series(self.result_.coefficients, index=list(self.dataset_.covariate_names),
                         name='coef')

    @property
    def intercept_(self) -> float:
        self._check_fitted()
        return self.result_.intercept

    @property
    def converged_(self) -> bool:
        self._check_fitted()
        return self.result_.converged

    @property
    def imputed_times_(self) -> pd.Series:
        """Observed times for events, imputed times for censored rows."""
        self._check_fitted()
        return pd.Series(self.result_.imputed_times, index=self.index_, name='imputed_time')

    def summary(self) -> pd.DataFrame:
        """
        Coefficient table.

        Returns:
            DataFrame indexed by covariate with the Buckley-James slope, the
            naive OLS starting value, and the implied time ratio exp(coef).
        """
        self._check_fitted()
        names = list(self.dataset_.covariate_names)
        return pd.DataFrame({
            'coef': self.result_.coefficients,
            'exp(coef)': np.exp(self.result_.coefficients),
            'naive_ols_coef': self.result_.initial_coefficients,
        }, index=pd.Index(names, name='covariate'))

    def _design(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        if isinstance(X, pd.DataFrame):
            names = list(self.dataset_.covariate_names)
            missing = [c for c in names if c not in X.columns]
            if missing:
                raise InputError(f"Missing covariate columns for prediction: {missing}")
            return X[names].to_numpy(dtype=float)

        design = np.asarray(X, dtype=float)
        if design.ndim == 1:
            design = design.reshape(1, -1)
        if design.shape[1] != self.dataset_.n_covariates:
            raise InputError(
                f"Expected {self.dataset_.n_covariates} covariates, got {design.shape[1]}"
            )
        return design

    def predict_log_time(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Linear predictor including the intercept from the final refit."""
        self._check_fitted()
        return self.result_.intercept + self._design(X) @ self.result_.coefficients

    def predict_time(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        return np.exp(self.predict_log_time(X))

    def display_summary(self, verbose: bool = True):
        """Print the coefficient table and convergence diagnostics."""
        if not verbose:
            return
        if self.result_ is None:
            print("❌ No fitted model available for summary")
            return

        result = self.result_
        print("📊 Buckley-James AFT Model Summary:")
        print("=" * 50)
        print(f"  Observations: {self.dataset_.n_observations}")
        print(f"  Events: {self.dataset_.n_events} "
              f"(censoring {100 * self.dataset_.censoring_rate:.1f}%)")
        print(f"  Iterations: {result.n_iterations}")
        status = "converged" if result.converged else "did not converge"
        print(f"  Status: {status} (tolerance {self.tolerance:g})")
        print(f"\n{self.summary().to_string(float_format=lambda v: f'{v:.4f}')}")


def fit_by_group(df: pd.DataFrame, group_col: str, duration_col: str, event_col: str,
                 covariate_cols: List[str],
                 tolerance: float = EstimatorConfig.TOLERANCE,
                 max_iterations: int = EstimatorConfig.MAX_ITERATIONS,
                 verbose: bool = True) -> Tuple[Dict[Any, BuckleyJamesAFT], Dict[Any, str]]:
    """
    Fit an independent Buckley-James model within each level of ``group_col``.

    Args:
        df: Data with one row per subject
        group_col: Column defining the groups (e.g. treatment arm)
        duration_col: Observed time column
        event_col: Event indicator column
        covariate_cols: Covariates used in every group
        tolerance: Coefficient-change stopping threshold
        max_iterations: Maximum number of OLS refits
        verbose: Whether to print per-group status

    Returns:
        Tuple of (fitted models by group, error messages by group). Input and
        numerical failures in one group are recorded and do not stop the loop.
    """
    if group_col not in df.columns:
        raise InputError(f"Group column not found: {group_col}")

    models = {}
    failures = {}

    for group_name in sorted(df[group_col].unique()):
        group_data = df[df[group_col] == group_name]
        model = BuckleyJamesAFT(tolerance=tolerance, max_iterations=max_iterations)

        try:
            model.fit(group_data, duration_col, event_col, covariate_cols)
        except BuckleyJamesError as e:
            failures[group_name] = str(e)
            if verbose:
                print(f"  ❌ {group_name}: {e}")
            continue

        models[group_name] = model
        if verbose:
            flag = "✅" if model.converged_ else "⚠️"
            print(f"  {flag} {group_name}: N={len(group_data)}, "
                  f"iterations={model.result_.n_iterations}")

    return models, failures
