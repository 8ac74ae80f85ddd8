"""
Numerical primitives used by the Buckley-James estimator.

Two library-backed building blocks with stable contracts:
- ``ols_fit``: ordinary least squares via scikit-learn ``LinearRegression``
- ``km_fit``: Kaplan-Meier survival curve via lifelines ``KaplanMeierFitter``
"""

import numpy as np
from typing import Union

from lifelines import KaplanMeierFitter
from sklearn.linear_model import LinearRegression

from ..exceptions import NumericalError


class SurvivalStepFunction:
    """
    Right-continuous survival step function built from a Kaplan-Meier fit.

    The curve equals 1 below its first knot and holds its last value beyond
    the largest knot; it is not assumed to reach 0.
    """

    def __init__(self, times: np.ndarray, survival: np.ndarray):
        """
        Args:
            times: Sorted knot locations
            survival: Survival probability on and after each knot
        """
        self.times = np.asarray(times, dtype=float)
        self.survival = np.asarray(survival, dtype=float)

        if self.times.shape != self.survival.shape:
            raise NumericalError("Survival curve knots and values differ in length")

    def __call__(self, t: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        query = np.asarray(t, dtype=float)
        idx = np.searchsorted(self.times, query, side='right') - 1
        values = np.where(idx >= 0, self.survival[np.clip(idx, 0, None)], 1.0)
        if values.ndim == 0:
            return float(values)
        return values

    @property
    def tail_mass(self) -> float:
        """Survival probability left over beyond the largest knot."""
        if len(self.survival) == 0:
            return 1.0
        return float(self.survival[-1])

    def __repr__(self) -> str:
        return f"SurvivalStepFunction(n_knots={len(self.times)}, tail_mass={self.tail_mass:.4f})"


def ols_fit(response: np.ndarray, design: np.ndarray,
            include_intercept: bool = True) -> np.ndarray:
    """
    Ordinary least squares regression of ``response`` on ``design``.

    Args:
        response: Outcome vector of length n
        design: Covariate matrix of shape (n, p)
        include_intercept: Whether to estimate an intercept term

    Returns:
        Coefficient array in covariate order; when ``include_intercept`` is
        true the intercept is prepended, giving length p + 1.

    Raises:
        NumericalError: If the inputs are non-finite or the design matrix
            (including the intercept column) is rank-deficient.
    """
    y = np.asarray(response, dtype=float)
    X = np.asarray(design, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)

    if y.ndim != 1 or X.shape[0] != y.shape[0]:
        raise NumericalError(
            f"Response of shape {y.shape} does not match design of shape {X.shape}"
        )
    if not (np.all(np.isfinite(y)) and np.all(np.isfinite(X))):
        raise NumericalError("Non-finite values passed to least squares")

    full_design = np.column_stack([np.ones(len(y)), X]) if include_intercept else X
    rank = np.linalg.matrix_rank(full_design)
    if rank < full_design.shape[1]:
        raise NumericalError(
            f"Rank-deficient design matrix (rank {rank} < {full_design.shape[1]} columns)"
        )

    model = LinearRegression(fit_intercept=include_intercept)
    model.fit(X, y)

    if include_intercept:
        return np.concatenate([[float(model.intercept_)], model.coef_.astype(float)])
    return model.coef_.astype(float).copy()


def km_fit(times: np.ndarray, event_indicator: np.ndarray) -> SurvivalStepFunction:
    """
    Kaplan-Meier estimate of the survival curve of ``times``.

    ``times`` may be any real values (the estimator is applied to regression
    residuals, which are frequently negative).

    Args:
        times: Observed values
        event_indicator: 1 where the value is an event, 0 where censored

    Returns:
        SurvivalStepFunction for right-continuous lookups
    """
    t = np.asarray(times, dtype=float)
    d = np.asarray(event_indicator).astype(int)

    if t.shape != d.shape:
        raise NumericalError(f"Times of shape {t.shape} do not match events of shape {d.shape}")
    if not np.all(np.isfinite(t)):
        raise NumericalError("Non-finite values passed to Kaplan-Meier estimator")

    kmf = KaplanMeierFitter()
    try:
        kmf.fit(t, event_observed=d)
    except (ValueError, TypeError) as e:
        raise NumericalError(f"Kaplan-Meier fit failed: {e}") from e

    sf = kmf.survival_function_
    return SurvivalStepFunction(sf.index.values.astype(float), sf.iloc[:, 0].values)
