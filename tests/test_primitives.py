import unittest

import numpy as np

from bjaft.exceptions import NumericalError
from bjaft.models.primitives import SurvivalStepFunction, km_fit, ols_fit


class OLSFitTests(unittest.TestCase):
    def test_recovers_exact_linear_relationship(self):
        rng = np.random.default_rng(0)
        X = rng.normal(size=(30, 2))
        y = 2.0 + 3.0 * X[:, 0] - 1.0 * X[:, 1]

        coef = ols_fit(y, X, include_intercept=True)
        self.assertEqual(len(coef), 3)
        np.testing.assert_allclose(coef, [2.0, 3.0, -1.0], atol=1e-10)

    def test_without_intercept_returns_slopes_only(self):
        X = np.array([[1.0], [2.0], [3.0], [4.0]])
        y = 0.5 * X[:, 0]

        coef = ols_fit(y, X, include_intercept=False)
        self.assertEqual(len(coef), 1)
        self.assertAlmostEqual(coef[0], 0.5, places=10)

    def test_supports_n_equal_p_plus_one(self):
        X = np.array([[0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
        y = np.array([1.0, 2.0, 4.0])

        coef = ols_fit(y, X, include_intercept=True)
        fitted = coef[0] + X @ coef[1:]
        np.testing.assert_allclose(fitted, y, atol=1e-10)

    def test_rank_deficient_design_raises(self):
        x = np.arange(10, dtype=float)
        X = np.column_stack([x, 2.0 * x])
        with self.assertRaises(NumericalError):
            ols_fit(np.log1p(x), X)

    def test_constant_covariate_is_rank_deficient_with_intercept(self):
        X = np.ones((5, 1))
        with self.assertRaises(NumericalError):
            ols_fit(np.arange(5, dtype=float), X, include_intercept=True)

    def test_non_finite_response_raises(self):
        X = np.arange(4, dtype=float).reshape(-1, 1)
        with self.assertRaises(NumericalError):
            ols_fit(np.array([1.0, np.nan, 2.0, 3.0]), X)


class KaplanMeierTests(unittest.TestCase):
    def test_uncensored_curve_is_right_continuous(self):
        curve = km_fit(np.array([1.0, 2.0, 3.0, 4.0]), np.array([1, 1, 1, 1]))

        self.assertAlmostEqual(curve(0.5), 1.0)
        self.assertAlmostEqual(curve(1.0), 0.75)
        self.assertAlmostEqual(curve(2.5), 0.5)
        self.assertAlmostEqual(curve(4.0), 0.0)
        self.assertAlmostEqual(curve(10.0), 0.0)

    def test_handles_negative_values(self):
        curve = km_fit(np.array([-2.0, -1.0, 0.5, 3.0]), np.array([1, 1, 1, 1]))

        self.assertAlmostEqual(curve(-3.0), 1.0)
        self.assertAlmostEqual(curve(-2.0), 0.75)
        self.assertAlmostEqual(curve(0.0), 0.5)
        self.assertAlmostEqual(curve(0.5), 0.25)

    def test_censored_tail_holds_last_value(self):
        curve = km_fit(np.array([1.0, 2.0]), np.array([1, 0]))

        self.assertAlmostEqual(curve(1.0), 0.5)
        self.assertAlmostEqual(curve(100.0), 0.5)
        self.assertAlmostEqual(curve.tail_mass, 0.5)

    def test_curve_is_monotone_non_increasing(self):
        rng = np.random.default_rng(3)
        times = rng.normal(size=60)
        events = (rng.uniform(size=60) < 0.7).astype(int)
        curve = km_fit(times, events)

        grid = np.linspace(-4, 4, 200)
        values = curve(grid)
        self.assertTrue(np.all(np.diff(values) <= 1e-12))
        self.assertTrue(np.all((values >= 0.0) & (values <= 1.0)))

    def test_vector_lookup_matches_scalar_lookup(self):
        curve = km_fit(np.array([1.0, 2.0, 3.0]), np.array([1, 0, 1]))
        queries = np.array([0.0, 1.0, 2.0, 3.0])
        vector = curve(queries)
        self.assertEqual(vector.shape, queries.shape)
        for q, v in zip(queries, vector):
            self.assertAlmostEqual(curve(float(q)), v)

    def test_non_finite_times_raise(self):
        with self.assertRaises(NumericalError):
            km_fit(np.array([1.0, np.inf]), np.array([1, 1]))

    def test_shape_mismatch_raises(self):
        with self.assertRaises(NumericalError):
            km_fit(np.array([1.0, 2.0]), np.array([1]))


class SurvivalStepFunctionTests(unittest.TestCase):
    def test_lookup_below_first_knot_is_one(self):
        curve = SurvivalStepFunction(np.array([2.0, 3.0]), np.array([0.6, 0.2]))
        self.assertEqual(curve(1.9), 1.0)
        self.assertEqual(curve(2.0), 0.6)
        self.assertEqual(curve(2.99), 0.6)
        self.assertEqual(curve(3.0), 0.2)

    def test_mismatched_lengths_raise(self):
        with self.assertRaises(NumericalError):
            SurvivalStepFunction(np.array([1.0, 2.0]), np.array([0.5]))


if __name__ == "__main__":
    unittest.main()
