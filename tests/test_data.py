import tempfile
import unittest
from pathlib import Path

import numpy as np
import pandas as pd

from bjaft.data import (
    Dataset, Observation, SurvivalDataLoader, calibrate_censoring_upper_bound, simulate_cohort
)
from bjaft.exceptions import InputError


class DatasetTests(unittest.TestCase):
    def test_from_observations_builds_arrays(self):
        dataset = Dataset.from_observations([
            Observation(1.0, 1, (0.1, 0.2)),
            Observation(2.0, 0, (0.3, 0.4)),
            Observation(3.0, 1, (0.5, 0.6)),
        ])
        self.assertEqual(dataset.n_observations, 3)
        self.assertEqual(dataset.n_covariates, 2)
        self.assertEqual(dataset.n_events, 2)
        self.assertEqual(dataset.covariate_names, ('x1', 'x2'))
        self.assertAlmostEqual(dataset.censoring_rate, 1 / 3)

    def test_arrays_are_read_only(self):
        dataset = Dataset.from_arrays([1.0, 2.0, 3.0], [1, 0, 1], [[0.1], [0.2], [0.3]])
        with self.assertRaises(ValueError):
            dataset.times[0] = 5.0
        with self.assertRaises(ValueError):
            dataset.events[0] = 0

    def test_mismatched_covariate_lengths_raise(self):
        with self.assertRaises(InputError):
            Dataset.from_observations([
                Observation(1.0, 1, (0.1, 0.2)),
                Observation(2.0, 0, (0.3,)),
            ])

    def test_empty_dataset_raises(self):
        with self.assertRaises(InputError):
            Dataset.from_observations([])

    def test_non_positive_times_raise(self):
        with self.assertRaises(InputError):
            Dataset.from_arrays([1.0, 0.0], [1, 1], [[0.1], [0.2]])

    def test_event_values_must_be_binary(self):
        with self.assertRaises(InputError):
            Dataset.from_arrays([1.0, 2.0], [1, 2], [[0.1], [0.2]])

    def test_from_dataframe_requires_columns(self):
        df = pd.DataFrame({'time': [1.0, 2.0], 'event': [1, 0]})
        with self.assertRaises(InputError):
            Dataset.from_dataframe(df, 'time', 'event', ['age'])

    def test_iteration_yields_observations(self):
        dataset = Dataset.from_arrays([1.0, 2.0], [1, 0], [[0.5], [1.5]], covariate_names=['dose'])
        observations = list(dataset)
        self.assertEqual(observations[1], Observation(2.0, 0, (1.5,)))

        df = dataset.to_dataframe()
        self.assertEqual(list(df.columns), ['time', 'event', 'dose'])


class SimulationTests(unittest.TestCase):
    def test_realized_censoring_close_to_target(self):
        df = simulate_cohort(n_observations=5000, censoring_rate=0.3, random_seed=0)
        self.assertAlmostEqual(1.0 - df['event'].mean(), 0.3, delta=0.03)

    def test_observed_time_is_minimum_of_true_and_censoring(self):
        df = simulate_cohort(n_observations=400, random_seed=1)
        events = df['event'] == 1
        np.testing.assert_allclose(df.loc[events, 'time'], df.loc[events, 'true_time'])
        self.assertTrue((df.loc[~events, 'time'] < df.loc[~events, 'true_time']).all())

    def test_same_seed_same_cohort(self):
        first = simulate_cohort(n_observations=100, random_seed=7)
        second = simulate_cohort(n_observations=100, random_seed=7)
        pd.testing.assert_frame_equal(first, second)

    def test_zero_censoring_rate_gives_all_events(self):
        df = simulate_cohort(n_observations=100, censoring_rate=0.0, random_seed=2)
        self.assertTrue((df['event'] == 1).all())

    def test_error_distributions(self):
        for dist in ('normal', 'logistic', 'extreme_value'):
            df = simulate_cohort(n_observations=50, error_distribution=dist, random_seed=3)
            self.assertEqual(len(df), 50)
        with self.assertRaises(InputError):
            simulate_cohort(n_observations=50, error_distribution='cauchy', random_seed=3)

    def test_calibration_matches_expected_fraction(self):
        times = np.array([1.0, 2.0, 3.0, 4.0])
        c_max = calibrate_censoring_upper_bound(times, 0.5)
        expected = np.mean(np.minimum(times, c_max)) / c_max
        self.assertAlmostEqual(expected, 0.5, places=6)


class SurvivalDataLoaderTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "cohort.csv"
        df = simulate_cohort(n_observations=60, random_seed=4).drop(columns=['true_time'])
        df.loc[3, 'x1'] = np.nan
        df.to_csv(self.path, index=False)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_builds_dataset_and_drops_incomplete_rows(self):
        loader = SurvivalDataLoader(self.path, 'time', 'event')
        with self.assertWarns(UserWarning):
            loader.preprocess_data()

        dataset = loader.build_dataset()
        self.assertEqual(dataset.n_observations, 59)
        self.assertEqual(dataset.covariate_names, ('x1', 'x2'))

        summary = loader.get_summary_statistics()
        self.assertEqual(summary['n_observations'], 59)
        self.assertEqual(summary['n_events'], dataset.n_events)

    def test_missing_file_raises(self):
        loader = SurvivalDataLoader(Path(self.tmpdir.name) / "absent.csv", 'time', 'event')
        with self.assertRaises(FileNotFoundError):
            loader.load_data()

    def test_fractional_event_value_raises(self):
        df = pd.read_csv(self.path)
        df['event'] = df['event'].astype(float)
        df.loc[0, 'event'] = 0.6
        df.to_csv(self.path, index=False)

        loader = SurvivalDataLoader(self.path, 'time', 'event', ['x2'])
        with self.assertRaises(InputError):
            loader.build_dataset()

    def test_missing_column_raises(self):
        loader = SurvivalDataLoader(self.path, 'time', 'event', ['age'])
        with self.assertRaises(InputError):
            loader.preprocess_data()


if __name__ == "__main__":
    unittest.main()
