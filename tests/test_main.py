import contextlib
import io
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from bjaft.data import simulate_cohort
from bjaft.main import build_parser, main


def _run(argv):
    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        code = main(argv)
    return code, buffer.getvalue()


class MainTests(unittest.TestCase):
    def test_no_command_prints_help(self):
        code, out = _run([])
        self.assertEqual(code, 0)
        self.assertIn('usage', out)

    def test_parser_defaults(self):
        args = build_parser().parse_args(['demo'])
        self.assertEqual(args.tolerance, 1e-3)
        self.assertEqual(args.max_iterations, 100)
        self.assertEqual(args.n, 500)

    def test_demo_runs(self):
        code, out = _run(['demo', '--n', '200', '--seed', '3'])
        self.assertEqual(code, 0)
        self.assertIn('Buckley-James AFT Model Summary', out)

    def test_fit_writes_imputed_times(self):
        with tempfile.TemporaryDirectory() as tmp:
            data_path = Path(tmp) / "cohort.csv"
            out_path = Path(tmp) / "imputed.csv"
            simulate_cohort(n_observations=150, random_seed=8).drop(columns=['true_time']).to_csv(
                data_path, index=False
            )

            code, _ = _run(['fit', '--data', str(data_path), '--covariates', 'x1', 'x2',
                            '--output', str(out_path)])
            self.assertEqual(code, 0)

            imputed = pd.read_csv(out_path)
            self.assertEqual(len(imputed), 150)
            self.assertTrue((imputed['imputed_time'] >= imputed['time'] - 1e-9).all())

    def test_missing_file_returns_error_code(self):
        code, out = _run(['fit', '--data', '/nonexistent/cohort.csv'])
        self.assertEqual(code, 1)
        self.assertIn('Error during analysis', out)


if __name__ == "__main__":
    unittest.main()
