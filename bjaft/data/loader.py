"""
Data loading module for right-censored regression data.
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Optional, Dict, Any, List
import warnings

from ..exceptions import InputError
from .dataset import Dataset


class SurvivalDataLoader:
    """
    Loader for tabular survival data.

    Reads CSV or Excel files, drops incomplete rows in the columns used by
    the model, and builds a validated Dataset.
    """

    def __init__(self, data_file: Path, duration_col: str, event_col: str,
                 covariate_cols: Optional[List[str]] = None):
        """
        Initialize the data loader.

        Args:
            data_file: Path to a .csv, .xlsx or .xls file
            duration_col: Observed time column
            event_col: Event indicator column (1 = event, 0 = censored)
            covariate_cols: Covariate columns. If None, uses all other numeric columns.
        """
        self.data_file = Path(data_file)
        self.duration_col = duration_col
        self.event_col = event_col
        self.covariate_cols = covariate_cols
        self.raw_data = None
        self.processed_data = None

    def load_data(self) -> pd.DataFrame:
        """
        Load raw data from file.

        Returns:
            DataFrame with raw data
        """
        if not self.data_file.exists():
            raise FileNotFoundError(f"Data file not found: {self.data_file}")

        suffix = self.data_file.suffix.lower()
        if suffix == '.csv':
            self.raw_data = pd.read_csv(self.data_file)
        elif suffix in ('.xlsx', '.xls'):
            self.raw_data = pd.read_excel(self.data_file)
        else:
            raise InputError(f"Unsupported file type: {suffix}")

        return self.raw_data

    def preprocess_data(self) -> pd.DataFrame:
        """
        Select model columns and drop incomplete rows.

        Returns:
            DataFrame with the duration, event and covariate columns
        """
        if self.raw_data is None:
            self.load_data()

        df = self.raw_data

        if self.covariate_cols is None:
            self.covariate_cols = [c for c in df.select_dtypes(include=[np.number]).columns
                                   if c not in (self.duration_col, self.event_col)]

        columns = [self.duration_col, self.event_col] + list(self.covariate_cols)
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise InputError(f"Missing required columns: {missing}")

        df = df[columns].dropna()
        n_dropped = len(self.raw_data) - len(df)
        if n_dropped > 0:
            warnings.warn(f"Dropped {n_dropped} rows with missing values")

        invalid = ~df[self.event_col].isin([0, 1])
        if invalid.any():
            raise InputError(
                f"Event indicator values must be 0 or 1; found {sorted(df.loc[invalid, self.event_col].unique())}"
            )

        df = df.copy()
        df[self.event_col] = df[self.event_col].astype(int)

        self.processed_data = df
        return df

    def build_dataset(self) -> Dataset:
        """Build the validated Dataset used by the estimator."""
        if self.processed_data is None:
            self.preprocess_data()

        dataset = Dataset.from_dataframe(
            self.processed_data, self.duration_col, self.event_col, self.covariate_cols
        )
        if dataset.censoring_rate > 0.8:
            warnings.warn(
                f"Heavily censored data ({100 * dataset.censoring_rate:.1f}% censored); "
                "imputations rest on few events"
            )
        return dataset

    def get_summary_statistics(self) -> Dict[str, Any]:
        """
        Get summary statistics of the processed data.

        Returns:
            Dictionary with summary statistics
        """
        if self.processed_data is None:
            self.preprocess_data()

        df = self.processed_data
        n_events = int(df[self.event_col].sum())
        return {
            'n_observations': len(df),
            'n_events': n_events,
            'censoring_rate': 1.0 - n_events / len(df) if len(df) else np.nan,
            'median_observed_time': float(df[self.duration_col].median()),
            'covariates': list(self.covariate_cols),
        }
