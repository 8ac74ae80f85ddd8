"""
Observation and dataset containers for right-censored regression data.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..exceptions import InputError


@dataclass(frozen=True)
class Observation:
    """A single right-censored observation."""
    observed_time: float
    event_indicator: int
    covariates: Tuple[float, ...]


class Dataset:
    """
    Immutable collection of n observations with p covariates.

    Arrays are validated on construction and stored read-only so that a fit
    can never modify its input.
    """

    def __init__(self, times: np.ndarray, events: np.ndarray, covariates: np.ndarray,
                 covariate_names: Optional[Sequence[str]] = None):
        times = np.array(times, dtype=float)
        events = np.array(events)
        covariates = np.array(covariates, dtype=float)

        if times.ndim != 1 or len(times) == 0:
            raise InputError("Dataset must contain at least one observation")
        if covariates.ndim == 1:
            covariates = covariates.reshape(-1, 1)
        if covariates.ndim != 2 or covariates.shape[0] != len(times):
            raise InputError(
                f"Covariate matrix of shape {covariates.shape} does not match {len(times)} observations"
            )
        if covariates.shape[1] == 0:
            raise InputError("Dataset must have at least one covariate")
        if events.shape != times.shape:
            raise InputError("Event indicator length does not match number of observations")

        if not np.all(np.isfinite(times)) or np.any(times <= 0):
            raise InputError("Observed times must be finite and strictly positive")
        if not np.all(np.isin(events, [0, 1])):
            raise InputError("Event indicator values must be 0 or 1")
        if not np.all(np.isfinite(covariates)):
            raise InputError("Covariates must be finite")

        if covariate_names is None:
            covariate_names = [f'x{j + 1}' for j in range(covariates.shape[1])]
        covariate_names = list(covariate_names)
        if len(covariate_names) != covariates.shape[1]:
            raise InputError(
                f"Got {len(covariate_names)} covariate names for {covariates.shape[1]} covariates"
            )

        events = events.astype(int)
        for arr in (times, events, covariates):
            arr.flags.writeable = False

        self._times = times
        self._events = events
        self._covariates = covariates
        self._covariate_names = tuple(covariate_names)

    @classmethod
    def from_observations(cls, observations: Sequence[Observation],
                          covariate_names: Optional[Sequence[str]] = None) -> 'Dataset':
        """Build a dataset from a sequence of Observation records."""
        observations = list(observations)
        if not observations:
            raise InputError("Dataset must contain at least one observation")

        p = len(observations[0].covariates)
        for i, obs in enumerate(observations):
            if len(obs.covariates) != p:
                raise InputError(
                    f"Observation {i} has {len(obs.covariates)} covariates, expected {p}"
                )

        times = [obs.observed_time for obs in observations]
        events = [obs.event_indicator for obs in observations]
        covariates = [list(obs.covariates) for obs in observations]
        return cls(times, events, np.array(covariates, dtype=float).reshape(len(observations), p),
                   covariate_names=covariate_names)

    @classmethod
    def from_arrays(cls, times, events, covariates,
                    covariate_names: Optional[Sequence[str]] = None) -> 'Dataset':
        """Build a dataset from array-likes."""
        return cls(times, events, covariates, covariate_names=covariate_names)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, duration_col: str, event_col: str,
                       covariate_cols: List[str]) -> 'Dataset':
        """
        Build a dataset from DataFrame columns.

        Args:
            df: Source data
            duration_col: Column with observed times
            event_col: Column with event indicators (1 = event, 0 = censored)
            covariate_cols: Covariate columns, in design-matrix order
        """
        missing = [c for c in [duration_col, event_col] + list(covariate_cols) if c not in df.columns]
        if missing:
            raise InputError(f"Missing required columns: {missing}")
        if not covariate_cols:
            raise InputError("At least one covariate column is required")

        return cls(
            df[duration_col].to_numpy(dtype=float),
            df[event_col].to_numpy(),
            df[list(covariate_cols)].to_numpy(dtype=float),
            covariate_names=list(covariate_cols),
        )

    @property
    def times(self) -> np.ndarray:
        return self._times

    @property
    def events(self) -> np.ndarray:
        return self._events

    @property
    def covariates(self) -> np.ndarray:
        return self._covariates

    @property
    def covariate_names(self) -> Tuple[str, ...]:
        return self._covariate_names

    @property
    def n_observations(self) -> int:
        return len(self._times)

    @property
    def n_covariates(self) -> int:
        return self._covariates.shape[1]

    @property
    def n_events(self) -> int:
        return int(self._events.sum())

    @property
    def censoring_rate(self) -> float:
        return 1.0 - self.n_events / self.n_observations

    @property
    def log_times(self) -> np.ndarray:
        return np.log(self._times)

    def __len__(self) -> int:
        return self.n_observations

    def __iter__(self):
        for t, d, x in zip(self._times, self._events, self._covariates):
            yield Observation(float(t), int(d), tuple(float(v) for v in x))

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self._covariates, columns=list(self._covariate_names))
        df.insert(0, 'event', self._events)
        df.insert(0, 'time', self._times)
        return df

    def __repr__(self) -> str:
        return (f"Dataset(n={self.n_observations}, p={self.n_covariates}, "
                f"events={self.n_events})")
