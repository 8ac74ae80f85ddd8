"""
Data module for the Buckley-James AFT project.

This module provides the observation/dataset containers, file loading and
synthetic cohort generation.
"""

from .dataset import Observation, Dataset
from .loader import SurvivalDataLoader
from .simulation import simulate_cohort, calibrate_censoring_upper_bound, draw_errors

__all__ = [
    'Observation',
    'Dataset',
    'SurvivalDataLoader',
    'simulate_cohort',
    'calibrate_censoring_upper_bound',
    'draw_errors',
]
