"""
Analysis module: Monte Carlo replication and parametric comparison.
"""

from .monte_carlo import *
from .validation import *

__all__ = [
    # Monte Carlo replication
    'run_single_replicate',
    'run_monte_carlo_study',
    'analyze_monte_carlo_results',
    'create_monte_carlo_summary_table',
    'export_results',

    # Parametric comparison
    'fit_lognormal_aft',
    'compare_with_parametric_aft',
]
