"""
Utilities module for the Buckley-James AFT project.
"""

from .statistics import max_abs_error, coefficient_recovery, imputation_error

__all__ = ['max_abs_error', 'coefficient_recovery', 'imputation_error']
