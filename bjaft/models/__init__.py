"""
Models module for the Buckley-James AFT project.
Contains the self-consistent estimator and the numerical primitives it uses.
"""

from .primitives import SurvivalStepFunction, ols_fit, km_fit
from .buckley_james import FitResult, BuckleyJamesAFT, redistribute, fit, fit_by_group

__all__ = [
    # Numerical primitives
    'SurvivalStepFunction',
    'ols_fit',
    'km_fit',

    # Buckley-James estimator
    'FitResult',
    'BuckleyJamesAFT',
    'redistribute',
    'fit',
    'fit_by_group',
]
