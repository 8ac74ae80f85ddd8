"""
Exception types raised by the Buckley-James estimator.
"""


class BuckleyJamesError(Exception):
    """Base class for estimator failures."""


class InputError(BuckleyJamesError, ValueError):
    """Invalid dataset or configuration, detected before any computation."""


class NumericalError(BuckleyJamesError, ArithmeticError):
    """Failure inside the least-squares or Kaplan-Meier primitives."""
